"""Tests for report and manifest exports.

Covers:
  - Excel workbook sheets (openpyxl)
  - PDF report (reportlab)
  - Word report sections and cover (python-docx)
  - MTV NetworkMap / StorageMap / Plan manifests and zip bundle
"""

import io
import zipfile

import pytest
import yaml


# ═══════════════════════════════════════════════════════════════════
#  Excel
# ═══════════════════════════════════════════════════════════════════

class TestExcelReport:
    def test_sheets(self, sample_data):
        import openpyxl
        from rvtools2ibm.export.excel_report import generate_excel_report
        content = generate_excel_report(sample_data, "roks")
        wb = openpyxl.load_workbook(io.BytesIO(content))

        assert wb.sheetnames == [
            "Executive Summary", "VM List", "Migration Readiness", "ROKS Sizing",
            "VPC VSI Mapping", "Wave Planning", "Host List", "Datastore List",
        ]

    def test_vm_list_rows(self, sample_data):
        import openpyxl
        from rvtools2ibm.export.excel_report import generate_excel_report
        wb = openpyxl.load_workbook(io.BytesIO(generate_excel_report(sample_data, "vsi")))
        names = [row[0] for row in wb["VM List"].iter_rows(min_row=2, values_only=True)]
        assert "web-01" in names
        assert "tpl-rhel9" not in names

    def test_wave_planning_uses_roks_waves(self, sample_data):
        import openpyxl
        from rvtools2ibm.export.excel_report import generate_excel_report
        wb = openpyxl.load_workbook(io.BytesIO(generate_excel_report(sample_data, "vsi")))
        rows = {row[0]: row for row in wb["Wave Planning"].iter_rows(min_row=2, values_only=True)}

        assert rows["web-01"][1] == "Wave 1: Pilot"
        assert rows["web-01"][3] == "fully-supported"
        # Old snapshot and missing tools block MTV even in VSI mode
        assert rows["Legacy_App"][1:5] == ("Wave 5: Remediation", 55, "unsupported", "Yes")


# ═══════════════════════════════════════════════════════════════════
#  PDF
# ═══════════════════════════════════════════════════════════════════

class TestPDFReport:
    def test_generates_pdf(self, sample_data):
        from rvtools2ibm.export.pdf_report import PDFExportOptions, generate_pdf_report
        content = generate_pdf_report(sample_data, PDFExportOptions(client_name="Acme Corp"))
        assert content.startswith(b"%PDF")
        assert len(content) > 2000

    def test_sections_optional(self, sample_data):
        from rvtools2ibm.export.pdf_report import PDFExportOptions, generate_pdf_report
        opts = PDFExportOptions(
            include_dashboard=False, include_compute=False, include_storage=False,
            include_network=False, include_clusters=False, include_hosts=False,
            include_readiness=False,
        )
        assert generate_pdf_report(sample_data, opts).startswith(b"%PDF")

    def test_unknown_mode(self, sample_data):
        from rvtools2ibm.export.pdf_report import PDFExportOptions, generate_pdf_report
        with pytest.raises(ValueError):
            generate_pdf_report(sample_data, PDFExportOptions(mode="classic"))


# ═══════════════════════════════════════════════════════════════════
#  Word
# ═══════════════════════════════════════════════════════════════════

def _headings(content: bytes) -> list[str]:
    import docx
    doc = docx.Document(io.BytesIO(content))
    return [p.text for p in doc.paragraphs if p.style.name == "Heading 1"]


class TestDocxReport:
    def test_sections(self, sample_data):
        from rvtools2ibm.export.docx_report import generate_docx_report
        headings = _headings(generate_docx_report(sample_data))

        assert headings[0] == "1. Executive Summary"
        assert "7. ROKS with OpenShift Virtualization" in headings
        assert "9. Cost Estimation" in headings
        assert headings[-1] == "Appendices"

    def test_toggles(self, sample_data):
        from rvtools2ibm.export.docx_report import DocxExportOptions, generate_docx_report
        opts = DocxExportOptions(include_roks=False, include_vsi=False)
        headings = _headings(generate_docx_report(sample_data, opts))

        assert "7. ROKS with OpenShift Virtualization" not in headings
        assert "8. VPC Virtual Server Instances" not in headings
        # Nothing to price without a target
        assert "9. Cost Estimation" not in headings

    def test_cover_and_properties(self, sample_data):
        import docx
        from rvtools2ibm.config import ReportSettings
        from rvtools2ibm.export.docx_report import DocxExportOptions, generate_docx_report
        opts = DocxExportOptions.from_settings(ReportSettings(client_name="Acme Corp", company_name="Partner Inc"))
        doc = docx.Document(io.BytesIO(generate_docx_report(sample_data, opts)))
        text = "\n".join(p.text for p in doc.paragraphs)

        assert "Prepared for: Acme Corp" in text
        assert doc.core_properties.title == "VMware Migration Assessment - Acme Corp"
        assert doc.core_properties.author == "Partner Inc"

    def test_placeholder_client(self, sample_data):
        import docx
        from rvtools2ibm.export.docx_report import generate_docx_report
        doc = docx.Document(io.BytesIO(generate_docx_report(sample_data)))
        assert any(p.text == "Prepared for: [Client Name]" for p in doc.paragraphs)

    def test_vm_readiness(self, sample_data):
        from rvtools2ibm.export.docx_report import calculate_vm_readiness
        readiness = {r.vm_name: r for r in calculate_vm_readiness(sample_data)}

        assert not readiness["web-01"].issues
        assert readiness["db-01"].has_warning and not readiness["db-01"].has_blocker
        assert readiness["db-01"].issues == ["Outdated VMware Tools"]
        assert readiness["Legacy_App"].issues == [
            "No VMware Tools", "Old Snapshots (>30d)", "RDM Disk", "Unsupported OS", "HW Version v8",
        ]


# ═══════════════════════════════════════════════════════════════════
#  MTV manifests
# ═══════════════════════════════════════════════════════════════════

class _VM:
    def __init__(self, vm_name, uuid=None):
        self.vm_name = vm_name
        self.uuid = uuid


class _Wave:
    def __init__(self, name, vms):
        self.name = name
        self.vms = vms


class TestSanitizeName:
    @pytest.mark.parametrize("name,expected", [
        ("Wave 1: Pilot", "wave-1-pilot"),
        ("Legacy_App", "legacy-app"),
        ("--Already--Dashed--", "already-dashed"),
        ("x" * 80, "x" * 63),
    ])
    def test_sanitize(self, name, expected):
        from rvtools2ibm.export.mtv_yaml import sanitize_name
        assert sanitize_name(name) == expected


class TestPlanWaves:
    def test_wave_prefix_stripped(self):
        from rvtools2ibm.export.mtv_yaml import plan_waves
        waves = [
            _Wave("Wave 1: Pilot", [_VM("web-01")]),
            _Wave("Wave 2: Quick Wins", []),
            _Wave("Wave 5: Remediation", [_VM("Legacy_App")]),
            _Wave("VM-Network-Prod", [_VM("app-01")]),
        ]
        planned = plan_waves(waves)

        assert [w.name for w in planned] == ["pilot", "remediation", "vm-network-prod"]
        assert [vm.vm_name for vm in planned[0].vms] == ["web-01"]


class TestMTVYAMLGenerator:
    def test_plan(self):
        from rvtools2ibm.export.mtv_yaml import MTVYAMLGenerator
        text = MTVYAMLGenerator().generate_plan("Wave 1: Pilot", [_VM("web-01", "4201aaaa-0001"), _VM("Legacy_App")])
        assert text.startswith("---\n")
        plan = yaml.safe_load(text)

        assert plan["apiVersion"] == "forklift.konveyor.io/v1beta1"
        assert plan["kind"] == "Plan"
        assert plan["metadata"]["name"] == "wave-1-pilot"
        assert plan["metadata"]["namespace"] == "openshift-mtv"
        assert plan["metadata"]["labels"] == {"app.kubernetes.io/managed-by": "rvtools-analyzer"}
        assert plan["spec"]["vms"] == [{"name": "web-01", "id": "4201aaaa-0001"}, {"name": "Legacy_App"}]
        assert plan["spec"]["warm"] is False
        assert plan["spec"]["targetNamespace"] == "migrated-vms"
        assert plan["spec"]["map"]["network"] == {"name": "vmware-network-map", "namespace": "openshift-mtv"}
        assert plan["spec"]["preserveStaticIPs"] is False

    def test_options(self):
        from rvtools2ibm.config import MTVExportOptions
        from rvtools2ibm.export.mtv_yaml import MTVYAMLGenerator
        opts = MTVExportOptions(namespace="mtv", warm=True, source_provider_name="vcenter-prod")
        plan = yaml.safe_load(MTVYAMLGenerator(opts).generate_plan("w", [_VM("a")]))

        assert plan["spec"]["warm"] is True
        assert plan["spec"]["provider"]["source"] == {"name": "vcenter-prod", "namespace": "mtv"}
        assert plan["spec"]["provider"]["destination"] == {"name": "host", "namespace": "mtv"}

    def test_network_map(self, sample_data):
        from rvtools2ibm.export.mtv_yaml import MTVYAMLGenerator
        network_map = yaml.safe_load(MTVYAMLGenerator().generate_network_map(sample_data.networks))
        entries = {e["source"]["name"]: e for e in network_map["spec"]["map"]}

        assert network_map["kind"] == "NetworkMap"
        # VM-Network-Prod appears twice but is mapped once
        assert list(entries) == ["VM-Network-Prod", "VM-Network-DB", "VM-Network-Dev"]
        assert entries["VM-Network-Prod"]["source"]["type"] == "dvportgroup"
        assert entries["VM-Network-DB"]["source"]["type"] == "network"
        assert entries["VM-Network-DB"]["destination"] == {"type": "pod"}

    def test_storage_map(self, sample_data):
        from rvtools2ibm.export.mtv_yaml import MTVYAMLGenerator
        storage_map = yaml.safe_load(MTVYAMLGenerator().generate_storage_map(sample_data.datastores))
        entry = storage_map["spec"]["map"][0]

        assert storage_map["metadata"]["name"] == "vmware-storage-map"
        assert entry["source"] == {"name": "ds-prod-01"}
        assert entry["destination"] == {
            "storageClass": "ocs-storagecluster-ceph-rbd",
            "accessMode": "ReadWriteOnce",
            "volumeMode": "Filesystem",
        }

    def test_preview(self):
        from rvtools2ibm.export.mtv_yaml import MTVYAMLGenerator
        vms = [_VM(f"vm-{i}") for i in range(5)]
        plan = yaml.safe_load(MTVYAMLGenerator().generate_preview(vms))
        assert plan["metadata"]["name"] == "preview"
        assert [vm["name"] for vm in plan["spec"]["vms"]] == ["vm-0", "vm-1", "vm-2"]

    def test_bundle(self, sample_data):
        from rvtools2ibm.export.mtv_yaml import MTVYAMLGenerator
        waves = [
            _Wave("Wave 1: Pilot", [_VM("web-01", "4201aaaa-0001"), _VM("db-01", "4201bbbb-0002")]),
            _Wave("Wave 5: Remediation", [_VM("Legacy_App")]),
        ]
        content = MTVYAMLGenerator().generate_bundle(waves, sample_data.networks, sample_data.datastores)

        with zipfile.ZipFile(io.BytesIO(content)) as zf:
            assert zf.namelist() == [
                "network-map.yaml",
                "storage-map.yaml",
                "plan-wave-1-wave-1-pilot.yaml",
                "plan-wave-2-wave-5-remediation.yaml",
                "all-resources.yaml",
            ]
            combined = zf.read("all-resources.yaml").decode()

        docs = [d for d in yaml.safe_load_all(combined) if d]
        assert [d["kind"] for d in docs] == ["NetworkMap", "StorageMap", "Plan", "Plan"]
        assert "# plan-wave-1-wave-1-pilot.yaml" in combined
