"""Tests for RVTools workbook parsing.

Covers:
  - File validation (extension, existence)
  - Metadata extraction from the export file name
  - Sheet parsing and header aliases
  - Failure modes: missing required sheets, empty vInfo
"""

from datetime import datetime

from rvtools2ibm.tests.conftest import SAMPLE_SHEETS, VINFO, write_workbook


# ═══════════════════════════════════════════════════════════════════
#  File validation
# ═══════════════════════════════════════════════════════════════════

class TestValidateFile:
    def test_valid_export(self, rvtools_file):
        from rvtools2ibm.rvtools.parser import validate_file
        assert validate_file(rvtools_file).valid

    def test_missing_file(self, tmp_path):
        from rvtools2ibm.rvtools.parser import validate_file
        result = validate_file(tmp_path / "nope.xlsx")
        assert not result.valid
        assert "not found" in result.error

    def test_wrong_extension(self, tmp_path):
        from rvtools2ibm.rvtools.parser import validate_file
        path = tmp_path / "export.csv"
        path.write_text("VM,CPUs\n")
        result = validate_file(path)
        assert not result.valid
        assert ".csv" in result.error


# ═══════════════════════════════════════════════════════════════════
#  Parsing
# ═══════════════════════════════════════════════════════════════════

class TestParseRVToolsFile:
    def test_parses_all_sheets(self, sample_data):
        assert len(sample_data.vms) == 6
        assert len(sample_data.disks) == 6
        assert len(sample_data.networks) == 4
        assert len(sample_data.snapshots) == 2
        assert len(sample_data.tools) == 4
        assert len(sample_data.clusters) == 2
        assert len(sample_data.hosts) == 3
        assert len(sample_data.datastores) == 2

    def test_metadata_from_file_name(self, sample_data):
        meta = sample_data.metadata
        assert meta.environment == "lab"
        assert meta.collection_date == datetime(2026, 9, 30, 14, 5, 0)

    def test_vm_fields(self, sample_data):
        web = sample_data.vms[0]
        assert web.vm_name == "web-01"
        assert web.power_state == "poweredOn"
        assert web.cpus == 4
        assert web.memory_mib == 16384
        assert web.guest_hostname == "web-01.example.com"
        assert web.cbt_enabled is True
        assert web.uuid == "4201aaaa-0001"
        assert web.identifier == "web-01::4201aaaa-0001"

    def test_template_and_power_state(self, sample_data):
        by_name = {vm.vm_name: vm for vm in sample_data.vms}
        assert by_name["tpl-rhel9"].template
        assert by_name["test-off"].power_state == "poweredOff"
        assert by_name["Legacy_App"].identifier == "Legacy_App"

    def test_disk_flags(self, sample_data):
        legacy = sample_data.disks_for("Legacy_App")
        assert legacy[0].raw
        assert not sample_data.disks_for("web-01")[0].is_shared

    def test_snapshot_age(self, sample_data):
        ages = {s.vm_name: s.age_in_days for s in sample_data.snapshots}
        assert ages["web-01"] in (2, 3)
        assert ages["Legacy_App"] > 30

    def test_cpu_and_memory_hot_add(self, sample_data):
        assert {c.vm_name for c in sample_data.cpus if c.hot_add_enabled} == {"db-01"}
        assert {m.vm_name for m in sample_data.memory if m.hot_add_enabled} == {"web-01"}

    def test_host_cores_from_sockets(self, sample_data):
        host = sample_data.hosts[0]
        assert host.total_cpu_cores == 32
        assert host.esxi_version == "VMware ESXi 7.0.3"

    def test_summary(self, sample_data):
        summary = sample_data.summary()
        assert summary["total_vms"] == 5
        assert summary["templates"] == 1
        assert summary["powered_on"] == 4
        assert summary["total_vcpus"] == 4 + 8 + 2 + 2 + 1

    def test_progress_callback(self, rvtools_file):
        from rvtools2ibm.rvtools.parser import parse_rvtools_file
        phases = []
        parse_rvtools_file(rvtools_file, lambda p: phases.append(p.phase))
        assert phases[0] == "reading"
        assert "parsing" in phases
        assert phases[-1] == "complete"

    def test_header_aliases(self, tmp_path):
        """Quoted and differently-cased headers are still matched."""
        from rvtools2ibm.rvtools.parser import parse_rvtools_file
        sheets = dict(SAMPLE_SHEETS)
        sheets["vInfo"] = [['"VM Name"', "power state", "Num CPU", "Memory MB"],
                           ["app-01", "poweredOn", 2, 2048]]
        path = tmp_path / "export.xlsx"
        write_workbook(path, sheets)

        result = parse_rvtools_file(path)
        assert result.success
        vm = result.data.vms[0]
        assert (vm.vm_name, vm.cpus, vm.memory_mib) == ("app-01", 2, 2048)


class TestParseFailures:
    def test_missing_required_sheet(self, tmp_path):
        from rvtools2ibm.rvtools.parser import parse_rvtools_file
        sheets = {k: v for k, v in SAMPLE_SHEETS.items() if k != "vDisk"}
        path = tmp_path / "export.xlsx"
        write_workbook(path, sheets)

        result = parse_rvtools_file(path)
        assert not result.success
        assert "vDisk" in result.errors[0]

    def test_empty_vinfo(self, tmp_path):
        from rvtools2ibm.rvtools.parser import parse_rvtools_file
        sheets = dict(SAMPLE_SHEETS)
        sheets["vInfo"] = [VINFO[0]]
        path = tmp_path / "export.xlsx"
        write_workbook(path, sheets)

        result = parse_rvtools_file(path)
        assert not result.success
        assert result.errors == ["No VMs found in vInfo sheet"]

    def test_missing_recommended_sheets_warn(self, tmp_path):
        from rvtools2ibm.rvtools.parser import parse_rvtools_file
        sheets = {k: SAMPLE_SHEETS[k] for k in ("vInfo", "vDisk", "vDatastore")}
        path = tmp_path / "export.xlsx"
        write_workbook(path, sheets)

        result = parse_rvtools_file(path)
        assert result.success
        assert any("vNetwork" in w for w in result.warnings)

    def test_not_a_workbook(self, tmp_path):
        from rvtools2ibm.rvtools.parser import parse_rvtools_file
        path = tmp_path / "broken.xlsx"
        path.write_bytes(b"not a zip file")

        result = parse_rvtools_file(path)
        assert not result.success
        assert result.errors[0].startswith("Failed to parse file")
