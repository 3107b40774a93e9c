"""Word migration assessment report (python-docx).

The document is built section by section on one ``Document``:

  cover page, executive summary, assumptions and scope, environment
  analysis, migration readiness, migration options, migration strategy,
  ROKS overview, VSI overview, cost estimation, next steps, appendices
"""

from __future__ import annotations

import io
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Pt, RGBColor

from rvtools2ibm.constants import HW_VERSION_MINIMUM, SNAPSHOT_BLOCKER_AGE_DAYS
from rvtools2ibm.ibmcloud.sizing import (
    BareMetalSizing,
    VSIStorageMapping,
    calculate_bare_metal_sizing,
    calculate_vsi_storage_mappings,
)
from rvtools2ibm.pipeline.complexity import calculate_complexity_scores
from rvtools2ibm.pipeline.os_compat import get_roks_os_compatibility
from rvtools2ibm.pipeline.preflight import is_tools_missing
from rvtools2ibm.pipeline.waves import WaveGroup, build_vm_wave_data, create_network_waves
from rvtools2ibm.utils.formatters import (
    format_currency,
    format_number,
    get_hardware_version_number,
    mib_to_gib,
    mib_to_tib,
    round_half_up,
    truncate,
)
from rvtools2ibm.utils.logging import get_logger

if TYPE_CHECKING:
    from rvtools2ibm.config import ReportSettings
    from rvtools2ibm.ibmcloud.pricing import PricingCatalog
    from rvtools2ibm.rvtools.models import RVToolsData

logger = get_logger(__name__)

IBM_BLUE = RGBColor(0x0F, 0x62, 0xFE)
DARK_GRAY = RGBColor(0x39, 0x39, 0x39)
MAX_VSI_ROWS = 20
MAX_WAVE_ROWS = 20


@dataclass
class DocxExportOptions:
    client_name: str = ""
    prepared_by: str = ""
    company_name: str = ""
    include_roks: bool = True
    include_vsi: bool = True
    include_costs: bool = True
    max_issue_vms: int = 20

    @classmethod
    def from_settings(cls, settings: "ReportSettings") -> "DocxExportOptions":
        return cls(**settings.model_dump())


@dataclass
class VMReadiness:
    vm_name: str
    cluster: str
    guest_os: str
    cpus: int
    memory_gib: int
    storage_gib: int
    has_blocker: bool = False
    has_warning: bool = False
    issues: list[str] = field(default_factory=list)


# ═══════════════════════════════════════════════════════════════════
# Calculations
# ═══════════════════════════════════════════════════════════════════

def calculate_vm_readiness(data: "RVToolsData") -> list[VMReadiness]:
    """Blockers and warnings per powered-on VM, against OpenShift Virtualization."""
    tools_by_name = {t.vm_name: t for t in data.tools}
    old_snapshots = {s.vm_name for s in data.snapshots if s.age_in_days > SNAPSHOT_BLOCKER_AGE_DAYS}
    rdm = {d.vm_name for d in data.disks if d.raw}

    result = []
    for vm in data.active_vms:
        tools = tools_by_name.get(vm.vm_name)
        r = VMReadiness(
            vm_name=vm.vm_name,
            cluster=vm.cluster or "N/A",
            guest_os=vm.guest_os,
            cpus=vm.cpus,
            memory_gib=round_half_up(mib_to_gib(vm.memory_mib)),
            storage_gib=round_half_up(mib_to_gib(vm.provisioned_mib)),
        )
        blockers = [
            (is_tools_missing(tools), "No VMware Tools"),
            (vm.vm_name in old_snapshots, f"Old Snapshots (>{SNAPSHOT_BLOCKER_AGE_DAYS}d)"),
            (vm.vm_name in rdm, "RDM Disk"),
            (get_roks_os_compatibility(vm.guest_os).compatibility_status == "unsupported", "Unsupported OS"),
        ]
        for hit, issue in blockers:
            if hit:
                r.issues.append(issue)
                r.has_blocker = True

        hw = get_hardware_version_number(vm.hardware_version)
        if hw < HW_VERSION_MINIMUM:
            r.issues.append(f"HW Version v{hw}")
            r.has_warning = True
        if tools and tools.tools_status == "toolsOld":
            r.issues.append("Outdated VMware Tools")
            r.has_warning = True
        result.append(r)
    return result


def calculate_port_group_waves(data: "RVToolsData") -> list[WaveGroup]:
    vms = data.active_vms
    scores = calculate_complexity_scores(vms, data.disks, data.networks, "roks")
    wave_data = build_vm_wave_data(vms, scores, data.disks, data.snapshots, data.tools, data.networks, "roks")
    return create_network_waves(wave_data, "portGroup")


def _most_common_subnet(wave: WaveGroup) -> str:
    subnets = Counter(vm.subnet for vm in wave.vms if vm.subnet != "Unknown")
    return subnets.most_common(1)[0][0] if subnets else "N/A"


# ═══════════════════════════════════════════════════════════════════
# Document builder
# ═══════════════════════════════════════════════════════════════════

class DocxReportBuilder:
    """Builds the assessment report into ``self.doc``."""

    def __init__(self, data: "RVToolsData", options: DocxExportOptions, pricing: Optional["PricingCatalog"] = None):
        self.data = data
        self.options = options
        self.doc = Document()
        self._setup_styles()

        self.readiness = calculate_vm_readiness(data)
        self.roks_sizing: BareMetalSizing = calculate_bare_metal_sizing(data, pricing)
        self.vsi_mappings: list[VSIStorageMapping] = calculate_vsi_storage_mappings(data, pricing)
        self.waves = calculate_port_group_waves(data)

    def _setup_styles(self):
        style = self.doc.styles["Normal"]
        style.font.name = "Calibri"
        style.font.size = Pt(11)

        for name, size, color in (("Heading 1", 16, IBM_BLUE), ("Heading 2", 13, DARK_GRAY), ("Heading 3", 11, DARK_GRAY)):
            font = self.doc.styles[name].font
            font.name = "Calibri"
            font.size = Pt(size)
            font.bold = True
            font.color.rgb = color

    # ── building blocks ─────────────────────────────────────────

    def _paragraph(self, text: str, bold: bool = False, italic: bool = False):
        p = self.doc.add_paragraph()
        run = p.add_run(text)
        run.bold = bold
        run.italic = italic
        return p

    def _bullets(self, items: list[str]):
        for item in items:
            self.doc.add_paragraph(item, style="List Bullet")

    def _table(self, header: list[str], rows: list[list]):
        table = self.doc.add_table(rows=1, cols=len(header))
        table.style = "Light Grid Accent 1"
        for cell, label in zip(table.rows[0].cells, header):
            cell.text = label
            for run in cell.paragraphs[0].runs:
                run.bold = True
        for values in rows:
            cells = table.add_row().cells
            for cell, value in zip(cells, values):
                cell.text = str(value)
        self.doc.add_paragraph()
        return table

    # ── sections ────────────────────────────────────────────────

    def add_cover_page(self):
        opts = self.options
        for _ in range(6):
            self.doc.add_paragraph()

        p = self.doc.add_paragraph()
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER
        run = p.add_run("VMware Cloud Migration Assessment")
        run.font.size = Pt(28)
        run.font.bold = True
        run.font.color.rgb = IBM_BLUE

        p = self.doc.add_paragraph()
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER
        run = p.add_run("Migration to IBM Cloud: ROKS with OpenShift Virtualization and VPC Virtual Servers")
        run.font.size = Pt(13)
        run.font.color.rgb = DARK_GRAY

        self.doc.add_paragraph()
        for label, value in (
            ("Prepared for", opts.client_name or "[Client Name]"),
            ("Prepared by", opts.prepared_by or "[Your Name]"),
            ("Company", opts.company_name or "[Your Company]"),
            ("Date", datetime.now().strftime("%B %d, %Y")),
        ):
            p = self.doc.add_paragraph()
            p.alignment = WD_ALIGN_PARAGRAPH.CENTER
            p.add_run(f"{label}: ").bold = True
            p.add_run(value)

        self.doc.add_page_break()

    def add_executive_summary(self):
        data = self.data
        vms = data.active_vms
        total_vcpus = sum(vm.cpus for vm in vms)
        memory_tib = sum(mib_to_tib(vm.memory_mib) for vm in vms)
        storage_tib = sum(mib_to_tib(vm.provisioned_mib) for vm in vms)

        total = len(self.readiness)
        blockers = sum(1 for r in self.readiness if r.has_blocker)
        warnings = sum(1 for r in self.readiness if r.has_warning and not r.has_blocker)
        ready = total - blockers - warnings

        def pct(n: int) -> str:
            return f"{round_half_up(n / total * 100) if total else 0}%"

        self.doc.add_heading("1. Executive Summary", level=1)
        self.doc.add_heading("Assessment At-a-Glance", level=2)
        self._bullets([
            f"Environment: {len(vms)} VMs analyzed across {len(data.clusters)} clusters with "
            f"{format_number(total_vcpus)} vCPUs and {storage_tib:.1f} TiB storage",
            f"Migration Readiness: {pct(ready)} of VMs are ready to migrate; {blockers} VMs have blockers "
            f"requiring remediation",
            "Recommended Platform: ROKS for organizations planning modernization; VSI for lift-and-shift "
            "with minimal change",
            "Key Risks: Unsupported operating systems, snapshot sprawl, RDM disk usage, and Kubernetes "
            "skills gap (if ROKS)",
        ])
        source = data.metadata.file_name or "RVTools Export"
        if data.metadata.collection_date:
            source += f" (Collected: {data.metadata.collection_date.strftime('%Y-%m-%d')})"
        self._paragraph(f"Source Data: {source}", italic=True)

        self._table(["Metric", "Value"], [
            ["Total VMs (Powered On)", len(vms)],
            ["Total vCPUs", format_number(total_vcpus)],
            ["Total Memory", f"{memory_tib:.1f} TiB"],
            ["Total Storage", f"{storage_tib:.1f} TiB"],
            ["Clusters", len(data.clusters)],
            ["ESXi Hosts", len(data.hosts)],
        ])

        self.doc.add_heading("Migration Readiness Overview", level=2)
        self._table(["Status", "VM Count", "Percentage"], [
            ["Ready to Migrate", ready, pct(ready)],
            ["Needs Preparation", warnings, pct(warnings)],
            ["Has Blockers", blockers, pct(blockers)],
        ])

    def add_assumptions(self):
        self.doc.add_heading("2. Assumptions and Scope", level=1)
        self._paragraph(
            "This assessment is based on the following assumptions and scope limitations. These should be "
            "considered when reviewing the recommendations and cost estimates."
        )
        self._paragraph("Data Source", bold=True)
        self._paragraph(
            "Analysis is based on a point-in-time RVTools export from the VMware vSphere environment. "
            "Results reflect the environment state at the time of data collection."
        )
        self._paragraph("Scope Limitations", bold=True)
        self._bullets([
            "No application dependency mapping - workload dependencies between VMs have not been analyzed",
            "No performance benchmarking - actual CPU, memory, and storage utilization patterns are not assessed",
            "No licensing optimization - existing software licenses and cloud licensing options are not evaluated",
            "No network traffic analysis - bandwidth requirements between workloads are not measured",
            "No security or compliance review - regulatory requirements are not assessed in this report",
        ])
        self._paragraph("Cost Estimate Assumptions", bold=True)
        self._bullets([
            "List pricing without enterprise discounts or committed use agreements",
            "US South (Dallas) region pricing (actual costs may vary by region)",
            "Network egress and data transfer costs not included",
            "Operating system licensing for non-Linux workloads may incur additional costs on VSI",
        ])

    def add_environment_analysis(self):
        data = self.data
        vms = data.active_vms
        self.doc.add_heading("3. Environment Analysis", level=1)

        self.doc.add_heading("Clusters", level=2)
        self._table(["Cluster", "Hosts", "VMs", "CPU Cores", "Memory (GiB)", "HA", "DRS"], [
            [c.name, c.host_count, c.vm_count, c.cpu_cores, format_number(round_half_up(mib_to_gib(c.total_memory_mib))),
             "Yes" if c.ha_enabled else "No", "Yes" if c.drs_enabled else "No"]
            for c in data.clusters
        ])

        self.doc.add_heading("Operating Systems", level=2)
        os_counts = Counter(vm.guest_os or "Unknown" for vm in vms).most_common(10)
        self._table(["Guest OS", "VMs"], [[truncate(name, 60), n] for name, n in os_counts])

        self.doc.add_heading("Storage", level=2)
        capacity = sum(mib_to_tib(ds.capacity_mib) for ds in data.datastores)
        free = sum(mib_to_tib(ds.free_mib) for ds in data.datastores)
        self._table(["Metric", "Value"], [
            ["Datastores", len(data.datastores)],
            ["Total Capacity", f"{capacity:.1f} TiB"],
            ["Used", f"{capacity - free:.1f} TiB"],
            ["VM Provisioned", f"{sum(mib_to_tib(vm.provisioned_mib) for vm in vms):.1f} TiB"],
        ])

    def _issue_table(self, title: str, rows: list[VMReadiness], column: str, appendix: str):
        limit = self.options.max_issue_vms
        self.doc.add_heading(title, level=2)
        if not rows:
            self._paragraph("None identified.")
            return
        self._table(["VM Name", "Cluster", column], [
            [r.vm_name, r.cluster, ", ".join(r.issues)] for r in rows[:limit]
        ])
        if len(rows) > limit:
            self._paragraph(
                f"Note: Showing {limit} of {len(rows)} VMs. See {appendix} for the complete list.",
                italic=True,
            )

    def add_migration_readiness(self):
        self.doc.add_heading("4. Migration Readiness", level=1)
        blocked = [r for r in self.readiness if r.has_blocker]
        warned = [r for r in self.readiness if r.has_warning and not r.has_blocker]
        self._issue_table("VMs with Blockers", blocked, "Issues", "Appendix A")
        self._issue_table("VMs with Warnings", warned, "Warnings", "Appendix B")

        self.doc.add_heading("Risk Assessment", level=2)
        issue_counts = Counter(issue for r in self.readiness for issue in r.issues)
        risks = []
        if issue_counts["Unsupported OS"]:
            risks.append(f"Unsupported Operating Systems: {issue_counts['Unsupported OS']} VMs have operating "
                         "systems that may not be supported on the target platform.")
        snapshot_issue = f"Old Snapshots (>{SNAPSHOT_BLOCKER_AGE_DAYS}d)"
        if issue_counts[snapshot_issue]:
            risks.append(f"Snapshot Sprawl: {issue_counts[snapshot_issue]} VMs have snapshots older than "
                         f"{SNAPSHOT_BLOCKER_AGE_DAYS} days. Consolidate or remove snapshots before migration.")
        if issue_counts["RDM Disk"]:
            risks.append(f"Raw Device Mappings (RDM): {issue_counts['RDM Disk']} VMs use RDM disks which "
                         "require special handling.")
        if issue_counts["No VMware Tools"]:
            risks.append(f"Missing VMware Tools: {issue_counts['No VMware Tools']} VMs do not have VMware "
                         "Tools installed.")
        risks.append("Skills Gap (ROKS): If selecting ROKS with OpenShift Virtualization, ensure the operations "
                     "team has Kubernetes expertise or plan for training and enablement.")
        risks.append("Cost Variance: Actual costs may differ from estimates based on negotiated agreements, "
                     "reserved capacity commitments and actual usage.")
        self._bullets(risks)

    def add_migration_options(self):
        self.doc.add_heading("5. Migration Options", level=1)
        self._table(["Consideration", "ROKS + OpenShift Virtualization", "VPC Virtual Servers"], [
            ["Migration approach", "MTV (Migration Toolkit for Virtualization)", "Image import or RackWare"],
            ["Operational model", "Kubernetes-native, VMs alongside containers", "Traditional IaaS"],
            ["Storage", "ODF (Ceph) on local NVMe", "VPC Block Storage"],
            ["Best for", "Modernization and consolidation", "Lift-and-shift with minimal change"],
            ["Skills required", "OpenShift / Kubernetes", "VPC networking and IaaS"],
        ])

    def add_migration_strategy(self):
        self.doc.add_heading("6. Migration Strategy", level=1)
        self._paragraph(
            "The recommended migration strategy groups virtual machines by their network port group (subnet). "
            "VMs within the same subnet typically communicate with each other, so migrating them together "
            "maintains application functionality during cutover."
        )
        self._paragraph(
            f"The environment contains {len(self.waves)} unique port groups. The following table shows the "
            "proposed migration waves based on network topology:"
        )
        self._table(["Wave", "Port Group", "Subnet", "VMs", "vCPUs", "Memory"], [
            [f"Wave {i + 1}", truncate(w.name, 25), _most_common_subnet(w), w.vm_count, w.vcpus, f"{w.memory_gib} GiB"]
            for i, w in enumerate(self.waves[:MAX_WAVE_ROWS])
        ])
        if len(self.waves) > MAX_WAVE_ROWS:
            self._paragraph(
                f"Note: Showing {MAX_WAVE_ROWS} of {len(self.waves)} port groups. Smaller waves are listed "
                "first to identify pilot migration candidates.",
                italic=True,
            )

    def add_roks_overview(self):
        s = self.roks_sizing
        self.doc.add_heading("7. ROKS with OpenShift Virtualization", level=1)
        self._paragraph(
            "The cluster is sized on bare metal workers with local NVMe, running OpenShift Data Foundation "
            "for converged storage. One node of headroom is added for maintenance and failure tolerance."
        )
        self._table(["Component", "Value"], [
            ["Worker Nodes", s.worker_nodes],
            ["Bare Metal Profile", s.profile_name],
            ["Total Physical Cores", format_number(s.total_cores)],
            ["Total Threads", format_number(s.total_threads)],
            ["Total Memory", f"{format_number(s.total_memory_gib)} GiB"],
            ["Raw NVMe", f"{s.total_nvme_tib} TiB"],
            ["ODF Usable Capacity", f"{s.odf_usable_tib} TiB"],
        ])

    def add_vsi_overview(self):
        mappings = self.vsi_mappings
        self.doc.add_heading("8. VPC Virtual Server Instances", level=1)
        family_counts = Counter(m.family for m in mappings)
        self._table(["Profile Family", "VMs"], [[f, n] for f, n in family_counts.most_common()])

        self.doc.add_heading("Sample VM Mappings", level=2)
        self._table(["VM", "Source", "Profile", "Boot / Data (GiB)", "Monthly"], [
            [truncate(m.vm_name, 30), f"{m.source_vcpus} vCPU / {m.source_memory_gib} GiB", m.profile,
             f"{m.boot_disk_gib} / {m.data_disk_gib}", format_currency(m.monthly_cost)]
            for m in mappings[:MAX_VSI_ROWS]
        ])
        if len(mappings) > MAX_VSI_ROWS:
            self._paragraph(f"Note: Showing {MAX_VSI_ROWS} of {len(mappings)} VMs.", italic=True)

    def add_cost_estimation(self):
        opts = self.options
        self.doc.add_heading("9. Cost Estimation", level=1)
        rows = []
        if opts.include_roks:
            monthly = self.roks_sizing.monthly_cost
            rows.append(["ROKS (bare metal compute)", format_currency(monthly), format_currency(monthly * 12)])
        if opts.include_vsi:
            compute = sum(m.compute_cost for m in self.vsi_mappings)
            storage = sum(m.storage_cost for m in self.vsi_mappings)
            rows.append(["VPC VSI (compute)", format_currency(compute), format_currency(compute * 12)])
            rows.append(["VPC VSI (block storage)", format_currency(storage), format_currency(storage * 12)])
        self._table(["Option", "Monthly", "Annual"], rows)
        self._paragraph(
            "Estimates use list pricing. OpenShift licensing, networking and data transfer are not included.",
            italic=True,
        )

    def add_next_steps(self):
        self.doc.add_heading("10. Next Steps", level=1)
        self._bullets([
            "Review this assessment with stakeholders and select the target platform",
            "Remediate blockers identified in the migration readiness section",
            "Conduct application dependency mapping to refine migration waves",
            "Validate sizing with a proof of concept on the selected platform",
            "Build a detailed migration plan and cutover runbook",
        ])
        contact = self.options.prepared_by or self.options.company_name
        if contact:
            self._paragraph(f"Contact: {contact}")

    def add_appendices(self):
        limit = self.options.max_issue_vms
        blocked = [r for r in self.readiness if r.has_blocker]
        warned = [r for r in self.readiness if r.has_warning and not r.has_blocker]
        if len(blocked) <= limit and len(warned) <= limit:
            return

        self.doc.add_page_break()
        self.doc.add_heading("Appendices", level=1)
        if len(blocked) > limit:
            self.doc.add_heading("Appendix A: VMs with Blockers", level=2)
            self._table(["VM Name", "Cluster", "Guest OS", "Issues"], [
                [r.vm_name, r.cluster, r.guest_os, ", ".join(r.issues)] for r in blocked
            ])
        if len(warned) > limit:
            self.doc.add_heading("Appendix B: VMs with Warnings", level=2)
            self._table(["VM Name", "Cluster", "Guest OS", "Warnings"], [
                [r.vm_name, r.cluster, r.guest_os, ", ".join(r.issues)] for r in warned
            ])

    def _add_header_footer(self):
        section = self.doc.sections[0]
        header = section.header.paragraphs[0]
        header.alignment = WD_ALIGN_PARAGRAPH.RIGHT
        header.text = "VMware Cloud Migration Assessment"
        footer = section.footer.paragraphs[0]
        footer.alignment = WD_ALIGN_PARAGRAPH.CENTER
        footer.text = self.options.company_name or ""

    def build(self) -> bytes:
        opts = self.options
        self.add_cover_page()
        self.add_executive_summary()
        self.add_assumptions()
        self.add_environment_analysis()
        self.add_migration_readiness()
        self.add_migration_options()
        self.add_migration_strategy()
        if opts.include_roks:
            self.add_roks_overview()
        if opts.include_vsi:
            self.add_vsi_overview()
        if opts.include_costs and (opts.include_roks or opts.include_vsi):
            self.add_cost_estimation()
        self.add_next_steps()
        self.add_appendices()
        self._add_header_footer()

        props = self.doc.core_properties
        props.title = f"VMware Migration Assessment - {opts.client_name or 'Client'}"
        props.author = opts.company_name or opts.prepared_by

        buf = io.BytesIO()
        self.doc.save(buf)
        return buf.getvalue()


def generate_docx_report(
    data: "RVToolsData",
    options: Optional[DocxExportOptions] = None,
    pricing: Optional["PricingCatalog"] = None,
) -> bytes:
    builder = DocxReportBuilder(data, options or DocxExportOptions(), pricing)
    content = builder.build()
    logger.info(f"DOCX report: {len(builder.readiness)} VMs assessed, {len(content):,} bytes")
    return content
