"""
PDF infrastructure analysis report.
Cover page, then one section per topic; distributions are rendered as tables.
"""
from __future__ import annotations

import io
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, List

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import (
    HRFlowable, PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle,
)

from rvtools2ibm.pipeline.complexity import (
    calculate_complexity_scores,
    get_assessment_summary,
    get_complexity_chart_data,
    get_complexity_distribution,
)
from rvtools2ibm.pipeline.exclusion import is_vmware_infrastructure_vm
from rvtools2ibm.pipeline.os_compat import MIGRATION_MODES, count_by_os_status
from rvtools2ibm.pipeline.preflight import calculate_preflight_counts
from rvtools2ibm.pipeline.remediation import count_remediation_severity, generate_remediation_items
from rvtools2ibm.utils.formatters import (
    format_hardware_version,
    format_number,
    format_power_state,
    mib_to_gib,
    mib_to_tib,
    round_half_up,
    truncate,
)
from rvtools2ibm.utils.logging import get_logger

if TYPE_CHECKING:
    from rvtools2ibm.rvtools.models import RVToolsData, VirtualMachine

logger = get_logger(__name__)

_HDR    = colors.HexColor("#0F62FE")
_HDR_DK = colors.HexColor("#002D9C")
_GREY_P = colors.HexColor("#F4F4F4")
_GRID   = colors.HexColor("#C6C6C6")


@dataclass
class PDFExportOptions:
    include_dashboard: bool = True
    include_compute: bool = True
    include_storage: bool = True
    include_network: bool = True
    include_clusters: bool = True
    include_hosts: bool = True
    include_readiness: bool = True
    mode: str = "roks"
    client_name: str = ""


# ══════════════════════════════════════════════════════════════════════════════
# Styles and table helpers
# ══════════════════════════════════════════════════════════════════════════════

def _styles() -> dict:
    styles = getSampleStyleSheet()
    return {
        "cover":   ParagraphStyle("Cover",   parent=styles["Title"],    fontSize=26, leading=32, textColor=_HDR, alignment=TA_CENTER),
        "sub":     ParagraphStyle("Sub",     parent=styles["Normal"],   fontSize=13, textColor=colors.grey, alignment=TA_CENTER, spaceAfter=6),
        "h1":      ParagraphStyle("H1",      parent=styles["Heading1"], fontSize=16, textColor=_HDR, spaceAfter=6),
        "h2":      ParagraphStyle("H2",      parent=styles["Heading2"], fontSize=12, textColor=_HDR_DK, spaceBefore=12, spaceAfter=4),
        "body":    ParagraphStyle("Body",    parent=styles["Normal"],   fontSize=9, spaceAfter=4),
        "caption": ParagraphStyle("Caption", parent=styles["Normal"],   fontSize=8, textColor=colors.grey, spaceAfter=8),
    }


def _table(rows: List[List[Any]], col_widths: List[float], font_size: float = 8.5) -> Table:
    t = Table(rows, colWidths=col_widths, repeatRows=1)
    t.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), _HDR),
        ("TEXTCOLOR",  (0, 0), (-1, 0), colors.white),
        ("FONTNAME",   (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE",   (0, 0), (-1, -1), font_size),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, _GREY_P]),
        ("GRID",       (0, 0), (-1, -1), 0.5, _GRID),
        ("VALIGN",     (0, 0), (-1, -1), "MIDDLE"),
        ("ALIGN",      (1, 1), (-1, -1), "RIGHT"),
        ("LEFTPADDING",  (0, 0), (-1, -1), 4),
        ("RIGHTPADDING", (0, 0), (-1, -1), 4),
        ("TOPPADDING",   (0, 0), (-1, -1), 3),
        ("BOTTOMPADDING",(0, 0), (-1, -1), 3),
    ]))
    return t


def _kpi_table(pairs: List[tuple[str, Any]]) -> Table:
    """Metric/value pairs laid out two per row."""
    rows = [["Metric", "Value", "Metric", "Value"]]
    for i in range(0, len(pairs), 2):
        left = pairs[i]
        right = pairs[i + 1] if i + 1 < len(pairs) else ("", "")
        rows.append([left[0], str(left[1]), right[0], str(right[1])])
    return _table(rows, [5 * cm, 3.5 * cm, 5 * cm, 3.5 * cm], font_size=9)


def _distribution(title: str, counts: dict, unit: str, limit: int = 10) -> List[List[Any]]:
    items = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)[:limit]
    return [[title, unit]] + [[truncate(str(k) or "Unknown", 45), format_number(v)] for k, v in items]


# ══════════════════════════════════════════════════════════════════════════════
# PDF report
# ══════════════════════════════════════════════════════════════════════════════

def generate_pdf_report(data: "RVToolsData", options: PDFExportOptions | None = None) -> bytes:
    opts = options or PDFExportOptions()
    if opts.mode not in MIGRATION_MODES:
        raise ValueError(f"Unknown migration mode '{opts.mode}'")

    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=A4,
        rightMargin=1.5 * cm,
        leftMargin=1.5 * cm,
        topMargin=1.8 * cm,
        bottomMargin=1.5 * cm,
        title="VMware Infrastructure Analysis Report",
    )
    s = _styles()

    vms = [vm for vm in data.vms if not vm.template and not is_vmware_infrastructure_vm(vm.vm_name)]
    powered_on = [vm for vm in vms if vm.is_powered_on]

    story: list = []
    _cover(story, s, data, vms, opts)
    if opts.include_dashboard:
        _dashboard(story, s, data, vms, powered_on)
    if opts.include_compute:
        _compute(story, s, vms, powered_on)
    if opts.include_storage:
        _storage(story, s, data, vms)
    if opts.include_network:
        _network(story, s, data, powered_on)
    if opts.include_clusters:
        _clusters(story, s, data, vms)
    if opts.include_hosts:
        _hosts(story, s, data)
    if opts.include_readiness:
        _readiness(story, s, data, vms, opts.mode)

    doc.build(story, onFirstPage=_page_footer, onLaterPages=_page_footer)
    logger.info(f"PDF report: {buf.tell():,} bytes")
    return buf.getvalue()


def _page_footer(canvas, doc):
    canvas.saveState()
    canvas.setFont("Helvetica", 7)
    canvas.setFillColor(colors.grey)
    canvas.drawRightString(A4[0] - 1.5 * cm, 0.8 * cm, f"VMware Infrastructure Analysis Report  |  Page {doc.page}")
    canvas.restoreState()


# ── Cover ────────────────────────────────────────────────────────────────────

def _cover(story: list, s: dict, data: "RVToolsData", vms: List["VirtualMachine"], opts: PDFExportOptions):
    story.append(Spacer(1, 5 * cm))
    story.append(Paragraph("VMware Infrastructure<br/>Analysis Report", s["cover"]))
    story.append(Spacer(1, 0.4 * cm))
    story.append(Paragraph("Comprehensive Environment Assessment", s["sub"]))
    if opts.client_name:
        story.append(Paragraph(f"Prepared for {opts.client_name}", s["sub"]))
    story.append(HRFlowable(width="100%", thickness=2, color=_HDR, spaceBefore=12, spaceAfter=18))

    story.append(_kpi_table([
        ("Virtual Machines", format_number(len(vms))),
        ("ESXi Hosts", format_number(len(data.hosts))),
        ("Clusters", format_number(len(data.clusters))),
        ("Datastores", format_number(len(data.datastores))),
    ]))
    story.append(Spacer(1, 1 * cm))

    meta = data.metadata
    story.append(Paragraph(f"<b>Source file:</b> {meta.file_name}", s["body"]))
    if meta.collection_date:
        story.append(Paragraph(f"<b>Collected:</b> {meta.collection_date.strftime('%B %d, %Y')}", s["body"]))
    if meta.vcenter_version:
        story.append(Paragraph(f"<b>vCenter:</b> {meta.vcenter_version}", s["body"]))
    story.append(Paragraph(f"Generated {datetime.now().strftime('%B %d, %Y %H:%M')}", s["caption"]))


# ── Dashboard ────────────────────────────────────────────────────────────────

def _dashboard(story: list, s: dict, data: "RVToolsData", vms, powered_on):
    story.append(PageBreak())
    story.append(Paragraph("Dashboard Overview", s["h1"]))

    total_memory = round_half_up(sum(mib_to_gib(vm.memory_mib) for vm in vms))
    storage_tib = round(sum(mib_to_tib(vm.provisioned_mib) for vm in vms), 1)
    powered_off = sum(1 for vm in vms if vm.power_state == "poweredOff")
    story.append(_kpi_table([
        ("Total VMs", format_number(len(vms))),
        ("Powered On", format_number(len(powered_on))),
        ("Total vCPUs", format_number(sum(vm.cpus for vm in vms))),
        ("Total Memory", f"{format_number(total_memory)} GiB"),
        ("Provisioned Storage", f"{storage_tib} TiB"),
        ("Powered Off", format_number(powered_off)),
        ("ESXi Hosts", format_number(len(data.hosts))),
        ("Clusters", format_number(len(data.clusters))),
    ]))

    power = Counter(format_power_state(vm.power_state) for vm in vms)
    os_counts = Counter(vm.guest_os or "Unknown" for vm in vms)
    clusters = Counter(vm.cluster or "No Cluster" for vm in vms)
    hw = Counter(format_hardware_version(vm.hardware_version) or "Unknown" for vm in vms)
    tools_names = {t.vm_name: t.tools_status or "Unknown" for t in data.tools}
    tools = Counter(tools_names.get(vm.vm_name, "Not Installed") for vm in vms)

    story.append(Paragraph("Power State Distribution", s["h2"]))
    story.append(_table(_distribution("Power State", power, "VMs"), [12 * cm, 4 * cm]))
    story.append(Paragraph("Top Operating Systems", s["h2"]))
    story.append(_table(_distribution("Guest OS", os_counts, "VMs"), [12 * cm, 4 * cm]))
    story.append(Paragraph("VMs by Cluster", s["h2"]))
    story.append(_table(_distribution("Cluster", clusters, "VMs"), [12 * cm, 4 * cm]))
    story.append(Paragraph("Hardware Versions", s["h2"]))
    story.append(_table(_distribution("HW Version", hw, "VMs"), [12 * cm, 4 * cm]))
    story.append(Paragraph("VMware Tools Status", s["h2"]))
    story.append(_table(_distribution("Tools Status", tools, "VMs"), [12 * cm, 4 * cm]))


# ── Compute ──────────────────────────────────────────────────────────────────

def _memory_bucket(gib: float) -> str:
    for limit, label in ((4, "0-4 GiB"), (8, "5-8 GiB"), (16, "9-16 GiB"), (32, "17-32 GiB"), (64, "33-64 GiB")):
        if gib <= limit:
            return label
    return "64+ GiB"


def _compute(story: list, s: dict, vms, powered_on):
    story.append(PageBreak())
    story.append(Paragraph("Compute Analysis", s["h1"]))

    total_vcpus = sum(vm.cpus for vm in vms)
    total_memory = sum(mib_to_gib(vm.memory_mib) for vm in vms)
    story.append(_kpi_table([
        ("Total vCPUs", format_number(total_vcpus)),
        ("Powered On vCPUs", format_number(sum(vm.cpus for vm in powered_on))),
        ("Total Memory", f"{format_number(round_half_up(total_memory))} GiB"),
        ("Powered On Memory", f"{format_number(round_half_up(sum(mib_to_gib(vm.memory_mib) for vm in powered_on)))} GiB"),
        ("Avg vCPU/VM", f"{total_vcpus / len(vms):.1f}" if vms else "0"),
        ("Avg Memory/VM", f"{total_memory / len(vms):.1f} GiB" if vms else "0 GiB"),
    ]))

    vcpu_dist = Counter(f"{vm.cpus} vCPU" for vm in vms)
    mem_dist = Counter(_memory_bucket(mib_to_gib(vm.memory_mib)) for vm in vms)
    story.append(Paragraph("vCPU Distribution", s["h2"]))
    story.append(_table(_distribution("vCPUs", vcpu_dist, "VMs", limit=12), [12 * cm, 4 * cm]))
    story.append(Paragraph("Memory Distribution", s["h2"]))
    story.append(_table(_distribution("Memory", mem_dist, "VMs"), [12 * cm, 4 * cm]))

    top_cpu = sorted(vms, key=lambda vm: vm.cpus, reverse=True)[:10]
    story.append(Paragraph("Top 10 VMs by vCPU", s["h2"]))
    story.append(_table(
        [["VM", "vCPUs", "Memory (GiB)"]]
        + [[truncate(vm.vm_name, 50), vm.cpus, round_half_up(mib_to_gib(vm.memory_mib))] for vm in top_cpu],
        [11 * cm, 2.5 * cm, 3 * cm],
    ))
    top_mem = sorted(vms, key=lambda vm: vm.memory_mib, reverse=True)[:10]
    story.append(Paragraph("Top 10 VMs by Memory", s["h2"]))
    story.append(_table(
        [["VM", "Memory (GiB)", "vCPUs"]]
        + [[truncate(vm.vm_name, 50), round_half_up(mib_to_gib(vm.memory_mib)), vm.cpus] for vm in top_mem],
        [11 * cm, 3 * cm, 2.5 * cm],
    ))


# ── Storage ──────────────────────────────────────────────────────────────────

def _storage(story: list, s: dict, data: "RVToolsData", vms):
    story.append(PageBreak())
    story.append(Paragraph("Storage Analysis", s["h1"]))

    datastores = data.datastores
    capacity = sum(mib_to_tib(ds.capacity_mib) for ds in datastores)
    free = sum(mib_to_tib(ds.free_mib) for ds in datastores)
    used = capacity - free
    avg_util = round_half_up(used / capacity * 100) if capacity else 0
    story.append(_kpi_table([
        ("Total Capacity", f"{capacity:.1f} TiB"),
        ("Used Storage", f"{used:.1f} TiB"),
        ("Free Storage", f"{free:.1f} TiB"),
        ("Avg Utilization", f"{avg_util}%"),
        ("VM Provisioned", f"{sum(mib_to_tib(vm.provisioned_mib) for vm in vms):.1f} TiB"),
        ("Datastores", format_number(len(datastores))),
    ]))

    by_type: Counter = Counter()
    for ds in datastores:
        by_type[ds.type or "Unknown"] += round_half_up(mib_to_gib(ds.capacity_mib))
    story.append(Paragraph("Storage by Type", s["h2"]))
    story.append(_table(_distribution("Type", by_type, "Capacity (GiB)"), [12 * cm, 4 * cm]))

    top = sorted(datastores, key=lambda ds: ds.capacity_mib, reverse=True)[:10]
    story.append(Paragraph("Top Datastores by Capacity", s["h2"]))
    story.append(_table(
        [["Datastore", "Type", "Capacity (GiB)", "Used %", "VMs"]]
        + [
            [truncate(ds.name, 40), ds.type, format_number(round_half_up(mib_to_gib(ds.capacity_mib))),
             f"{round_half_up(ds.used_percent)}%", ds.vm_count]
            for ds in top
        ],
        [7 * cm, 2 * cm, 3 * cm, 2 * cm, 2 * cm],
    ))


# ── Network ──────────────────────────────────────────────────────────────────

def _network(story: list, s: dict, data: "RVToolsData", powered_on):
    story.append(PageBreak())
    story.append(Paragraph("Network Analysis", s["h1"]))

    names = {vm.vm_name for vm in powered_on}
    nics = [n for n in data.networks if n.vm_name in names]
    connected = sum(1 for n in nics if n.connected)
    port_groups = Counter(n.network_name for n in nics if n.network_name)
    switches = {n.switch_name for n in nics if n.switch_name}
    story.append(_kpi_table([
        ("Total NICs", format_number(len(nics))),
        ("Connected NICs", format_number(connected)),
        ("Port Groups", format_number(len(port_groups))),
        ("Virtual Switches", format_number(len(switches))),
        ("Disconnected NICs", format_number(len(nics) - connected)),
        ("Avg NICs per VM", f"{len(nics) / len(powered_on):.1f}" if powered_on else "0"),
    ]))

    adapters = Counter(n.adapter_type or "Unknown" for n in nics)
    per_vm = Counter(n.vm_name for n in nics)
    nic_count_dist = Counter(f"{per_vm.get(vm.vm_name, 0)} NIC(s)" for vm in powered_on)
    story.append(Paragraph("NIC Adapter Types", s["h2"]))
    story.append(_table(_distribution("Adapter", adapters, "NICs"), [12 * cm, 4 * cm]))
    story.append(Paragraph("VMs by NIC Count", s["h2"]))
    story.append(_table(_distribution("NICs per VM", nic_count_dist, "VMs"), [12 * cm, 4 * cm]))
    story.append(Paragraph("Top Port Groups", s["h2"]))
    story.append(_table(_distribution("Port Group", port_groups, "NICs"), [12 * cm, 4 * cm]))


# ── Clusters and hosts ───────────────────────────────────────────────────────

def _clusters(story: list, s: dict, data: "RVToolsData", vms):
    story.append(PageBreak())
    story.append(Paragraph("Cluster Analysis", s["h1"]))

    clusters = data.clusters
    total_hosts = sum(c.host_count for c in clusters)
    story.append(_kpi_table([
        ("Total Clusters", format_number(len(clusters))),
        ("Total Hosts", format_number(total_hosts)),
        ("HA Enabled", format_number(sum(1 for c in clusters if c.ha_enabled))),
        ("DRS Enabled", format_number(sum(1 for c in clusters if c.drs_enabled))),
        ("Avg Hosts/Cluster", f"{total_hosts / len(clusters):.1f}" if clusters else "0"),
        ("Avg VMs/Cluster", f"{len(vms) / len(clusters):.1f}" if clusters else "0"),
    ]))

    story.append(Paragraph("Clusters", s["h2"]))
    story.append(_table(
        [["Cluster", "Hosts", "VMs", "Cores", "Memory (GiB)", "HA", "DRS"]]
        + [
            [truncate(c.name, 35), c.host_count, c.vm_count, c.cpu_cores,
             format_number(round_half_up(mib_to_gib(c.total_memory_mib))),
             "Yes" if c.ha_enabled else "No", "Yes" if c.drs_enabled else "No"]
            for c in sorted(clusters, key=lambda c: c.vm_count, reverse=True)
        ],
        [5.5 * cm, 1.6 * cm, 1.6 * cm, 1.8 * cm, 2.8 * cm, 1.4 * cm, 1.4 * cm],
    ))


def _hosts(story: list, s: dict, data: "RVToolsData"):
    story.append(PageBreak())
    story.append(Paragraph("Host Analysis", s["h1"]))

    hosts = data.hosts
    memory_tib = sum(mib_to_tib(h.memory_mib) for h in hosts)
    story.append(_kpi_table([
        ("ESXi Hosts", format_number(len(hosts))),
        ("Total CPU Cores", format_number(sum(h.total_cpu_cores for h in hosts))),
        ("Total Memory", f"{memory_tib:.1f} TiB"),
        ("Avg VMs/Host", f"{sum(h.vm_count for h in hosts) / len(hosts):.1f}" if hosts else "0"),
    ]))

    story.append(Paragraph("ESXi Version Distribution", s["h2"]))
    story.append(_table(_distribution("ESXi Version", Counter(h.esxi_version or "Unknown" for h in hosts), "Hosts"),
                        [12 * cm, 4 * cm]))
    story.append(Paragraph("Hardware Vendors", s["h2"]))
    story.append(_table(_distribution("Vendor", Counter(h.vendor or "Unknown" for h in hosts), "Hosts"),
                        [12 * cm, 4 * cm]))

    story.append(Paragraph("Hosts", s["h2"]))
    story.append(_table(
        [["Host", "Cluster", "ESXi", "Cores", "Memory (GiB)", "VMs"]]
        + [
            [truncate(h.name, 32), truncate(h.cluster, 20), h.esxi_version, h.total_cpu_cores,
             format_number(round_half_up(mib_to_gib(h.memory_mib))), h.vm_count]
            for h in sorted(hosts, key=lambda h: h.vm_count, reverse=True)
        ],
        [5 * cm, 3.5 * cm, 2 * cm, 1.6 * cm, 2.6 * cm, 1.5 * cm],
    ))


# ── Migration readiness ──────────────────────────────────────────────────────

def _readiness(story: list, s: dict, data: "RVToolsData", vms, mode: str):
    story.append(PageBreak())
    target = "Red Hat OpenShift on IBM Cloud (ROKS)" if mode == "roks" else "IBM Cloud VPC Virtual Servers"
    story.append(Paragraph("Migration Readiness", s["h1"]))
    story.append(Paragraph(f"Target platform: {target}", s["caption"]))

    scores = calculate_complexity_scores(vms, data.disks, data.networks, mode)
    summary = get_assessment_summary(scores)
    items = generate_remediation_items(calculate_preflight_counts(data, mode, vms), mode)
    severity = count_remediation_severity(items)

    story.append(_kpi_table([
        ("VMs Assessed", format_number(summary.total_vms)),
        ("Average Complexity", summary.average_score),
        ("Blocking Issues", format_number(severity["blockers"])),
        ("Warnings", format_number(severity["warnings"])),
    ]))

    story.append(Paragraph("Complexity Distribution", s["h2"]))
    chart = get_complexity_chart_data(get_complexity_distribution(scores))
    story.append(_table([["Category", "VMs"]] + [[c["label"], c["value"]] for c in chart], [12 * cm, 4 * cm]))

    story.append(Paragraph("OS Compatibility", s["h2"]))
    story.append(_table(_distribution("Status", count_by_os_status(vms, mode), "VMs"), [12 * cm, 4 * cm]))

    story.append(Paragraph("Remediation Summary", s["h2"]))
    if items:
        story.append(_table(
            [["Check", "Severity", "Affected VMs"]]
            + [[truncate(item.name, 60), item.severity.capitalize(), item.affected_count] for item in items],
            [10 * cm, 3 * cm, 3 * cm],
        ))
    else:
        story.append(Paragraph("No remediation required.", s["body"]))
