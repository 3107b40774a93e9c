"""
Excel workbook export of an RVTools analysis.
Sheets: Executive Summary, VM List, Migration Readiness, ROKS Sizing,
VPC VSI Mapping, Wave Planning, Host List, Datastore List.
"""
from __future__ import annotations

import io
from datetime import datetime
from typing import TYPE_CHECKING, Any, List

import openpyxl
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from rvtools2ibm.constants import HW_VERSION_MINIMUM, HW_VERSION_RECOMMENDED, SNAPSHOT_BLOCKER_AGE_DAYS
from rvtools2ibm.ibmcloud.profiles import create_vm_profile_mappings, get_profile_family_from_name
from rvtools2ibm.ibmcloud.sizing import (
    CPU_OVERCOMMIT_RATIO,
    MEMORY_OVERCOMMIT_RATIO,
    calculate_worker_sizing,
)
from rvtools2ibm.pipeline.complexity import calculate_complexity_scores
from rvtools2ibm.pipeline.os_compat import MIGRATION_MODES, get_os_compatibility
from rvtools2ibm.pipeline.preflight import is_tools_missing
from rvtools2ibm.pipeline.waves import build_vm_wave_data, create_complexity_waves
from rvtools2ibm.utils.formatters import format_hardware_version, get_hardware_version_number, mib_to_gib, round_half_up
from rvtools2ibm.utils.logging import get_logger

if TYPE_CHECKING:
    from rvtools2ibm.rvtools.models import RVToolsData

logger = get_logger(__name__)

# ══════════════════════════════════════════════════════════════════════════════
# Colour palette
# ══════════════════════════════════════════════════════════════════════════════
_BLUE    = "0F62FE"  # header bg
_BLUE_LT = "D0E2FF"  # section header
_GREY    = "F4F4F4"  # alternating row
_RED     = "FFD7D9"
_YELLOW  = "FCF4D6"
_WHITE   = "FFFFFF"


def _thin_border():
    s = Side(border_style="thin", color="C6C6C6")
    return Border(left=s, right=s, top=s, bottom=s)


# ══════════════════════════════════════════════════════════════════════════════
# Workbook
# ══════════════════════════════════════════════════════════════════════════════

def generate_excel_report(data: "RVToolsData", mode: str = "roks") -> bytes:
    """Build the analysis workbook and return it as .xlsx bytes.

    ``mode`` selects the OS compatibility table for the readiness sheet.
    Wave planning always uses the ROKS (MTV) complexity waves.
    """
    if mode not in MIGRATION_MODES:
        raise ValueError(f"Unknown migration mode '{mode}'")

    wb = openpyxl.Workbook()
    wb.remove(wb.active)  # remove default sheet

    _sheet_summary(wb, data)
    _sheet_vm_list(wb, data)
    _sheet_readiness(wb, data, mode)
    _sheet_roks_sizing(wb, data)
    _sheet_vsi_mapping(wb, data)
    _sheet_waves(wb, data)
    _sheet_hosts(wb, data)
    _sheet_datastores(wb, data)

    buf = io.BytesIO()
    wb.save(buf)
    logger.info(f"Excel report: {len(wb.sheetnames)} sheets, {buf.tell():,} bytes")
    return buf.getvalue()


# ── helpers ──────────────────────────────────────────────────────────────────

def _hdr_fill():
    return PatternFill("solid", fgColor=_BLUE)


def _hdr_fill_lt():
    return PatternFill("solid", fgColor=_BLUE_LT)


def _grey_fill():
    return PatternFill("solid", fgColor=_GREY)


def _set_col_widths(ws, widths: List[float]):
    for i, w in enumerate(widths, 1):
        ws.column_dimensions[get_column_letter(i)].width = w


def _write_table_header(ws, row: int, cols: List[str]):
    for ci, label in enumerate(cols, 1):
        c = ws.cell(row=row, column=ci, value=label)
        c.font = Font(bold=True, color=_WHITE, name="Calibri", size=10)
        c.fill = _hdr_fill()
        c.border = _thin_border()
        c.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)


def _write_row(ws, row: int, values: List[Any], alt: bool = False, fill_hex: str | None = None):
    fill = PatternFill("solid", fgColor=fill_hex) if fill_hex else (_grey_fill() if alt else PatternFill())
    for ci, val in enumerate(values, 1):
        c = ws.cell(row=row, column=ci, value=val)
        c.fill = fill
        c.border = _thin_border()
        c.font = Font(name="Calibri", size=10)
        c.alignment = Alignment(vertical="top")


def _write_table(ws, cols: List[str], rows: List[List[Any]], widths: List[float], fills: List[str | None] | None = None):
    _write_table_header(ws, 1, cols)
    for i, values in enumerate(rows, 2):
        _write_row(ws, i, values, alt=(i % 2 == 0), fill_hex=fills[i - 2] if fills else None)
    ws.auto_filter.ref = f"A1:{get_column_letter(len(cols))}1"
    ws.freeze_panes = "A2"
    _set_col_widths(ws, widths)


def _write_key_values(ws, title: str, sections: List[tuple[str, List[tuple[str, Any]]]]):
    ws.sheet_view.showGridLines = False
    t = ws["A1"]
    t.value = title
    t.font = Font(bold=True, name="Calibri", size=16, color=_BLUE)
    ws.row_dimensions[1].height = 28

    row = 3
    for heading, pairs in sections:
        for ci in (1, 2):
            ws.cell(row=row, column=ci).fill = _hdr_fill_lt()
        ws.cell(row=row, column=1, value=heading).font = Font(bold=True, name="Calibri", size=11)
        row += 1
        for i, (k, v) in enumerate(pairs):
            fill = _grey_fill() if i % 2 else PatternFill()
            for ci, val in ((1, k), (2, v)):
                c = ws.cell(row=row, column=ci, value=val)
                c.fill = fill
                c.font = Font(name="Calibri", size=10)
                c.border = _thin_border()
            row += 1
        row += 1  # blank row between sections

    _set_col_widths(ws, [34, 24])


# ── Sheet 1: Executive Summary ───────────────────────────────────────────────

def _sheet_summary(wb, data: "RVToolsData"):
    ws = wb.create_sheet("Executive Summary")
    vms = [vm for vm in data.vms if not vm.template]
    powered_on = [vm for vm in vms if vm.is_powered_on]

    _write_key_values(ws, "RVTools Analysis Report", [
        ("Report", [
            ("Source File", data.metadata.file_name),
            ("Generated", datetime.now().strftime("%Y-%m-%d %H:%M")),
        ]),
        ("Infrastructure Summary", [
            ("Total VMs", len(vms)),
            ("Powered On VMs", len(powered_on)),
            ("Powered Off VMs", sum(1 for vm in vms if vm.power_state == "poweredOff")),
            ("Total vCPUs", sum(vm.cpus for vm in vms)),
            ("Total Memory (GiB)", round_half_up(sum(mib_to_gib(vm.memory_mib) for vm in vms))),
            ("Total Storage (TiB)", round(sum(mib_to_gib(vm.provisioned_mib) for vm in vms) / 1024, 1)),
            ("Total Clusters", len(data.clusters)),
            ("Total Hosts", len(data.hosts)),
            ("Total Datastores", len(data.datastores)),
        ]),
    ])


# ── Sheet 2: VM List ─────────────────────────────────────────────────────────

def _sheet_vm_list(wb, data: "RVToolsData"):
    ws = wb.create_sheet("VM List")
    cols = [
        "VM Name", "Power State", "Guest OS", "vCPUs", "Memory (GiB)", "Provisioned (GiB)",
        "In Use (GiB)", "HW Version", "Cluster", "Host", "Datacenter", "Folder", "Resource Pool",
    ]
    rows = [
        [
            vm.vm_name,
            vm.power_state,
            vm.guest_os,
            vm.cpus,
            round_half_up(mib_to_gib(vm.memory_mib)),
            round_half_up(mib_to_gib(vm.provisioned_mib)),
            round_half_up(mib_to_gib(vm.in_use_mib)),
            format_hardware_version(vm.hardware_version),
            vm.cluster,
            vm.host,
            vm.datacenter,
            vm.folder or "",
            vm.resource_pool or "",
        ]
        for vm in data.vms if not vm.template
    ]
    _write_table(ws, cols, rows, [30, 12, 36, 7, 12, 15, 12, 10, 18, 24, 16, 20, 20])


# ── Sheet 3: Migration Readiness ─────────────────────────────────────────────

def _hw_status(hw: int) -> str:
    if hw >= HW_VERSION_RECOMMENDED:
        return "Recommended"
    if hw >= HW_VERSION_MINIMUM:
        return "Supported"
    return "Upgrade Required"


def _sheet_readiness(wb, data: "RVToolsData", mode: str):
    ws = wb.create_sheet("Migration Readiness")
    tools_by_name = {t.vm_name: t for t in data.tools}
    old_snapshots = {s.vm_name for s in data.snapshots if s.age_in_days > SNAPSHOT_BLOCKER_AGE_DAYS}
    any_snapshots = {s.vm_name for s in data.snapshots}
    cd_connected = {cd.vm_name for cd in data.cds if cd.connected}
    rdm = {d.vm_name for d in data.disks if d.raw}

    cols = [
        "VM Name", "OS Compatibility", "OS", "HW Version", "HW Status", "Tools Status",
        "Has Snapshots", "CD Connected", "Issues", "Ready",
    ]
    rows, fills = [], []
    for vm in data.active_vms:
        tools = tools_by_name.get(vm.vm_name)
        compat = get_os_compatibility(vm.guest_os, mode)
        status = compat.compatibility_status if mode == "roks" else compat.status
        display = compat.display_name if mode == "roks" else (vm.guest_os or "Unknown")
        hw = get_hardware_version_number(vm.hardware_version)

        issues = []
        if is_tools_missing(tools):
            issues.append("No VMware Tools")
        if vm.vm_name in old_snapshots:
            issues.append("Old Snapshots")
        if vm.vm_name in cd_connected:
            issues.append("CD-ROM Connected")
        if vm.vm_name in rdm:
            issues.append("RDM Disk")
        if hw < HW_VERSION_MINIMUM:
            issues.append("Outdated HW Version")
        if status == "unsupported":
            issues.append("Unsupported OS")

        rows.append([
            vm.vm_name,
            status,
            display,
            format_hardware_version(vm.hardware_version),
            _hw_status(hw),
            tools.tools_status if tools and tools.tools_status else "Unknown",
            "Yes" if vm.vm_name in any_snapshots else "No",
            "Yes" if vm.vm_name in cd_connected else "No",
            ", ".join(issues) or "None",
            "No" if issues else "Yes",
        ])
        fills.append(_YELLOW if issues else None)

    _write_table(ws, cols, rows, [30, 20, 34, 10, 16, 18, 12, 12, 50, 7], fills)


# ── Sheet 4: ROKS Sizing ─────────────────────────────────────────────────────

def _sheet_roks_sizing(wb, data: "RVToolsData"):
    ws = wb.create_sheet("ROKS Sizing")
    sizing = calculate_worker_sizing(data)
    src = sizing.source

    _write_key_values(ws, "ROKS Cluster Sizing", [
        ("Source Environment", [
            ("Total VMs", src.vm_count),
            ("Total vCPUs", src.vcpus),
            ("Total Memory (GiB)", round_half_up(src.memory_gib)),
            ("Total Storage (GiB)", round_half_up(src.storage_gib)),
        ]),
        ("Adjusted Requirements", [
            (f"Adjusted vCPUs ({CPU_OVERCOMMIT_RATIO}:1 ratio)", sizing.adjusted_vcpus),
            (f"Adjusted Memory ({MEMORY_OVERCOMMIT_RATIO}:1 ratio)", sizing.adjusted_memory_gib),
            ("ODF Storage (3x replication)", f"{round_half_up(sizing.odf_storage_gib / 1024)} TiB"),
        ]),
        ("Recommended ROKS Configuration", [
            ("Worker Profile", sizing.profile.name),
            ("Worker Count", sizing.worker_count),
            ("Total Cluster vCPUs", sizing.total_vcpus),
            ("Total Cluster Memory (GiB)", sizing.total_memory_gib),
        ]),
    ])


# ── Sheet 5: VPC VSI Mapping ─────────────────────────────────────────────────

def _sheet_vsi_mapping(wb, data: "RVToolsData"):
    ws = wb.create_sheet("VPC VSI Mapping")
    cols = [
        "VM Name", "Source vCPUs", "Source Memory (GiB)", "Recommended Profile",
        "Profile vCPUs", "Profile Memory (GiB)", "Profile Family",
    ]
    rows = [
        [
            m.vm_name,
            m.vcpus,
            m.memory_gib,
            m.profile.name,
            m.profile.vcpus,
            m.profile.memory_gib,
            get_profile_family_from_name(m.profile.name),
        ]
        for m in create_vm_profile_mappings(data.active_vms)
    ]
    _write_table(ws, cols, rows, [30, 12, 18, 20, 12, 18, 14])


# ── Sheet 6: Wave Planning ───────────────────────────────────────────────────

def _sheet_waves(wb, data: "RVToolsData"):
    ws = wb.create_sheet("Wave Planning")
    vms = data.active_vms
    scores = calculate_complexity_scores(vms, data.disks, data.networks, "roks")
    wave_data = build_vm_wave_data(vms, scores, data.disks, data.snapshots, data.tools, data.networks, "roks")
    provisioned = {vm.vm_name: vm.provisioned_mib for vm in vms}

    cols = [
        "VM Name", "Assigned Wave", "Complexity Score", "OS Status", "Has Blocker",
        "vCPUs", "Memory (GiB)", "Storage (GiB)",
    ]
    rows, fills = [], []
    for wave in create_complexity_waves(wave_data, "roks"):
        for vm in wave.vms:
            rows.append([
                vm.vm_name,
                wave.name,
                vm.complexity,
                vm.os_status,
                "Yes" if vm.has_blocker else "No",
                vm.vcpus,
                vm.memory_gib,
                round_half_up(mib_to_gib(provisioned.get(vm.vm_name, 0))),
            ])
            fills.append(_RED if vm.has_blocker else None)

    _write_table(ws, cols, rows, [30, 22, 16, 22, 12, 8, 13, 13], fills)


# ── Sheet 7: Host List ───────────────────────────────────────────────────────

def _sheet_hosts(wb, data: "RVToolsData"):
    ws = wb.create_sheet("Host List")
    cols = [
        "Host Name", "Power State", "Connection State", "ESXi Version", "ESXi Build",
        "CPU Model", "CPU Sockets", "Cores/Socket", "Total Cores", "CPU MHz",
        "Memory (GiB)", "VM Count", "Cluster", "Datacenter",
    ]
    rows = [
        [
            h.name, h.power_state, h.connection_state, h.esxi_version, h.esxi_build,
            h.cpu_model, h.cpu_sockets, h.cores_per_socket, h.total_cpu_cores, h.cpu_mhz,
            round_half_up(mib_to_gib(h.memory_mib)), h.vm_count, h.cluster, h.datacenter,
        ]
        for h in data.hosts
    ]
    _write_table(ws, cols, rows, [28, 12, 15, 14, 12, 36, 11, 12, 11, 9, 13, 9, 18, 16])


# ── Sheet 8: Datastore List ──────────────────────────────────────────────────

def _sheet_datastores(wb, data: "RVToolsData"):
    ws = wb.create_sheet("Datastore List")
    cols = [
        "Datastore Name", "Type", "Capacity (GiB)", "Free Space (GiB)",
        "Used (%)", "VM Count", "Host Count", "Datacenter",
    ]
    rows, fills = [], []
    for ds in data.datastores:
        used = round_half_up(ds.used_percent)
        rows.append([
            ds.name, ds.type,
            round_half_up(mib_to_gib(ds.capacity_mib)),
            round_half_up(mib_to_gib(ds.free_mib)),
            used, ds.vm_count, ds.host_count, ds.datacenter,
        ])
        fills.append(_RED if used >= 90 else (_YELLOW if used >= 80 else None))

    _write_table(ws, cols, rows, [30, 10, 14, 16, 10, 10, 11, 16], fills)
