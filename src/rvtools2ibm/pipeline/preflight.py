"""Pre-flight migration checks.

Every powered-on VM is run through the checks that apply to the target
(ROKS/MTV or VPC VSI). Each check produces a ``CheckResult``; failures of
blocker checks count as blockers, everything else as warnings.
"""

from __future__ import annotations

import re
from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Optional

from rvtools2ibm.constants import (
    HW_VERSION_MINIMUM,
    HW_VERSION_RECOMMENDED,
    LARGE_DISK_THRESHOLD_GB,
    SNAPSHOT_BLOCKER_AGE_DAYS,
    VPC_BOOT_DISK_MAX_GB,
    VPC_MAX_DISKS_PER_VM,
    VSI_MEMORY_MAX_GIB,
    VSI_MEMORY_WARNING_GIB,
)
from rvtools2ibm.pipeline.os_compat import (
    MIGRATION_MODES,
    get_roks_os_compatibility,
    get_vsi_os_compatibility,
)
from rvtools2ibm.utils.formatters import get_hardware_version_number, mib_to_gib, round_half_up
from rvtools2ibm.utils.logging import get_logger

if TYPE_CHECKING:
    from rvtools2ibm.rvtools.models import (
        RVToolsData,
        VCDInfo,
        VCPUInfo,
        VDiskInfo,
        VirtualMachine,
        VMemoryInfo,
        VNetworkInfo,
        VSnapshotInfo,
        VToolsInfo,
    )

logger = get_logger(__name__)

RFC1123_PATTERN = re.compile(r"^[a-z0-9]([a-z0-9-]{0,61}[a-z0-9])?$")
INVALID_HOSTNAMES = {"", "localhost", "localhost.localdomain", "localhost.local"}
TOOLS_NOT_INSTALLED = {"toolsNotInstalled", "guestToolsNotInstalled"}
TOOLS_NOT_RUNNING = {"toolsNotRunning", "guestToolsNotRunning"}


@dataclass(frozen=True)
class CheckDefinition:
    id: str
    name: str
    short_name: str
    category: str       # tools | storage | hardware | config | os
    severity: str       # blocker | warning | info
    description: str
    modes: tuple[str, ...]


@dataclass
class CheckResult:
    status: str         # pass | fail | warn | na
    value: Optional[str | int] = None
    threshold: Optional[str | int] = None
    message: Optional[str] = None


@dataclass
class CheckContext:
    """Inventory rows belonging to one VM."""
    tools: Optional["VToolsInfo"] = None
    snapshots: list["VSnapshotInfo"] = field(default_factory=list)
    disks: list["VDiskInfo"] = field(default_factory=list)
    networks: list["VNetworkInfo"] = field(default_factory=list)
    cds: list["VCDInfo"] = field(default_factory=list)
    cpu: Optional["VCPUInfo"] = None
    memory: Optional["VMemoryInfo"] = None


@dataclass
class VMCheckResults:
    id: str
    vm_name: str
    power_state: str
    cluster: str
    host: str
    guest_os: str
    checks: dict[str, CheckResult] = field(default_factory=dict)
    blocker_count: int = 0
    warning_count: int = 0

    @property
    def passed(self) -> bool:
        return self.blocker_count == 0


# ═══════════════════════════════════════════════════════════════════
# CHECK DEFINITIONS
# ═══════════════════════════════════════════════════════════════════

_ROKS = ("roks",)
_VSI = ("vsi",)
_BOTH = ("roks", "vsi")

CHECK_DEFINITIONS: list[CheckDefinition] = [

    # ── ROKS (MTV / OpenShift Virtualization) ───────────────────
    CheckDefinition("tools-installed", "VMware Tools Installed", "Tools", "tools", "blocker",
                    "VMware Tools must be installed for migration", _ROKS),
    CheckDefinition("tools-running", "VMware Tools Running", "Tools Run", "tools", "warning",
                    "VMware Tools should be running for best results", _ROKS),
    CheckDefinition("old-snapshots", "Old Snapshots (>30d)", "Snapshots", "storage", "blocker",
                    "Snapshots older than 30 days should be consolidated", _BOTH),
    CheckDefinition("rdm-disks", "RDM Disks", "RDM", "storage", "blocker",
                    "Raw Device Mapping disks are not supported", _BOTH),
    CheckDefinition("shared-disks", "Shared Disks", "Shared", "storage", "blocker",
                    "Shared/multi-writer disks are not supported", _BOTH),
    CheckDefinition("independent-disks", "Independent Disk Mode", "Indep Disk", "storage", "blocker",
                    "Independent disk mode is not supported for migration", _ROKS),
    CheckDefinition("cd-connected", "CD-ROM Connected", "CD-ROM", "hardware", "warning",
                    "CD-ROM should be disconnected before migration", _ROKS),
    CheckDefinition("hw-version", "Hardware Version", "HW Ver", "hardware", "warning",
                    f"Hardware version should be {HW_VERSION_MINIMUM} or higher", _ROKS),
    CheckDefinition("cbt-enabled", "CBT Enabled", "CBT", "config", "warning",
                    "Changed Block Tracking should be enabled for warm migration", _ROKS),
    CheckDefinition("rfc1123-name", "RFC 1123 Name", "Name", "config", "warning",
                    "VM name should be RFC 1123 compliant (lowercase, alphanumeric, hyphens)", _ROKS),
    CheckDefinition("cpu-hotplug", "CPU Hot Plug", "CPU HP", "config", "warning",
                    "CPU hot plug will be disabled after migration", _ROKS),
    CheckDefinition("mem-hotplug", "Memory Hot Plug", "Mem HP", "config", "warning",
                    "Memory hot plug will be disabled after migration", _ROKS),
    CheckDefinition("hostname-valid", "Valid Hostname", "Hostname", "config", "warning",
                    "Guest hostname should be configured (not localhost)", _ROKS),
    CheckDefinition("os-compatible", "OS Compatible", "OS", "os", "warning",
                    "Operating system compatibility with OpenShift Virtualization", _ROKS),

    # ── VSI (IBM Cloud VPC) ─────────────────────────────────────
    CheckDefinition("boot-disk-size", f"Boot Disk ≤{VPC_BOOT_DISK_MAX_GB}GB", "Boot Disk", "storage", "blocker",
                    f"VPC VSI boot disk limited to {VPC_BOOT_DISK_MAX_GB}GB maximum", _VSI),
    CheckDefinition("disk-count", f"Disk Count ≤{VPC_MAX_DISKS_PER_VM}", "Disk Cnt", "storage", "blocker",
                    f"VPC VSI limited to {VPC_MAX_DISKS_PER_VM} disks per instance", _VSI),
    CheckDefinition("memory-1tb", "Memory ≤1TB", "Mem 1TB", "hardware", "blocker",
                    "VPC VSI maximum memory is 1TB", _VSI),
    CheckDefinition("memory-512gb", "Memory ≤512GB", "Mem 512G", "hardware", "warning",
                    "Memory >512GB requires high-memory profiles with limited availability", _VSI),
    CheckDefinition("large-disks", "Disks ≤2TB", "Disk 2TB", "storage", "warning",
                    "Disks larger than 2TB may require splitting", _VSI),
    CheckDefinition("vsi-os", "VPC OS Supported", "VPC OS", "os", "blocker",
                    "Operating system must be supported by IBM Cloud VPC", _VSI),
    CheckDefinition("vsi-tools", "VMware Tools", "Tools", "tools", "warning",
                    "VMware Tools needed for clean VM export", _VSI),
]


def get_checks_for_mode(mode: str) -> list[CheckDefinition]:
    return [c for c in CHECK_DEFINITIONS if mode in c.modes]


def get_check_definition(check_id: str) -> Optional[CheckDefinition]:
    for check in CHECK_DEFINITIONS:
        if check.id == check_id:
            return check
    return None


# ═══════════════════════════════════════════════════════════════════
# HELPERS
# ═══════════════════════════════════════════════════════════════════

def is_rfc1123_compliant(name: str) -> bool:
    if not name or len(name) > 63:
        return False
    return bool(RFC1123_PATTERN.match(name.lower()))


def is_valid_hostname(hostname: Optional[str]) -> bool:
    return (hostname or "").strip().lower() not in INVALID_HOSTNAMES


def is_tools_missing(tools: Optional["VToolsInfo"]) -> bool:
    return tools is None or tools.tools_status in TOOLS_NOT_INSTALLED


def find_boot_disk(disks: list["VDiskInfo"]) -> Optional["VDiskInfo"]:
    """The boot disk is the one with the lowest device key."""
    if not disks:
        return None
    return min(disks, key=lambda d: d.disk_key or 0)


def _clip(text: str, length: int = 30) -> str:
    return (text or "")[:length]


# ═══════════════════════════════════════════════════════════════════
# CHECK EVALUATORS
# ═══════════════════════════════════════════════════════════════════

def _check_tools_installed(vm: "VirtualMachine", ctx: CheckContext) -> CheckResult:
    if ctx.tools is None:
        return CheckResult("fail", "No data", message="No VMware Tools info found for this VM")
    status = (ctx.tools.tools_status or "").lower()
    if not status or "notinstalled" in status:
        return CheckResult("fail", ctx.tools.tools_status or "Unknown", message="VMware Tools not installed")
    return CheckResult("pass", ctx.tools.tools_status)


def _check_tools_running(vm: "VirtualMachine", ctx: CheckContext) -> CheckResult:
    status = ctx.tools.tools_status if ctx.tools else ""
    if status in TOOLS_NOT_RUNNING:
        return CheckResult("fail", status, message="VMware Tools installed but not running")
    if not status or status == "toolsNotInstalled":
        return CheckResult("na", message="Tools not installed")
    return CheckResult("pass", status)


def _check_old_snapshots(vm: "VirtualMachine", ctx: CheckContext) -> CheckResult:
    old = [s for s in ctx.snapshots if s.age_in_days > SNAPSHOT_BLOCKER_AGE_DAYS]
    if old:
        oldest = max(s.age_in_days for s in old)
        return CheckResult(
            "fail", f"{len(old)} snapshots",
            threshold=f">{SNAPSHOT_BLOCKER_AGE_DAYS} days",
            message=f"Oldest snapshot: {oldest} days",
        )
    if ctx.snapshots:
        return CheckResult("pass", f"{len(ctx.snapshots)} snapshots", message="All snapshots within age limit")
    return CheckResult("pass", "No snapshots")


def _check_rdm_disks(vm: "VirtualMachine", ctx: CheckContext) -> CheckResult:
    rdm = [d for d in ctx.disks if d.raw]
    if rdm:
        return CheckResult("fail", f"{len(rdm)} RDM disk(s)", message=", ".join(d.disk_label for d in rdm))
    return CheckResult("pass", "No RDM disks")


def _check_shared_disks(vm: "VirtualMachine", ctx: CheckContext) -> CheckResult:
    shared = [d for d in ctx.disks if d.is_shared]
    if shared:
        return CheckResult(
            "fail", f"{len(shared)} shared disk(s)",
            message=", ".join(f"{d.disk_label}: {d.sharing_mode}" for d in shared),
        )
    return CheckResult("pass", "No shared disks")


def _check_independent_disks(vm: "VirtualMachine", ctx: CheckContext) -> CheckResult:
    independent = [d for d in ctx.disks if "independent" in (d.disk_mode or "").lower()]
    if independent:
        return CheckResult(
            "fail", f"{len(independent)} independent disk(s)",
            message=", ".join(f"{d.disk_label}: {d.disk_mode}" for d in independent),
        )
    return CheckResult("pass", "No independent disks")


def _check_boot_disk_size(vm: "VirtualMachine", ctx: CheckContext) -> CheckResult:
    boot = find_boot_disk(ctx.disks)
    if boot is None:
        return CheckResult("na", message="No disk info available")
    size_gb = round_half_up(mib_to_gib(boot.capacity_mib))
    if size_gb > VPC_BOOT_DISK_MAX_GB:
        return CheckResult(
            "fail", f"{size_gb} GB",
            threshold=f"{VPC_BOOT_DISK_MAX_GB} GB",
            message="Boot disk exceeds VPC limit",
        )
    return CheckResult("pass", f"{size_gb} GB")


def _check_disk_count(vm: "VirtualMachine", ctx: CheckContext) -> CheckResult:
    count = len(ctx.disks)
    if count > VPC_MAX_DISKS_PER_VM:
        return CheckResult("fail", count, threshold=VPC_MAX_DISKS_PER_VM, message="Exceeds VPC disk limit")
    return CheckResult("pass", count)


def _check_large_disks(vm: "VirtualMachine", ctx: CheckContext) -> CheckResult:
    large = [d for d in ctx.disks if mib_to_gib(d.capacity_mib) > LARGE_DISK_THRESHOLD_GB]
    if large:
        biggest = round_half_up(max(mib_to_gib(d.capacity_mib) for d in large))
        return CheckResult(
            "fail", f"{len(large)} disk(s) > 2TB",
            threshold="2TB",
            message=f"Largest: {biggest} GB",
        )
    return CheckResult("pass", "All disks ≤2TB")


def _check_cd_connected(vm: "VirtualMachine", ctx: CheckContext) -> CheckResult:
    connected = [cd for cd in ctx.cds if cd.connected]
    if connected:
        return CheckResult("fail", f"{len(connected)} CD(s) connected", message="Disconnect CD-ROM before migration")
    return CheckResult("pass", "No CD connected")


def _check_hw_version(vm: "VirtualMachine", ctx: CheckContext) -> CheckResult:
    version = get_hardware_version_number(vm.hardware_version)
    if version < HW_VERSION_MINIMUM:
        return CheckResult(
            "fail", f"v{version}",
            threshold=f"v{HW_VERSION_MINIMUM}+",
            message="Hardware version too old",
        )
    return CheckResult("pass", f"v{version}")


def _check_memory_1tb(vm: "VirtualMachine", ctx: CheckContext) -> CheckResult:
    memory_gb = mib_to_gib(vm.memory_mib)
    if memory_gb > VSI_MEMORY_MAX_GIB:
        return CheckResult(
            "fail", f"{round_half_up(memory_gb)} GB",
            threshold=f"{VSI_MEMORY_MAX_GIB} GB",
            message="Exceeds VPC maximum",
        )
    return CheckResult("pass", f"{round_half_up(memory_gb)} GB")


def _check_memory_512gb(vm: "VirtualMachine", ctx: CheckContext) -> CheckResult:
    memory_gb = mib_to_gib(vm.memory_mib)
    if memory_gb > VSI_MEMORY_MAX_GIB:
        return CheckResult("na", message="Checked by memory-1tb")
    if memory_gb > VSI_MEMORY_WARNING_GIB:
        return CheckResult(
            "fail", f"{round_half_up(memory_gb)} GB",
            threshold=f"{VSI_MEMORY_WARNING_GIB} GB",
            message="Requires high-memory profile",
        )
    return CheckResult("pass", f"{round_half_up(memory_gb)} GB")


def _check_cbt_enabled(vm: "VirtualMachine", ctx: CheckContext) -> CheckResult:
    if not vm.cbt_enabled:
        return CheckResult("fail", "Disabled", message="Enable CBT for warm migration")
    return CheckResult("pass", "Enabled")


def _check_rfc1123_name(vm: "VirtualMachine", ctx: CheckContext) -> CheckResult:
    name = vm.vm_name
    if is_rfc1123_compliant(name):
        return CheckResult("pass", "Compliant")

    issues = []
    if len(name) > 63:
        issues.append("too long")
    if name != name.lower():
        issues.append("uppercase")
    if re.search(r"[^a-z0-9-]", name.lower()):
        issues.append("invalid chars")
    return CheckResult(
        "fail",
        name[:20] + ("..." if len(name) > 20 else ""),
        message=", ".join(issues),
    )


def _check_cpu_hotplug(vm: "VirtualMachine", ctx: CheckContext) -> CheckResult:
    if ctx.cpu and ctx.cpu.hot_add_enabled:
        return CheckResult("fail", "Enabled", message="Will be disabled after migration")
    return CheckResult("pass", "Disabled")


def _check_mem_hotplug(vm: "VirtualMachine", ctx: CheckContext) -> CheckResult:
    if ctx.memory and ctx.memory.hot_add_enabled:
        return CheckResult("fail", "Enabled", message="Will be disabled after migration")
    return CheckResult("pass", "Disabled")


def _check_hostname(vm: "VirtualMachine", ctx: CheckContext) -> CheckResult:
    hostname = (vm.guest_hostname or vm.dns_name or "").strip().lower()
    if not is_valid_hostname(hostname):
        return CheckResult("fail", hostname or "Not set", message="Configure valid hostname")
    return CheckResult("pass", hostname[:30])


def _check_os_compatible(vm: "VirtualMachine", ctx: CheckContext) -> CheckResult:
    status = get_roks_os_compatibility(vm.guest_os).compatibility_status
    if status == "unsupported":
        return CheckResult("fail", _clip(vm.guest_os), message="Not supported by OpenShift Virtualization")
    if status == "supported-with-caveats":
        return CheckResult("warn", _clip(vm.guest_os), message="Supported with caveats")
    return CheckResult("pass", _clip(vm.guest_os))


def _check_vsi_os(vm: "VirtualMachine", ctx: CheckContext) -> CheckResult:
    compat = get_vsi_os_compatibility(vm.guest_os)
    if compat.status == "unsupported":
        return CheckResult("fail", _clip(vm.guest_os), message=compat.notes)
    return CheckResult("pass", _clip(vm.guest_os), message=compat.notes)


_EVALUATORS: dict[str, Callable[["VirtualMachine", CheckContext], CheckResult]] = {
    "tools-installed": _check_tools_installed,
    "vsi-tools": _check_tools_installed,
    "tools-running": _check_tools_running,
    "old-snapshots": _check_old_snapshots,
    "rdm-disks": _check_rdm_disks,
    "shared-disks": _check_shared_disks,
    "independent-disks": _check_independent_disks,
    "boot-disk-size": _check_boot_disk_size,
    "disk-count": _check_disk_count,
    "large-disks": _check_large_disks,
    "cd-connected": _check_cd_connected,
    "hw-version": _check_hw_version,
    "memory-1tb": _check_memory_1tb,
    "memory-512gb": _check_memory_512gb,
    "cbt-enabled": _check_cbt_enabled,
    "rfc1123-name": _check_rfc1123_name,
    "cpu-hotplug": _check_cpu_hotplug,
    "mem-hotplug": _check_mem_hotplug,
    "hostname-valid": _check_hostname,
    "os-compatible": _check_os_compatible,
    "vsi-os": _check_vsi_os,
}


def evaluate_check(check_id: str, vm: "VirtualMachine", context: CheckContext) -> CheckResult:
    evaluator = _EVALUATORS.get(check_id)
    if evaluator is None:
        return CheckResult("na", message="Check not implemented")
    return evaluator(vm, context)


# ═══════════════════════════════════════════════════════════════════
# RUNNER
# ═══════════════════════════════════════════════════════════════════

def _group_by_vm(rows: list) -> dict[str, list]:
    grouped: dict[str, list] = defaultdict(list)
    for row in rows:
        grouped[row.vm_name].append(row)
    return grouped


def run_preflight_checks(
    data: "RVToolsData",
    mode: str,
    vms: Optional[list["VirtualMachine"]] = None,
) -> list[VMCheckResults]:
    """Run every check for ``mode`` against each powered-on, non-template VM.

    Args:
        data: Parsed RVTools export
        mode: "vsi" or "roks"
        vms: Optional VM subset (e.g. after exclusions); defaults to all VMs

    Returns:
        One VMCheckResults per VM, ids ``vm-0``, ``vm-1``...
    """
    if mode not in MIGRATION_MODES:
        raise ValueError(f"Unknown migration mode '{mode}'")

    candidates = [vm for vm in (vms if vms is not None else data.vms)
                  if vm.is_powered_on and not vm.template]
    checks = get_checks_for_mode(mode)

    tools_by_name = {t.vm_name: t for t in data.tools}
    tools_by_lower = {t.vm_name.lower(): t for t in data.tools}
    snapshots = _group_by_vm(data.snapshots)
    disks = _group_by_vm(data.disks)
    networks = _group_by_vm(data.networks)
    cds = _group_by_vm(data.cds)
    cpu_by_name = {c.vm_name: c for c in data.cpus}
    mem_by_name = {m.vm_name: m for m in data.memory}

    results = []
    for index, vm in enumerate(candidates):
        context = CheckContext(
            tools=tools_by_name.get(vm.vm_name) or tools_by_lower.get(vm.vm_name.lower()),
            snapshots=snapshots.get(vm.vm_name, []),
            disks=disks.get(vm.vm_name, []),
            networks=networks.get(vm.vm_name, []),
            cds=cds.get(vm.vm_name, []),
            cpu=cpu_by_name.get(vm.vm_name),
            memory=mem_by_name.get(vm.vm_name),
        )
        vm_result = VMCheckResults(
            id=f"vm-{index}",
            vm_name=vm.vm_name,
            power_state=vm.power_state,
            cluster=vm.cluster or "N/A",
            host=vm.host or "N/A",
            guest_os=vm.guest_os or "Unknown",
        )

        for check in checks:
            result = evaluate_check(check.id, vm, context)
            vm_result.checks[check.id] = result
            if result.status == "fail":
                if check.severity == "blocker":
                    vm_result.blocker_count += 1
                else:
                    vm_result.warning_count += 1
            elif result.status == "warn":
                vm_result.warning_count += 1

        results.append(vm_result)

    failed = sum(1 for r in results if not r.passed)
    logger.info(f"Pre-flight ({mode}): {len(results)} VMs checked, {failed} with blockers")
    return results


# ═══════════════════════════════════════════════════════════════════
# AGGREGATE COUNTS
# ═══════════════════════════════════════════════════════════════════

@dataclass
class HWVersionCounts:
    recommended: int = 0
    supported: int = 0
    outdated: int = 0


@dataclass
class PreflightCheckCounts:
    """Per-check affected VM lists. Counts are the list lengths."""

    # Common
    vms_without_tools: list[str] = field(default_factory=list)
    vms_with_tools_not_running: list[str] = field(default_factory=list)
    vms_with_old_snapshots: list[str] = field(default_factory=list)
    vms_with_rdm: list[str] = field(default_factory=list)
    vms_with_shared_disks: list[str] = field(default_factory=list)
    vms_with_large_disks: list[str] = field(default_factory=list)
    hw_version_outdated: list[str] = field(default_factory=list)

    # VSI
    vms_with_large_boot_disk: list[str] = field(default_factory=list)
    vms_with_too_many_disks: list[str] = field(default_factory=list)
    vms_with_large_memory: list[str] = field(default_factory=list)
    vms_with_very_large_memory: list[str] = field(default_factory=list)
    vms_with_unsupported_os: list[str] = field(default_factory=list)

    # ROKS
    vms_with_cd_connected: list[str] = field(default_factory=list)
    vms_with_legacy_nic: list[str] = field(default_factory=list)
    vms_without_cbt: list[str] = field(default_factory=list)
    vms_with_invalid_names: list[str] = field(default_factory=list)
    vms_with_cpu_hot_plug: list[str] = field(default_factory=list)
    vms_with_memory_hot_plug: list[str] = field(default_factory=list)
    vms_with_independent_disks: list[str] = field(default_factory=list)
    vms_with_invalid_hostname: list[str] = field(default_factory=list)
    vms_static_ip_powered_off: list[str] = field(default_factory=list)

    hw_version_counts: HWVersionCounts = field(default_factory=HWVersionCounts)

    def count(self, name: str) -> int:
        return len(getattr(self, name))

    def to_dict(self) -> dict:
        counts = {
            name: len(value)
            for name, value in vars(self).items()
            if isinstance(value, list)
        }
        counts["hw_version_counts"] = vars(self.hw_version_counts).copy()
        return counts


def _unique(names) -> list[str]:
    return list(dict.fromkeys(names))


def calculate_preflight_counts(
    data: "RVToolsData",
    mode: str,
    vms: Optional[list["VirtualMachine"]] = None,
) -> PreflightCheckCounts:
    """Aggregate affected-VM lists for the remediation panel.

    VM-level checks look at powered-on, non-template VMs. Disk, snapshot,
    CD and NIC checks look at every sheet row of the VMs under assessment
    (powered off included), as does the static-IP check.
    """
    if mode not in MIGRATION_MODES:
        raise ValueError(f"Unknown migration mode '{mode}'")

    all_vms = [vm for vm in (vms if vms is not None else data.vms) if not vm.template]
    powered_on = [vm for vm in all_vms if vm.is_powered_on]
    tools_by_name = {t.vm_name: t for t in data.tools}
    names = {vm.vm_name for vm in all_vms}
    snapshots = [s for s in data.snapshots if s.vm_name in names]
    disks = [d for d in data.disks if d.vm_name in names]
    cds = [cd for cd in data.cds if cd.vm_name in names]
    networks = [n for n in data.networks if n.vm_name in names]

    counts = PreflightCheckCounts(
        vms_without_tools=[vm.vm_name for vm in powered_on if is_tools_missing(tools_by_name.get(vm.vm_name))],
        vms_with_tools_not_running=[
            vm.vm_name for vm in powered_on
            if vm.vm_name in tools_by_name and tools_by_name[vm.vm_name].tools_status in TOOLS_NOT_RUNNING
        ],
        vms_with_old_snapshots=_unique(
            s.vm_name for s in snapshots if s.age_in_days > SNAPSHOT_BLOCKER_AGE_DAYS
        ),
        vms_with_rdm=_unique(d.vm_name for d in disks if d.raw),
        vms_with_shared_disks=_unique(d.vm_name for d in disks if d.is_shared),
        vms_with_large_disks=_unique(
            d.vm_name for d in disks if mib_to_gib(d.capacity_mib) > LARGE_DISK_THRESHOLD_GB
        ),
    )

    for vm in powered_on:
        version = get_hardware_version_number(vm.hardware_version)
        if version >= HW_VERSION_RECOMMENDED:
            counts.hw_version_counts.recommended += 1
        elif version >= HW_VERSION_MINIMUM:
            counts.hw_version_counts.supported += 1
        else:
            counts.hw_version_counts.outdated += 1
            counts.hw_version_outdated.append(vm.vm_name)

    if mode == "vsi":
        disks_by_vm = _group_by_vm(disks)
        for vm in powered_on:
            vm_disks = disks_by_vm.get(vm.vm_name, [])
            boot = find_boot_disk(vm_disks)
            if boot is not None and mib_to_gib(boot.capacity_mib) > VPC_BOOT_DISK_MAX_GB:
                counts.vms_with_large_boot_disk.append(vm.vm_name)
            if len(vm_disks) > VPC_MAX_DISKS_PER_VM:
                counts.vms_with_too_many_disks.append(vm.vm_name)
            memory_gib = mib_to_gib(vm.memory_mib)
            if memory_gib > VSI_MEMORY_WARNING_GIB:
                counts.vms_with_large_memory.append(vm.vm_name)
            if memory_gib > VSI_MEMORY_MAX_GIB:
                counts.vms_with_very_large_memory.append(vm.vm_name)
            if get_vsi_os_compatibility(vm.guest_os).status == "unsupported":
                counts.vms_with_unsupported_os.append(vm.vm_name)

    else:
        cpu_by_name = {c.vm_name: c for c in data.cpus}
        mem_by_name = {m.vm_name: m for m in data.memory}

        counts.vms_with_cd_connected = _unique(cd.vm_name for cd in cds if cd.connected)
        counts.vms_with_legacy_nic = _unique(
            n.vm_name for n in networks if "e1000" in (n.adapter_type or "").lower()
        )
        counts.vms_with_independent_disks = _unique(
            d.vm_name for d in disks if "independent" in (d.disk_mode or "").lower()
        )
        for vm in powered_on:
            if not vm.cbt_enabled:
                counts.vms_without_cbt.append(vm.vm_name)
            if not is_rfc1123_compliant(vm.vm_name):
                counts.vms_with_invalid_names.append(vm.vm_name)
            cpu = cpu_by_name.get(vm.vm_name)
            if cpu and cpu.hot_add_enabled:
                counts.vms_with_cpu_hot_plug.append(vm.vm_name)
            mem = mem_by_name.get(vm.vm_name)
            if mem and mem.hot_add_enabled:
                counts.vms_with_memory_hot_plug.append(vm.vm_name)
            if not is_valid_hostname(vm.guest_hostname):
                counts.vms_with_invalid_hostname.append(vm.vm_name)

        counts.vms_static_ip_powered_off = [
            vm.vm_name for vm in all_vms if vm.power_state == "poweredOff" and vm.guest_ip
        ]

    logger.debug(f"Pre-flight counts ({mode}): {counts.to_dict()}")
    return counts
