"""Migration complexity scoring.

Each VM gets a 0-100 score, the sum of weighted factors (OS support,
NIC and disk counts, size, hardware version), capped at 100. The weights
differ per target: VPC VSI cares about size limits, OpenShift
Virtualization about OS certification and virtual hardware.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Optional

from rvtools2ibm.constants import HW_VERSION_MINIMUM, HW_VERSION_RECOMMENDED
from rvtools2ibm.pipeline.os_compat import get_roks_os_compatibility, get_vsi_os_compatibility
from rvtools2ibm.utils.formatters import get_hardware_version_number, mib_to_gib, round_half_up
from rvtools2ibm.utils.logging import get_logger

if TYPE_CHECKING:
    from rvtools2ibm.rvtools.models import VDiskInfo, VirtualMachine, VNetworkInfo

logger = get_logger(__name__)

CATEGORIES = ("Simple", "Moderate", "Complex", "Blocker")


@dataclass
class ComplexityScore:
    vm_name: str
    score: int
    factors: str
    category: str
    guest_os: str
    cpus: int
    memory_gib: int
    disk_count: int
    nic_count: int
    hw_version: Optional[int] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class AssessmentSummary:
    total_vms: int
    simple_count: int
    moderate_count: int
    complex_count: int
    blocker_count: int
    average_score: int


def get_complexity_category(score: float) -> str:
    if score <= 25:
        return "Simple"
    if score <= 50:
        return "Moderate"
    if score <= 75:
        return "Complex"
    return "Blocker"


def _join_factors(factors: list[str]) -> str:
    return ", ".join(factors) if factors else "No complexity factors"


def calculate_vsi_complexity_score(
    vm: "VirtualMachine",
    disks: list["VDiskInfo"],
    nic_count: int,
) -> ComplexityScore:
    score = 0
    factors: list[str] = []

    status = get_vsi_os_compatibility(vm.guest_os).status
    if status == "unsupported":
        score += 40
        factors.append("Unsupported OS (+40)")
    elif status == "community":
        score += 15
        factors.append("Community OS (+15)")

    if nic_count > 3:
        score += 25
        factors.append(f"{nic_count} NICs (+25)")
    elif nic_count > 1:
        score += 10
        factors.append(f"{nic_count} NICs (+10)")

    vm_disks = [d for d in disks if d.vm_name == vm.vm_name]
    large_disks = sum(1 for d in vm_disks if mib_to_gib(d.capacity_mib) > 2000)
    if large_disks:
        score += 30
        factors.append(f"{large_disks} large disk{'s' if large_disks > 1 else ''} >2TB (+30)")
    if len(vm_disks) > 5:
        score += 20
        factors.append(f"{len(vm_disks)} disks (+20)")
    elif len(vm_disks) > 2:
        score += 10
        factors.append(f"{len(vm_disks)} disks (+10)")

    mem_gib = mib_to_gib(vm.memory_mib)
    if mem_gib > 1024:
        score += 40
        factors.append(f"{round_half_up(mem_gib)} GiB memory (+40)")
    elif mem_gib > 512:
        score += 20
        factors.append(f"{round_half_up(mem_gib)} GiB memory (+20)")

    if vm.cpus > 64:
        score += 30
        factors.append(f"{vm.cpus} vCPUs (+30)")
    elif vm.cpus > 32:
        score += 15
        factors.append(f"{vm.cpus} vCPUs (+15)")

    final = min(100, score)
    return ComplexityScore(
        vm_name=vm.vm_name,
        score=final,
        factors=_join_factors(factors),
        category=get_complexity_category(final),
        guest_os=vm.guest_os,
        cpus=vm.cpus,
        memory_gib=round_half_up(mem_gib),
        disk_count=len(vm_disks),
        nic_count=nic_count,
    )


def calculate_roks_complexity_score(
    vm: "VirtualMachine",
    disks: list["VDiskInfo"],
    nic_count: int,
) -> ComplexityScore:
    score = 0
    factors: list[str] = []

    compat = get_roks_os_compatibility(vm.guest_os)
    os_score = round_half_up((100 - compat.compatibility_score) * 0.3)
    if os_score > 0:
        score += os_score
        factors.append(f"OS compatibility (+{os_score})")

    if nic_count > 3:
        score += 30
        factors.append(f"{nic_count} NICs (+30)")
    elif nic_count > 1:
        score += 15
        factors.append(f"{nic_count} NICs (+15)")

    vm_disks = [d for d in disks if d.vm_name == vm.vm_name]
    if len(vm_disks) > 5:
        score += 30
        factors.append(f"{len(vm_disks)} disks (+30)")
    elif len(vm_disks) > 2:
        score += 15
        factors.append(f"{len(vm_disks)} disks (+15)")

    hw_version = get_hardware_version_number(vm.hardware_version)
    if hw_version < HW_VERSION_MINIMUM:
        score += 25
        factors.append(f"HW v{hw_version} < min (+25)")
    elif hw_version < HW_VERSION_RECOMMENDED:
        score += 10
        factors.append(f"HW v{hw_version} < recommended (+10)")

    mem_gib = mib_to_gib(vm.memory_mib)
    big_cpu = vm.cpus > 16
    big_mem = mem_gib > 128
    if big_cpu or big_mem:
        score += 20
        if big_cpu and big_mem:
            factors.append(f"{vm.cpus} vCPUs & {round_half_up(mem_gib)} GiB (+20)")
        elif big_cpu:
            factors.append(f"{vm.cpus} vCPUs (+20)")
        else:
            factors.append(f"{round_half_up(mem_gib)} GiB memory (+20)")

    final = min(100, score)
    return ComplexityScore(
        vm_name=vm.vm_name,
        score=final,
        factors=_join_factors(factors),
        category=get_complexity_category(final),
        guest_os=vm.guest_os,
        cpus=vm.cpus,
        memory_gib=round_half_up(mem_gib),
        disk_count=len(vm_disks),
        nic_count=nic_count,
        hw_version=hw_version,
    )


def calculate_complexity_scores(
    vms: list["VirtualMachine"],
    disks: list["VDiskInfo"],
    networks: list["VNetworkInfo"],
    mode: str,
) -> list[ComplexityScore]:
    """Score every VM. NIC counts are matched on case-insensitive VM name."""
    if mode not in ("vsi", "roks"):
        raise ValueError(f"Unknown migration mode '{mode}'")

    nic_counts = Counter(n.vm_name.lower() for n in networks)
    disks_by_vm: dict[str, list["VDiskInfo"]] = defaultdict(list)
    for disk in disks:
        disks_by_vm[disk.vm_name].append(disk)

    scorer = calculate_vsi_complexity_score if mode == "vsi" else calculate_roks_complexity_score
    scores = [
        scorer(vm, disks_by_vm.get(vm.vm_name, []), nic_counts.get(vm.vm_name.lower(), 0))
        for vm in vms
    ]
    logger.debug(f"Scored {len(scores)} VMs for {mode}")
    return scores


def get_complexity_distribution(scores: list[ComplexityScore]) -> dict[str, int]:
    return dict(Counter(s.category for s in scores))


def get_assessment_summary(scores: list[ComplexityScore]) -> AssessmentSummary:
    distribution = get_complexity_distribution(scores)
    total = sum(s.score for s in scores)
    return AssessmentSummary(
        total_vms=len(scores),
        simple_count=distribution.get("Simple", 0),
        moderate_count=distribution.get("Moderate", 0),
        complex_count=distribution.get("Complex", 0),
        blocker_count=distribution.get("Blocker", 0),
        average_score=round_half_up(total / len(scores)) if scores else 0,
    )


def calculate_readiness_score(
    blocker_count: int,
    warning_count: int,
    unsupported_os_count: int,
    total_vms: int,
) -> int:
    """100 minus penalties proportional to blockers, warnings and unsupported OSes."""
    vm_count = total_vms or 1
    penalty = (
        blocker_count / vm_count * 50
        + warning_count / vm_count * 30
        + unsupported_os_count / vm_count * 20
    )
    return max(0, round_half_up(100 - penalty))


def get_complexity_chart_data(distribution: dict[str, int]) -> list[dict]:
    rows = [
        {"label": "Simple (0-25)", "value": distribution.get("Simple", 0)},
        {"label": "Moderate (26-50)", "value": distribution.get("Moderate", 0)},
        {"label": "Complex (51-75)", "value": distribution.get("Complex", 0)},
        {"label": "Blocker (76-100)", "value": distribution.get("Blocker", 0)},
    ]
    return [r for r in rows if r["value"] > 0]


def get_top_complex_vms(scores: list[ComplexityScore], count: int = 10) -> list[dict]:
    ranked = sorted(scores, key=lambda s: s.score, reverse=True)[:count]
    return [{"label": s.vm_name[:40], "value": round_half_up(s.score)} for s in ranked]
