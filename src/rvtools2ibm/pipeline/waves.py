"""Migration wave planning.

Waves can be built two ways:

  complexity  fixed five waves, from a pilot of simple supported VMs
              to a remediation wave holding every VM with a blocker
  network     one wave per port group (or cluster), so that VMs sharing
              a subnet move together; blocker-free groups come first
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from rvtools2ibm.constants import SNAPSHOT_BLOCKER_AGE_DAYS, VSI_MEMORY_MAX_GIB
from rvtools2ibm.pipeline.os_compat import MIGRATION_MODES, get_roks_os_compatibility, get_vsi_os_compatibility
from rvtools2ibm.pipeline.preflight import is_tools_missing
from rvtools2ibm.utils.formatters import mib_to_gib, round_half_up
from rvtools2ibm.utils.logging import get_logger

if TYPE_CHECKING:
    from rvtools2ibm.pipeline.complexity import ComplexityScore
    from rvtools2ibm.rvtools.models import (
        VDiskInfo,
        VirtualMachine,
        VNetworkInfo,
        VSnapshotInfo,
        VToolsInfo,
    )

logger = get_logger(__name__)

NETWORK_GROUP_BY = ("portGroup", "cluster")


@dataclass
class VMWaveData:
    vm_name: str
    complexity: int
    os_status: str
    has_blocker: bool
    vcpus: int
    memory_gib: int
    storage_gib: int
    network_name: str
    ip_address: str
    subnet: str
    cluster: str
    uuid: Optional[str] = None


@dataclass
class WaveGroup:
    name: str
    description: str
    vms: list[VMWaveData] = field(default_factory=list)
    has_blockers: bool = False
    avg_complexity: Optional[float] = None

    @property
    def vm_count(self) -> int:
        return len(self.vms)

    @property
    def vcpus(self) -> int:
        return sum(vm.vcpus for vm in self.vms)

    @property
    def memory_gib(self) -> int:
        return sum(vm.memory_gib for vm in self.vms)

    @property
    def storage_gib(self) -> int:
        return sum(vm.storage_gib for vm in self.vms)

    def to_dict(self, include_vms: bool = True) -> dict:
        d = {
            "name": self.name,
            "description": self.description,
            "vm_count": self.vm_count,
            "vcpus": self.vcpus,
            "memory_gib": self.memory_gib,
            "storage_gib": self.storage_gib,
            "has_blockers": self.has_blockers,
        }
        if self.avg_complexity is not None:
            d["avg_complexity"] = round(self.avg_complexity, 1)
        if include_vms:
            d["vms"] = [vm.vm_name for vm in self.vms]
        return d


def _subnet_of(ip: str) -> str:
    if not ip:
        return "Unknown"
    return ".".join(ip.split(".")[:3]) + ".0/24"


def build_vm_wave_data(
    vms: list["VirtualMachine"],
    scores: list["ComplexityScore"],
    disks: list["VDiskInfo"],
    snapshots: list["VSnapshotInfo"],
    tools: list["VToolsInfo"],
    networks: list["VNetworkInfo"],
    mode: str,
) -> list[VMWaveData]:
    """Flatten each VM into what wave planning needs: score, blocker flag, network."""
    if mode not in MIGRATION_MODES:
        raise ValueError(f"Unknown migration mode '{mode}'")

    score_by_name = {s.vm_name: s.score for s in scores}
    tools_by_name = {t.vm_name: t for t in tools}
    disk_blocked = {d.vm_name for d in disks if d.raw or d.is_shared}
    old_snapshots = {s.vm_name for s in snapshots if s.age_in_days > SNAPSHOT_BLOCKER_AGE_DAYS}
    nics_by_vm: dict[str, list["VNetworkInfo"]] = defaultdict(list)
    for nic in networks:
        nics_by_vm[nic.vm_name.lower()].append(nic)

    result = []
    for vm in vms:
        if mode == "vsi":
            os_status = get_vsi_os_compatibility(vm.guest_os).status
        else:
            os_status = get_roks_os_compatibility(vm.guest_os).compatibility_status

        has_blocker = vm.vm_name in disk_blocked
        if mode == "roks":
            has_blocker = (has_blocker
                           or vm.vm_name in old_snapshots
                           or is_tools_missing(tools_by_name.get(vm.vm_name)))
        else:
            has_blocker = has_blocker or mib_to_gib(vm.memory_mib) > VSI_MEMORY_MAX_GIB

        vm_nics = nics_by_vm.get(vm.vm_name.lower(), [])
        primary = vm_nics[0] if vm_nics else None
        ip = (primary.ipv4_address or "") if primary else ""

        result.append(VMWaveData(
            vm_name=vm.vm_name,
            complexity=score_by_name.get(vm.vm_name, 0),
            os_status=os_status,
            has_blocker=has_blocker,
            vcpus=vm.cpus,
            memory_gib=round_half_up(mib_to_gib(vm.memory_mib)),
            storage_gib=round_half_up(mib_to_gib(vm.in_use_mib)),
            network_name=(primary.network_name if primary else "") or "No Network",
            ip_address=ip,
            subnet=_subnet_of(ip),
            cluster=vm.cluster or "No Cluster",
            uuid=vm.uuid,
        ))
    return result


COMPLEXITY_WAVES = [
    ("Wave 1: Pilot", "Simple VMs with supported OS for initial validation"),
    ("Wave 2: Quick Wins", "Low complexity VMs ready for migration"),
    ("Wave 3: Standard", "Moderate complexity VMs"),
    ("Wave 4: Complex", "High complexity VMs requiring careful planning"),
    ("Wave 5: Remediation", "VMs with blockers requiring fixes before migration"),
]


def _complexity_wave_index(vm: VMWaveData, supported_status: str) -> int:
    if vm.has_blocker:
        return 4
    if vm.complexity <= 15 and vm.os_status == supported_status:
        return 0
    if vm.complexity <= 30:
        return 1
    if vm.complexity <= 55:
        return 2
    return 3


def create_complexity_waves(data: list[VMWaveData], mode: str) -> list[WaveGroup]:
    supported_status = "supported" if mode == "vsi" else "fully-supported"
    waves = [
        WaveGroup(name=name, description=description, has_blockers=(index == 4))
        for index, (name, description) in enumerate(COMPLEXITY_WAVES)
    ]
    for vm in data:
        waves[_complexity_wave_index(vm, supported_status)].vms.append(vm)

    populated = [w for w in waves if w.vms]
    logger.debug(f"Complexity waves: {[(w.name, w.vm_count) for w in populated]}")
    return populated


def _summarize(values: list[str], prefix: str, limit: int = 3) -> str:
    text = f"{prefix}: {', '.join(values[:limit])}"
    if len(values) > limit:
        text += f" +{len(values) - limit} more"
    return text


def create_network_waves(data: list[VMWaveData], group_by: str) -> list[WaveGroup]:
    """One wave per port group or cluster, blocker-free groups first, then smallest first."""
    if group_by not in NETWORK_GROUP_BY:
        raise ValueError(f"Unknown network grouping '{group_by}'. Use one of: {', '.join(NETWORK_GROUP_BY)}")

    groups: dict[str, list[VMWaveData]] = {}
    for vm in data:
        key = vm.cluster if group_by == "cluster" else (vm.network_name or "No Network")
        groups.setdefault(key, []).append(vm)

    waves = []
    for name, vms in groups.items():
        ips = list(dict.fromkeys(vm.ip_address for vm in vms if vm.ip_address))
        port_groups = list(dict.fromkeys(
            vm.network_name for vm in vms if vm.network_name and vm.network_name != "No Network"
        ))
        if group_by == "portGroup":
            description = _summarize(ips, "IPs") if ips else "No IP addresses detected"
        else:
            description = _summarize(port_groups, "Port Group") if port_groups else "No port group info"

        waves.append(WaveGroup(
            name=name,
            description=description,
            vms=vms,
            has_blockers=any(vm.has_blocker for vm in vms),
            avg_complexity=sum(vm.complexity for vm in vms) / len(vms),
        ))

    # sorted() is stable, so equal groups keep first-seen order
    return sorted(waves, key=lambda w: (w.has_blockers, w.vm_count))


def get_wave_chart_data(waves: list[WaveGroup], network_mode: bool, max_items: int = 10) -> list[dict]:
    if network_mode:
        return [
            {"label": w.name if len(w.name) <= 20 else w.name[:17] + "...", "value": w.vm_count}
            for w in waves[:max_items]
        ]
    return [{"label": f"Wave {i + 1}", "value": w.vm_count} for i, w in enumerate(waves)]


def get_wave_resources(waves: list[WaveGroup]) -> list[dict]:
    return [w.to_dict(include_vms=False) for w in waves]
