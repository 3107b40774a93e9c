"""ROKS cluster sizing and per-VM VSI storage split.

Two ROKS views are produced from the same powered-on inventory:

* worker sizing against VPC worker flavours (spreadsheet report), using
  flat overcommit ratios;
* bare-metal sizing for OpenShift Virtualization with ODF on local NVMe
  (Word report), which also accounts for Ceph overhead, reserved
  memory and a redundancy node.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Optional

from rvtools2ibm.constants import BARE_METAL_RESERVED_MEMORY_GIB
from rvtools2ibm.ibmcloud.pricing import PricingCatalog, get_pricing
from rvtools2ibm.ibmcloud.profiles import determine_profile_family, map_vm_to_vsi_profile
from rvtools2ibm.utils.formatters import mib_to_gib, round_half_up
from rvtools2ibm.utils.logging import get_logger

if TYPE_CHECKING:
    from rvtools2ibm.rvtools.models import RVToolsData, VirtualMachine

logger = get_logger(__name__)

# ── Worker sizing defaults ──────────────────────────────────────
CPU_OVERCOMMIT_RATIO = 1.5
MEMORY_OVERCOMMIT_RATIO = 1.2
ODF_REPLICATION_FACTOR = 3
ODF_EFFICIENCY_FACTOR = 0.85
MIN_WORKER_NODES = 3
WORKER_UTILIZATION = 0.85

# ── Bare-metal / ODF sizing defaults ────────────────────────────
DEFAULT_BARE_METAL_PROFILE = "bx2d.metal.96x384"
ODF_REPLICA_FACTOR = 3
ODF_OPERATIONAL_CAPACITY = 0.75
CEPH_OVERHEAD = 0.15
MIN_ODF_NODES = 3
CPU_OVERCOMMIT_CONSERVATIVE = 1.8
SYSTEM_RESERVED_MEMORY_GIB = BARE_METAL_RESERVED_MEMORY_GIB
NODE_REDUNDANCY = 1

# ── VSI storage split ───────────────────────────────────────────
BOOT_DISK_SIZE_GIB = 100
BOOT_DISK_MIN_GIB = 10
BOOT_STORAGE_COST_PER_GB = 0.08
DATA_STORAGE_COST_PER_GB = 0.5 * 0.08 + 0.3 * 0.10 + 0.2 * 0.13


@dataclass(frozen=True)
class WorkerProfile:
    name: str
    vcpus: int
    memory_gib: int


ROKS_WORKER_PROFILES = [
    WorkerProfile("bx2.4x16", 4, 16),
    WorkerProfile("bx2.8x32", 8, 32),
    WorkerProfile("bx2.16x64", 16, 64),
    WorkerProfile("bx2.32x128", 32, 128),
    WorkerProfile("bx2.48x192", 48, 192),
    WorkerProfile("mx2.16x128", 16, 128),
    WorkerProfile("mx2.32x256", 32, 256),
]


@dataclass
class SourceTotals:
    vm_count: int
    vcpus: int
    memory_gib: float
    storage_gib: float


@dataclass
class WorkerSizing:
    source: SourceTotals
    adjusted_vcpus: int
    adjusted_memory_gib: int
    odf_storage_gib: int
    profile: WorkerProfile
    worker_count: int

    @property
    def total_vcpus(self) -> int:
        return self.worker_count * self.profile.vcpus

    @property
    def total_memory_gib(self) -> int:
        return self.worker_count * self.profile.memory_gib

    def to_dict(self) -> dict:
        return {
            "vm_count": self.source.vm_count,
            "source_vcpus": self.source.vcpus,
            "source_memory_gib": round_half_up(self.source.memory_gib),
            "source_storage_gib": round_half_up(self.source.storage_gib),
            "adjusted_vcpus": self.adjusted_vcpus,
            "adjusted_memory_gib": self.adjusted_memory_gib,
            "odf_storage_gib": self.odf_storage_gib,
            "worker_profile": self.profile.name,
            "worker_count": self.worker_count,
            "total_vcpus": self.total_vcpus,
            "total_memory_gib": self.total_memory_gib,
        }


@dataclass
class BareMetalSizing:
    worker_nodes: int
    profile_name: str
    total_cores: int
    total_threads: int
    total_memory_gib: int
    total_nvme_tib: int
    odf_usable_tib: float
    monthly_cost: float
    nodes_for_cpu: int = 0
    nodes_for_memory: int = 0
    nodes_for_storage: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class VSIStorageMapping:
    vm_name: str
    source_vcpus: int
    source_memory_gib: int
    source_storage_gib: int
    boot_disk_gib: int
    data_disk_gib: int
    profile: str
    profile_vcpus: int
    profile_memory_gib: int
    family: str
    compute_cost: float
    boot_storage_cost: float
    data_storage_cost: float

    @property
    def storage_cost(self) -> float:
        return self.boot_storage_cost + self.data_storage_cost

    @property
    def monthly_cost(self) -> float:
        return self.compute_cost + self.storage_cost

    def to_dict(self) -> dict:
        d = asdict(self)
        d["storage_cost"] = round(self.storage_cost, 2)
        d["monthly_cost"] = round(self.monthly_cost, 2)
        return d


def sizing_scope(data: "RVToolsData") -> list["VirtualMachine"]:
    """Powered-on, non-template VMs."""
    return [vm for vm in data.vms if vm.is_powered_on and not vm.template]


def get_source_totals(vms: list["VirtualMachine"]) -> SourceTotals:
    return SourceTotals(
        vm_count=len(vms),
        vcpus=sum(vm.cpus for vm in vms),
        memory_gib=sum(mib_to_gib(vm.memory_mib) for vm in vms),
        storage_gib=sum(mib_to_gib(vm.provisioned_mib) for vm in vms),
    )


def recommend_worker_profile() -> WorkerProfile:
    for profile in ROKS_WORKER_PROFILES:
        if profile.vcpus >= 32 and profile.memory_gib >= 128:
            return profile
    return ROKS_WORKER_PROFILES[3]


def calculate_worker_sizing(data: "RVToolsData") -> WorkerSizing:
    totals = get_source_totals(sizing_scope(data))
    adjusted_vcpus = math.ceil(totals.vcpus / CPU_OVERCOMMIT_RATIO)
    adjusted_memory = math.ceil(totals.memory_gib / MEMORY_OVERCOMMIT_RATIO)
    odf_storage = math.ceil(totals.storage_gib * ODF_REPLICATION_FACTOR / ODF_EFFICIENCY_FACTOR)

    profile = recommend_worker_profile()
    workers_for_cpu = math.ceil(adjusted_vcpus / (profile.vcpus * WORKER_UTILIZATION))
    workers_for_memory = math.ceil(adjusted_memory / (profile.memory_gib * WORKER_UTILIZATION))
    workers = max(MIN_WORKER_NODES, workers_for_cpu, workers_for_memory)

    logger.debug(f"Worker sizing: {workers}x {profile.name} (cpu={workers_for_cpu}, mem={workers_for_memory})")
    return WorkerSizing(
        source=totals,
        adjusted_vcpus=adjusted_vcpus,
        adjusted_memory_gib=adjusted_memory,
        odf_storage_gib=odf_storage,
        profile=profile,
        worker_count=workers,
    )


def calculate_bare_metal_sizing(
    data: "RVToolsData",
    pricing: Optional[PricingCatalog] = None,
    profile_name: str = DEFAULT_BARE_METAL_PROFILE,
) -> BareMetalSizing:
    """Size an OpenShift Virtualization cluster on NVMe bare metal.

    Node count is the largest of the ODF minimum and the nodes needed for
    CPU, memory and replicated storage, plus one redundancy node.
    """
    pricing = pricing or get_pricing()
    if profile_name in pricing.bare_metal:
        profile = pricing.bare_metal[profile_name]
    else:
        logger.warning(f"Bare metal profile '{profile_name}' not in catalogue, using {DEFAULT_BARE_METAL_PROFILE}")
        profile_name = DEFAULT_BARE_METAL_PROFILE
        profile = pricing.bare_metal[profile_name]

    totals = get_source_totals(sizing_scope(data))
    ceph_efficiency = 1 - CEPH_OVERHEAD
    raw_storage_gib = math.ceil(
        totals.storage_gib * ODF_REPLICA_FACTOR / ODF_OPERATIONAL_CAPACITY / ceph_efficiency
    )
    adjusted_vcpus = math.ceil(totals.vcpus / CPU_OVERCOMMIT_CONSERVATIVE)

    usable_threads = math.floor(profile.vcpus * WORKER_UTILIZATION)
    usable_memory = profile.memory_gib - SYSTEM_RESERVED_MEMORY_GIB
    usable_nvme = profile.total_nvme_gb

    nodes_for_cpu = math.ceil(adjusted_vcpus / usable_threads)
    nodes_for_memory = math.ceil(totals.memory_gib / usable_memory)
    nodes_for_storage = math.ceil(raw_storage_gib / usable_nvme) if usable_nvme > 0 else 0
    nodes = max(MIN_ODF_NODES, nodes_for_cpu, nodes_for_memory, nodes_for_storage) + NODE_REDUNDANCY

    cluster_nvme_gib = nodes * usable_nvme
    odf_usable_tib = cluster_nvme_gib / ODF_REPLICA_FACTOR * ODF_OPERATIONAL_CAPACITY * ceph_efficiency / 1024

    return BareMetalSizing(
        worker_nodes=nodes,
        profile_name=profile_name,
        total_cores=nodes * profile.physical_cores,
        total_threads=nodes * profile.vcpus,
        total_memory_gib=nodes * profile.memory_gib,
        total_nvme_tib=round_half_up(cluster_nvme_gib / 1024),
        odf_usable_tib=round(odf_usable_tib, 1),
        monthly_cost=nodes * profile.monthly_rate,
        nodes_for_cpu=nodes_for_cpu,
        nodes_for_memory=nodes_for_memory,
        nodes_for_storage=nodes_for_storage,
    )


def split_vsi_storage(storage_gib: float) -> tuple[float, float]:
    """(boot, data) GiB: boot takes 20% of the VM's storage, 10-100 GiB."""
    boot = min(BOOT_DISK_SIZE_GIB, max(BOOT_DISK_MIN_GIB, storage_gib * 0.2))
    return boot, max(0.0, storage_gib - boot)


def calculate_vsi_storage_mappings(
    data: "RVToolsData",
    pricing: Optional[PricingCatalog] = None,
) -> list[VSIStorageMapping]:
    pricing = pricing or get_pricing()
    mappings = []
    for vm in sizing_scope(data):
        memory_gib = mib_to_gib(vm.memory_mib)
        storage_gib = mib_to_gib(vm.in_use_mib or vm.provisioned_mib)
        profile = map_vm_to_vsi_profile(vm.cpus, memory_gib)
        priced = pricing.vsi.get(profile.name)
        boot_gib, data_gib = split_vsi_storage(storage_gib)

        mappings.append(VSIStorageMapping(
            vm_name=vm.vm_name,
            source_vcpus=vm.cpus,
            source_memory_gib=round_half_up(memory_gib),
            source_storage_gib=round_half_up(storage_gib),
            boot_disk_gib=round_half_up(boot_gib),
            data_disk_gib=round_half_up(data_gib),
            profile=profile.name,
            profile_vcpus=profile.vcpus,
            profile_memory_gib=profile.memory_gib,
            family=determine_profile_family(vm.cpus, memory_gib).capitalize(),
            compute_cost=priced.monthly_rate if priced else 0,
            boot_storage_cost=boot_gib * BOOT_STORAGE_COST_PER_GB,
            data_storage_cost=data_gib * DATA_STORAGE_COST_PER_GB,
        ))
    return mappings
