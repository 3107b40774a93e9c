"""Data models for the sheets of an RVTools export."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class VirtualMachine:
    """One row of the vInfo sheet."""
    vm_name: str
    power_state: str = "poweredOff"     # "poweredOn" | "poweredOff" | "suspended"
    template: bool = False
    srm_placeholder: bool = False
    config_status: str = ""
    dns_name: Optional[str] = None
    connection_state: str = ""
    guest_state: str = ""
    heartbeat: str = ""
    consolidation_needed: bool = False
    power_on_date: Optional[datetime] = None
    creation_date: Optional[datetime] = None
    cpus: int = 0
    memory_mib: float = 0
    nics: int = 0
    disks: int = 0
    resource_pool: Optional[str] = None
    folder: Optional[str] = None
    vapp: Optional[str] = None
    ft_state: Optional[str] = None
    cbt_enabled: bool = False
    hardware_version: str = ""
    guest_os: str = ""                  # OS according to the configuration file
    os_tools_config: str = ""           # OS according to VMware Tools
    guest_hostname: Optional[str] = None
    guest_ip: Optional[str] = None
    annotation: Optional[str] = None
    datacenter: str = ""
    cluster: str = ""
    host: str = ""
    provisioned_mib: float = 0
    in_use_mib: float = 0
    uuid: Optional[str] = None
    firmware_type: Optional[str] = None
    latency_sensitivity: Optional[str] = None

    @property
    def is_powered_on(self) -> bool:
        return self.power_state == "poweredOn"

    @property
    def memory_gib(self) -> float:
        return self.memory_mib / 1024

    @property
    def identifier(self) -> str:
        """Stable key for a VM: name plus UUID when RVTools exported one."""
        return f"{self.vm_name}::{self.uuid}" if self.uuid else self.vm_name


@dataclass
class VCPUInfo:
    vm_name: str
    power_state: str = ""
    template: bool = False
    cpus: int = 0
    sockets: int = 0
    cores_per_socket: int = 0
    max_cpu: int = 0
    shares: int = 0
    reservation: float = 0
    limit: float = 0
    hot_add_enabled: bool = False


@dataclass
class VMemoryInfo:
    vm_name: str
    power_state: str = ""
    template: bool = False
    memory_mib: float = 0
    shares: int = 0
    reservation: float = 0
    limit: float = 0
    hot_add_enabled: bool = False
    active: Optional[float] = None
    consumed: Optional[float] = None
    ballooned: Optional[float] = None


@dataclass
class VDiskInfo:
    vm_name: str
    power_state: str = ""
    template: bool = False
    disk_label: str = ""
    disk_key: int = 0
    disk_uuid: Optional[str] = None
    disk_path: str = ""
    capacity_mib: float = 0
    raw: bool = False
    disk_mode: str = ""
    sharing_mode: str = ""
    thin: bool = False
    eagerly_scrub: bool = False
    controller_type: str = ""
    unit_number: int = 0
    datacenter: str = ""
    cluster: str = ""
    host: str = ""

    @property
    def capacity_gib(self) -> float:
        return self.capacity_mib / 1024

    @property
    def is_shared(self) -> bool:
        return bool(self.sharing_mode) and self.sharing_mode.lower() != "sharingnone"


@dataclass
class VNetworkInfo:
    vm_name: str
    power_state: str = ""
    template: bool = False
    nic_label: str = ""
    adapter_type: str = ""              # "vmxnet3", "e1000", "e1000e"
    network_name: str = ""
    switch_name: str = ""
    connected: bool = False
    starts_connected: bool = False
    mac_address: str = ""
    mac_type: str = ""
    ipv4_address: Optional[str] = None
    ipv6_address: Optional[str] = None
    direct_path_io: bool = False
    datacenter: str = ""
    cluster: str = ""
    host: str = ""


@dataclass
class VCDInfo:
    vm_name: str
    power_state: str = ""
    template: bool = False
    device_node: str = ""
    connected: bool = False
    starts_connected: bool = False
    device_type: str = ""
    datacenter: str = ""
    cluster: str = ""
    host: str = ""


@dataclass
class VSnapshotInfo:
    vm_name: str
    snapshot_name: str = ""
    power_state: str = ""
    description: Optional[str] = None
    date_time: Optional[datetime] = None
    filename: str = ""
    size_vmsn_mib: float = 0
    size_total_mib: float = 0
    quiesced: bool = False
    state: str = ""
    datacenter: str = ""
    cluster: str = ""
    host: str = ""
    age_in_days: int = 0


@dataclass
class VToolsInfo:
    vm_name: str
    tools_status: str = ""              # toolsOk | toolsOld | toolsNotInstalled | toolsNotRunning
    power_state: str = ""
    template: bool = False
    vm_version: str = ""
    tools_version: Optional[str] = None
    required_version: Optional[str] = None
    upgradeable: bool = False
    upgrade_policy: str = ""
    heartbeat_status: Optional[str] = None


@dataclass
class VClusterInfo:
    name: str
    config_status: str = ""
    overall_status: str = ""
    vm_count: int = 0
    host_count: int = 0
    effective_hosts: int = 0
    total_cpu_mhz: float = 0
    cpu_cores: int = 0
    cpu_threads: int = 0
    effective_cpu_mhz: float = 0
    total_memory_mib: float = 0
    effective_memory_mib: float = 0
    ha_enabled: bool = False
    ha_failover_level: int = 0
    drs_enabled: bool = False
    drs_behavior: str = ""
    evc_mode: Optional[str] = None
    datacenter: str = ""


@dataclass
class VHostInfo:
    name: str
    config_status: str = ""
    overall_status: str = ""
    power_state: str = ""
    connection_state: str = ""
    cpu_model: str = ""
    cpu_mhz: float = 0
    cpu_sockets: int = 0
    cores_per_socket: int = 0
    total_cpu_cores: int = 0
    hyperthreading: bool = False
    cpu_usage_mhz: float = 0
    memory_mib: float = 0
    memory_usage_mib: float = 0
    vm_count: int = 0
    vendor: str = ""
    model: str = ""
    esxi_version: str = ""
    esxi_build: str = ""
    datacenter: str = ""
    cluster: str = ""


@dataclass
class VDatastoreInfo:
    name: str
    config_status: str = ""
    address: Optional[str] = None
    accessible: bool = True
    type: str = ""                      # VMFS | NFS | vsan | VVOL
    vm_count: int = 0
    capacity_mib: float = 0
    provisioned_mib: float = 0
    in_use_mib: float = 0
    free_mib: float = 0
    free_percent: float = 0
    sioc_enabled: bool = False
    host_count: int = 0
    datacenter: str = ""
    cluster: Optional[str] = None

    @property
    def used_percent(self) -> float:
        if not self.capacity_mib:
            return 0.0
        return (self.capacity_mib - self.free_mib) / self.capacity_mib * 100


@dataclass
class RVToolsMetadata:
    file_name: str
    collection_date: Optional[datetime] = None
    vcenter_version: Optional[str] = None
    environment: Optional[str] = None


@dataclass
class RVToolsData:
    """All parsed sheets of one RVTools export."""
    metadata: RVToolsMetadata
    vms: list[VirtualMachine] = field(default_factory=list)
    cpus: list[VCPUInfo] = field(default_factory=list)
    memory: list[VMemoryInfo] = field(default_factory=list)
    disks: list[VDiskInfo] = field(default_factory=list)
    networks: list[VNetworkInfo] = field(default_factory=list)
    cds: list[VCDInfo] = field(default_factory=list)
    snapshots: list[VSnapshotInfo] = field(default_factory=list)
    tools: list[VToolsInfo] = field(default_factory=list)
    clusters: list[VClusterInfo] = field(default_factory=list)
    hosts: list[VHostInfo] = field(default_factory=list)
    datastores: list[VDatastoreInfo] = field(default_factory=list)

    @property
    def active_vms(self) -> list[VirtualMachine]:
        """Powered-on VMs that are not templates."""
        return [vm for vm in self.vms if vm.is_powered_on and not vm.template]

    def disks_for(self, vm_name: str) -> list[VDiskInfo]:
        return [d for d in self.disks if d.vm_name == vm_name]

    def snapshots_for(self, vm_name: str) -> list[VSnapshotInfo]:
        return [s for s in self.snapshots if s.vm_name == vm_name]

    def cds_for(self, vm_name: str) -> list[VCDInfo]:
        return [c for c in self.cds if c.vm_name == vm_name]

    def networks_for(self, vm_name: str) -> list[VNetworkInfo]:
        return [n for n in self.networks if n.vm_name == vm_name]

    def summary(self) -> dict:
        """Headline totals used by the CLI and report covers."""
        vms = [vm for vm in self.vms if not vm.template]
        return {
            "total_vms": len(vms),
            "powered_on": sum(1 for vm in vms if vm.power_state == "poweredOn"),
            "powered_off": sum(1 for vm in vms if vm.power_state == "poweredOff"),
            "suspended": sum(1 for vm in vms if vm.power_state == "suspended"),
            "templates": sum(1 for vm in self.vms if vm.template),
            "total_vcpus": sum(vm.cpus for vm in vms),
            "total_memory_gib": sum(vm.memory_mib for vm in vms) / 1024,
            "total_provisioned_tib": sum(vm.provisioned_mib for vm in vms) / (1024 * 1024),
            "total_in_use_tib": sum(vm.in_use_mib for vm in vms) / (1024 * 1024),
            "clusters": len(self.clusters),
            "hosts": len(self.hosts),
            "datastores": len(self.datastores),
        }


@dataclass
class ParseResult:
    success: bool
    data: Optional[RVToolsData] = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
