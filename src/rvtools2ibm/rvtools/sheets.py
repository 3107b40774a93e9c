"""Row-level parsers for the individual RVTools sheets.

Each RVTools release renames a handful of columns, so every sheet has a
column map of accepted header aliases -> field name. Headers are matched
exactly first (surrounding quotes stripped), then on a normalized form
(lowercase, collapsed whitespace).
"""

from __future__ import annotations

import math
import re
from datetime import datetime, timedelta
from typing import Any, Iterable, Optional, Sequence

from rvtools2ibm.rvtools.models import (
    VCDInfo,
    VClusterInfo,
    VCPUInfo,
    VDatastoreInfo,
    VDiskInfo,
    VHostInfo,
    VirtualMachine,
    VMemoryInfo,
    VNetworkInfo,
    VSnapshotInfo,
    VToolsInfo,
)
from rvtools2ibm.utils.logging import get_logger

logger = get_logger(__name__)

ParsedRow = dict[str, Any]

_QUOTES = re.compile(r"""^["']+|["']+$""")
_EXCEL_EPOCH = datetime(1899, 12, 30)

_DATE_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %I:%M:%S %p",
    "%m/%d/%Y %H:%M",
    "%d.%m.%Y %H:%M:%S",
    "%m/%d/%Y",
    "%Y-%m-%d",
)


def normalize_header(header: str) -> str:
    return re.sub(r"\s+", " ", _QUOTES.sub("", header).lower().strip())


def parse_sheet(rows: Iterable[Sequence[Any]], column_map: dict[str, str]) -> list[ParsedRow]:
    """Turn raw sheet rows (header first) into dicts keyed by field name.

    Empty cells are omitted, and rows with no mapped value at all are
    dropped.
    """
    iterator = iter(rows)
    headers = next(iterator, None)
    if not headers:
        return []

    normalized_map = {normalize_header(k): v for k, v in column_map.items()}
    index_to_field: dict[int, str] = {}
    unmatched: list[str] = []

    for index, header in enumerate(headers):
        if header is None or header == "":
            continue
        header_str = str(header).strip()
        clean = _QUOTES.sub("", header_str).strip()
        field_name = column_map.get(clean) or normalized_map.get(normalize_header(header_str))
        if field_name:
            index_to_field[index] = field_name
        else:
            unmatched.append(header_str)

    if unmatched:
        logger.debug(f"Unmatched headers: {', '.join(repr(h) for h in unmatched)}")

    parsed: list[ParsedRow] = []
    for raw in iterator:
        if not raw:
            continue
        row: ParsedRow = {}
        for index, field_name in index_to_field.items():
            if index >= len(raw):
                continue
            value = raw[index]
            if value is None or value == "":
                continue
            row[field_name] = value
        if row:
            parsed.append(row)

    return parsed


# ═══════════════════════════════════════════════════════════════════
#  Value helpers
# ═══════════════════════════════════════════════════════════════════

def get_string_value(row: ParsedRow, field: str) -> str:
    value = row.get(field)
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def get_optional_string(row: ParsedRow, field: str) -> Optional[str]:
    return get_string_value(row, field) or None


def get_number_value(row: ParsedRow, field: str) -> float:
    value = row.get(field)
    if value is None or isinstance(value, bool):
        return float(value or 0)
    if isinstance(value, (int, float)):
        return 0.0 if isinstance(value, float) and math.isnan(value) else value
    try:
        parsed = float(str(value).replace(",", ""))
    except ValueError:
        return 0
    return 0 if math.isnan(parsed) else parsed


def get_int_value(row: ParsedRow, field: str) -> int:
    return int(get_number_value(row, field))


def get_boolean_value(row: ParsedRow, field: str) -> bool:
    value = row.get(field)
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return str(value).lower().strip() in ("true", "yes", "1", "on")


def get_date_value(row: ParsedRow, field: str) -> Optional[datetime]:
    value = row.get(field)
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return _EXCEL_EPOCH + timedelta(days=float(value))

    text = str(value).strip()
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


# ═══════════════════════════════════════════════════════════════════
#  vInfo
# ═══════════════════════════════════════════════════════════════════

VINFO_COLUMNS = {
    "VM": "vm_name", "VM Name": "vm_name", "Name": "vm_name",
    "Powerstate": "power_state", "Power State": "power_state",
    "Template": "template",
    "SRM Placeholder": "srm_placeholder",
    "Config status": "config_status", "Config Status": "config_status",
    "DNS Name": "dns_name",
    "Connection state": "connection_state", "Connection State": "connection_state",
    "Guest state": "guest_state", "Guest State": "guest_state",
    "Heartbeat": "heartbeat",
    "Consolidation Needed": "consolidation_needed",
    "PowerOn": "power_on_date", "Power On": "power_on_date",
    "Creation date": "creation_date", "Creation Date": "creation_date",
    "CPUs": "cpus", "Num CPU": "cpus",
    "Memory": "memory_mib", "Memory MB": "memory_mib",
    "NICs": "nics",
    "Disks": "disks",
    "Resource pool": "resource_pool", "Resource Pool": "resource_pool",
    "Folder": "folder",
    "vApp": "vapp",
    "FT State": "ft_state",
    "CBT": "cbt_enabled", "CBT Enabled": "cbt_enabled",
    "Changed Block Tracking": "cbt_enabled", "Change Block Tracking": "cbt_enabled",
    "HW version": "hardware_version", "Hardware Version": "hardware_version",
    "OS according to the configuration file": "guest_os",
    "OS according to the VMware Tools": "os_tools_config",
    "Guest OS": "guest_os", "OS": "guest_os",
    "Guest Hostname": "guest_hostname", "Hostname": "guest_hostname",
    "Guest IP": "guest_ip", "IP Address": "guest_ip", "Primary IP Address": "guest_ip",
    "Annotation": "annotation", "Notes": "annotation",
    "Cluster": "cluster",
    "Host": "host",
    "Datacenter": "datacenter",
    "Provisioned MB": "provisioned_mib", "Provisioned MiB": "provisioned_mib",
    "In Use MB": "in_use_mib", "In Use MiB": "in_use_mib",
    "VM UUID": "uuid", "UUID": "uuid",
    "Firmware": "firmware_type", "Firmware Type": "firmware_type",
    "Latency Sensitivity": "latency_sensitivity",
}


def normalize_power_state(raw: str) -> str:
    value = raw.lower()
    if "on" in value:
        return "poweredOn"
    if "suspend" in value:
        return "suspended"
    return "poweredOff"


def parse_vinfo(rows: Iterable[Sequence[Any]]) -> list[VirtualMachine]:
    vms = []
    for row in parse_sheet(rows, VINFO_COLUMNS):
        vm = VirtualMachine(
            vm_name=get_string_value(row, "vm_name"),
            power_state=normalize_power_state(get_string_value(row, "power_state")),
            template=get_boolean_value(row, "template"),
            srm_placeholder=get_boolean_value(row, "srm_placeholder"),
            config_status=get_string_value(row, "config_status"),
            dns_name=get_optional_string(row, "dns_name"),
            connection_state=get_string_value(row, "connection_state"),
            guest_state=get_string_value(row, "guest_state"),
            heartbeat=get_string_value(row, "heartbeat"),
            consolidation_needed=get_boolean_value(row, "consolidation_needed"),
            power_on_date=get_date_value(row, "power_on_date"),
            creation_date=get_date_value(row, "creation_date"),
            cpus=get_int_value(row, "cpus"),
            memory_mib=get_number_value(row, "memory_mib"),
            nics=get_int_value(row, "nics"),
            disks=get_int_value(row, "disks"),
            resource_pool=get_optional_string(row, "resource_pool"),
            folder=get_optional_string(row, "folder"),
            vapp=get_optional_string(row, "vapp"),
            ft_state=get_optional_string(row, "ft_state"),
            cbt_enabled=get_boolean_value(row, "cbt_enabled"),
            hardware_version=get_string_value(row, "hardware_version"),
            guest_os=get_string_value(row, "guest_os"),
            os_tools_config=get_string_value(row, "os_tools_config"),
            guest_hostname=get_optional_string(row, "guest_hostname"),
            guest_ip=get_optional_string(row, "guest_ip"),
            annotation=get_optional_string(row, "annotation"),
            datacenter=get_string_value(row, "datacenter"),
            cluster=get_string_value(row, "cluster"),
            host=get_string_value(row, "host"),
            provisioned_mib=get_number_value(row, "provisioned_mib"),
            in_use_mib=get_number_value(row, "in_use_mib"),
            uuid=get_optional_string(row, "uuid"),
            firmware_type=get_optional_string(row, "firmware_type"),
            latency_sensitivity=get_optional_string(row, "latency_sensitivity"),
        )
        if vm.vm_name:
            vms.append(vm)
    return vms


# ═══════════════════════════════════════════════════════════════════
#  vCPU / vMemory
# ═══════════════════════════════════════════════════════════════════

VCPU_COLUMNS = {
    "VM": "vm_name", "VM Name": "vm_name",
    "Powerstate": "power_state", "Power State": "power_state",
    "Template": "template",
    "CPUs": "cpus", "Num CPU": "cpus",
    "Sockets": "sockets",
    "Cores p/s": "cores_per_socket", "Cores per Socket": "cores_per_socket",
    "Max": "max_cpu",
    "Shares": "shares",
    "Reservation": "reservation",
    "Limit": "limit",
    "Hot Add": "hot_add_enabled", "CPU Hot Add": "hot_add_enabled",
}

VMEMORY_COLUMNS = {
    "VM": "vm_name", "VM Name": "vm_name",
    "Powerstate": "power_state", "Power State": "power_state",
    "Template": "template",
    "Size MB": "memory_mib", "Size MiB": "memory_mib", "Memory": "memory_mib",
    "Shares": "shares",
    "Reservation": "reservation",
    "Limit": "limit",
    "Hot Add": "hot_add_enabled", "Memory Hot Add": "hot_add_enabled",
    "Active": "active",
    "Consumed": "consumed",
    "Ballooned": "ballooned",
}


def parse_vcpu(rows: Iterable[Sequence[Any]]) -> list[VCPUInfo]:
    records = [
        VCPUInfo(
            vm_name=get_string_value(row, "vm_name"),
            power_state=get_string_value(row, "power_state"),
            template=get_boolean_value(row, "template"),
            cpus=get_int_value(row, "cpus"),
            sockets=get_int_value(row, "sockets"),
            cores_per_socket=get_int_value(row, "cores_per_socket"),
            max_cpu=get_int_value(row, "max_cpu"),
            shares=get_int_value(row, "shares"),
            reservation=get_number_value(row, "reservation"),
            limit=get_number_value(row, "limit"),
            hot_add_enabled=get_boolean_value(row, "hot_add_enabled"),
        )
        for row in parse_sheet(rows, VCPU_COLUMNS)
    ]
    return [r for r in records if r.vm_name]


def parse_vmemory(rows: Iterable[Sequence[Any]]) -> list[VMemoryInfo]:
    records = []
    for row in parse_sheet(rows, VMEMORY_COLUMNS):
        records.append(VMemoryInfo(
            vm_name=get_string_value(row, "vm_name"),
            power_state=get_string_value(row, "power_state"),
            template=get_boolean_value(row, "template"),
            memory_mib=get_number_value(row, "memory_mib"),
            shares=get_int_value(row, "shares"),
            reservation=get_number_value(row, "reservation"),
            limit=get_number_value(row, "limit"),
            hot_add_enabled=get_boolean_value(row, "hot_add_enabled"),
            active=get_number_value(row, "active") if "active" in row else None,
            consumed=get_number_value(row, "consumed") if "consumed" in row else None,
            ballooned=get_number_value(row, "ballooned") if "ballooned" in row else None,
        ))
    return [r for r in records if r.vm_name]


# ═══════════════════════════════════════════════════════════════════
#  vDisk
# ═══════════════════════════════════════════════════════════════════

VDISK_COLUMNS = {
    "VM": "vm_name", "VM Name": "vm_name",
    "Powerstate": "power_state", "Power State": "power_state",
    "Template": "template",
    "Disk": "disk_label", "Disk Label": "disk_label", "Label": "disk_label",
    "Key": "disk_key", "Disk Key": "disk_key",
    "UUID": "disk_uuid", "Disk UUID": "disk_uuid",
    "Path": "disk_path", "Disk Path": "disk_path",
    "Capacity MB": "capacity_mib", "Capacity MiB": "capacity_mib", "Capacity": "capacity_mib",
    "Raw": "raw", "RDM": "raw",
    "Disk Mode": "disk_mode", "Mode": "disk_mode",
    "Sharing": "sharing_mode", "Sharing Mode": "sharing_mode",
    "Thin": "thin", "Thin provisioned": "thin",
    "Eagerly Scrub": "eagerly_scrub",
    "Controller": "controller_type", "Controller Type": "controller_type",
    "SCSI Controller": "controller_type",
    "Unit Number": "unit_number", "Unit": "unit_number",
    "Datacenter": "datacenter",
    "Cluster": "cluster",
    "Host": "host",
}


def parse_vdisk(rows: Iterable[Sequence[Any]]) -> list[VDiskInfo]:
    disks = []
    for row in parse_sheet(rows, VDISK_COLUMNS):
        disks.append(VDiskInfo(
            vm_name=get_string_value(row, "vm_name"),
            power_state=get_string_value(row, "power_state"),
            template=get_boolean_value(row, "template"),
            disk_label=get_string_value(row, "disk_label"),
            disk_key=get_int_value(row, "disk_key"),
            disk_uuid=get_optional_string(row, "disk_uuid"),
            disk_path=get_string_value(row, "disk_path"),
            capacity_mib=get_number_value(row, "capacity_mib"),
            raw=get_boolean_value(row, "raw"),
            disk_mode=get_string_value(row, "disk_mode"),
            sharing_mode=get_string_value(row, "sharing_mode"),
            thin=get_boolean_value(row, "thin"),
            eagerly_scrub=get_boolean_value(row, "eagerly_scrub"),
            controller_type=get_string_value(row, "controller_type"),
            unit_number=get_int_value(row, "unit_number"),
            datacenter=get_string_value(row, "datacenter"),
            cluster=get_string_value(row, "cluster"),
            host=get_string_value(row, "host"),
        ))
    return [d for d in disks if d.vm_name]


# ═══════════════════════════════════════════════════════════════════
#  vNetwork / vCD
# ═══════════════════════════════════════════════════════════════════

VNETWORK_COLUMNS = {
    "VM": "vm_name", "VM Name": "vm_name",
    "Powerstate": "power_state", "Power State": "power_state",
    "Template": "template",
    "NIC": "nic_label", "NIC Label": "nic_label", "Network Adapter": "nic_label",
    "Adapter": "adapter_type", "Adapter Type": "adapter_type", "NIC Type": "adapter_type",
    "Network": "network_name", "Port Group": "network_name", "Portgroup": "network_name",
    "Switch": "switch_name", "vSwitch": "switch_name",
    "Connected": "connected",
    "Starts Connected": "starts_connected", "Start Connected": "starts_connected",
    "Mac Address": "mac_address", "MAC Address": "mac_address",
    "Type": "mac_type",
    "IP Address": "ipv4_address", "IPv4 Address": "ipv4_address",
    "IP": "ipv4_address", "Primary IP Address": "ipv4_address",
    "IPv6 Address": "ipv6_address",
    "DirectPath IO": "direct_path_io",
    "Datacenter": "datacenter",
    "Cluster": "cluster",
    "Host": "host",
}

VCD_COLUMNS = {
    "VM": "vm_name", "VM Name": "vm_name",
    "Powerstate": "power_state", "Power State": "power_state",
    "Template": "template",
    "Device": "device_node", "Device Node": "device_node", "CD/DVD": "device_node",
    "Label": "device_node",
    "Connected": "connected",
    "Starts Connected": "starts_connected", "Start Connected": "starts_connected",
    "Device Type": "device_type", "Type": "device_type",
    "Datacenter": "datacenter",
    "Cluster": "cluster",
    "Host": "host",
}


def parse_vnetwork(rows: Iterable[Sequence[Any]]) -> list[VNetworkInfo]:
    nics = []
    for row in parse_sheet(rows, VNETWORK_COLUMNS):
        nics.append(VNetworkInfo(
            vm_name=get_string_value(row, "vm_name"),
            power_state=get_string_value(row, "power_state"),
            template=get_boolean_value(row, "template"),
            nic_label=get_string_value(row, "nic_label"),
            adapter_type=get_string_value(row, "adapter_type"),
            network_name=get_string_value(row, "network_name"),
            switch_name=get_string_value(row, "switch_name"),
            connected=get_boolean_value(row, "connected"),
            starts_connected=get_boolean_value(row, "starts_connected"),
            mac_address=get_string_value(row, "mac_address"),
            mac_type=get_string_value(row, "mac_type"),
            ipv4_address=get_optional_string(row, "ipv4_address"),
            ipv6_address=get_optional_string(row, "ipv6_address"),
            direct_path_io=get_boolean_value(row, "direct_path_io"),
            datacenter=get_string_value(row, "datacenter"),
            cluster=get_string_value(row, "cluster"),
            host=get_string_value(row, "host"),
        ))
    return [n for n in nics if n.vm_name]


def parse_vcd(rows: Iterable[Sequence[Any]]) -> list[VCDInfo]:
    cds = [
        VCDInfo(
            vm_name=get_string_value(row, "vm_name"),
            power_state=get_string_value(row, "power_state"),
            template=get_boolean_value(row, "template"),
            device_node=get_string_value(row, "device_node"),
            connected=get_boolean_value(row, "connected"),
            starts_connected=get_boolean_value(row, "starts_connected"),
            device_type=get_string_value(row, "device_type"),
            datacenter=get_string_value(row, "datacenter"),
            cluster=get_string_value(row, "cluster"),
            host=get_string_value(row, "host"),
        )
        for row in parse_sheet(rows, VCD_COLUMNS)
    ]
    return [c for c in cds if c.vm_name]


# ═══════════════════════════════════════════════════════════════════
#  vSnapshot / vTools
# ═══════════════════════════════════════════════════════════════════

VSNAPSHOT_COLUMNS = {
    "VM": "vm_name", "VM Name": "vm_name",
    "Powerstate": "power_state", "Power State": "power_state",
    "Snapshot": "snapshot_name", "Name": "snapshot_name", "Snapshot Name": "snapshot_name",
    "Description": "description",
    "Date / time": "date_time", "Date/Time": "date_time",
    "Created": "date_time", "Creation Date": "date_time",
    "Filename": "filename", "File": "filename",
    "Size vmsn MB": "size_vmsn_mib", "Size VMSN MiB": "size_vmsn_mib",
    "Size MB": "size_total_mib", "Size MiB": "size_total_mib",
    "Size Total MiB": "size_total_mib", "Size": "size_total_mib",
    "Quiesced": "quiesced",
    "State": "state", "Snapshot State": "state",
    "Datacenter": "datacenter",
    "Cluster": "cluster",
    "Host": "host",
}

VTOOLS_COLUMNS = {
    "VM": "vm_name", "VM Name": "vm_name", "Name": "vm_name",
    "Powerstate": "power_state", "Power State": "power_state",
    "Template": "template",
    "VM Version": "vm_version", "HW Version": "vm_version", "Hardware Version": "vm_version",
    "Tools": "tools_status", "Tools Status": "tools_status", "ToolsStatus": "tools_status",
    "Status": "tools_status", "VMware Tools Status": "tools_status",
    "Guest Tools Status": "tools_status", "Tools Running Status": "tools_status",
    "Running Status": "tools_status", "Tools State": "tools_status",
    "Tools Version": "tools_version", "Version": "tools_version",
    "VMware Tools Version": "tools_version",
    "Required Version": "required_version",
    "Upgradeable": "upgradeable",
    "Upgrade Policy": "upgrade_policy", "Policy": "upgrade_policy",
    "Heartbeat": "heartbeat_status", "Heartbeat Status": "heartbeat_status",
}


def parse_vsnapshot(rows: Iterable[Sequence[Any]], now: Optional[datetime] = None) -> list[VSnapshotInfo]:
    """Parse snapshots; age is whole days between the snapshot and ``now``."""
    now = now or datetime.now()
    snapshots = []
    for row in parse_sheet(rows, VSNAPSHOT_COLUMNS):
        taken = get_date_value(row, "date_time") or now
        if taken.tzinfo is not None:
            taken = taken.replace(tzinfo=None)
        snapshots.append(VSnapshotInfo(
            vm_name=get_string_value(row, "vm_name"),
            snapshot_name=get_string_value(row, "snapshot_name"),
            power_state=get_string_value(row, "power_state"),
            description=get_optional_string(row, "description"),
            date_time=taken,
            filename=get_string_value(row, "filename"),
            size_vmsn_mib=get_number_value(row, "size_vmsn_mib"),
            size_total_mib=get_number_value(row, "size_total_mib"),
            quiesced=get_boolean_value(row, "quiesced"),
            state=get_string_value(row, "state"),
            datacenter=get_string_value(row, "datacenter"),
            cluster=get_string_value(row, "cluster"),
            host=get_string_value(row, "host"),
            age_in_days=math.floor((now - taken) / timedelta(days=1)),
        ))
    return [s for s in snapshots if s.vm_name]


def parse_vtools(rows: Iterable[Sequence[Any]]) -> list[VToolsInfo]:
    tools = [
        VToolsInfo(
            vm_name=get_string_value(row, "vm_name"),
            tools_status=get_string_value(row, "tools_status"),
            power_state=get_string_value(row, "power_state"),
            template=get_boolean_value(row, "template"),
            vm_version=get_string_value(row, "vm_version"),
            tools_version=get_optional_string(row, "tools_version"),
            required_version=get_optional_string(row, "required_version"),
            upgradeable=get_boolean_value(row, "upgradeable"),
            upgrade_policy=get_string_value(row, "upgrade_policy"),
            heartbeat_status=get_optional_string(row, "heartbeat_status"),
        )
        for row in parse_sheet(rows, VTOOLS_COLUMNS)
    ]
    return [t for t in tools if t.vm_name]


# ═══════════════════════════════════════════════════════════════════
#  vCluster / vHost / vDatastore
# ═══════════════════════════════════════════════════════════════════

VCLUSTER_COLUMNS = {
    "Name": "name", "Cluster": "name",
    "Config status": "config_status", "Config Status": "config_status",
    "OverallStatus": "overall_status", "Overall Status": "overall_status",
    "# VMs": "vm_count", "VMs": "vm_count", "NumVMs": "vm_count",
    "# Hosts": "host_count", "Hosts": "host_count", "NumHosts": "host_count",
    "# Effective Hosts": "effective_hosts", "numEffectiveHosts": "effective_hosts",
    "Total CPU": "total_cpu_mhz", "TotalCpu": "total_cpu_mhz",
    "# CPU Cores": "cpu_cores", "NumCpuCores": "cpu_cores",
    "# CPU Threads": "cpu_threads", "NumCpuThreads": "cpu_threads",
    "Effective CPU": "effective_cpu_mhz", "Effective Cpu": "effective_cpu_mhz",
    "Total Memory": "total_memory_mib", "TotalMemory": "total_memory_mib",
    "Effective Memory": "effective_memory_mib",
    "HA enabled": "ha_enabled", "HA Enabled": "ha_enabled",
    "Failover Level": "ha_failover_level", "HA Failover Level": "ha_failover_level",
    "DRS enabled": "drs_enabled", "DRS Enabled": "drs_enabled",
    "DRS default VM behavior": "drs_behavior", "DRS Behavior": "drs_behavior",
    "EVC Mode": "evc_mode",
    "Datacenter": "datacenter",
}

VHOST_COLUMNS = {
    "Host": "name", "Name": "name",
    "Config status": "config_status", "Config Status": "config_status",
    "Overall Status": "overall_status",
    "Power State": "power_state", "Powerstate": "power_state",
    "Connection State": "connection_state", "Connection state": "connection_state",
    "CPU Model": "cpu_model",
    "Speed": "cpu_mhz", "CPU Speed": "cpu_mhz",
    "# CPU": "cpu_sockets", "CPU Sockets": "cpu_sockets",
    "Cores per CPU": "cores_per_socket",
    "# Cores": "total_cpu_cores", "CPU Cores": "total_cpu_cores",
    "HT Active": "hyperthreading", "Hyperthreading": "hyperthreading",
    "CPU usage %": "cpu_usage_mhz", "CPU Usage": "cpu_usage_mhz",
    "# Memory": "memory_mib", "Memory": "memory_mib",
    "Memory usage %": "memory_usage_mib", "Memory Usage": "memory_usage_mib",
    "# VMs": "vm_count", "VMs": "vm_count",
    "Vendor": "vendor",
    "Model": "model",
    "ESX Version": "esxi_version", "ESXi Version": "esxi_version",
    "ESX Build": "esxi_build", "Build": "esxi_build",
    "Datacenter": "datacenter",
    "Cluster": "cluster",
}

VDATASTORE_COLUMNS = {
    "Name": "name", "Datastore": "name",
    "Config status": "config_status", "Config Status": "config_status",
    "Address": "address",
    "Accessible": "accessible",
    "Type": "type",
    "# VMs": "vm_count", "VMs": "vm_count",
    "Capacity MB": "capacity_mib", "Capacity MiB": "capacity_mib",
    "Provisioned MB": "provisioned_mib", "Provisioned MiB": "provisioned_mib",
    "In Use MB": "in_use_mib", "In Use MiB": "in_use_mib",
    "Free MB": "free_mib", "Free MiB": "free_mib",
    "Free %": "free_percent",
    "SIOC enabled": "sioc_enabled", "SIOC Enabled": "sioc_enabled",
    "# Hosts": "host_count", "Hosts": "host_count",
    "Datacenter": "datacenter",
    "Cluster name": "cluster", "Cluster": "cluster",
}


def parse_vcluster(rows: Iterable[Sequence[Any]]) -> list[VClusterInfo]:
    clusters = []
    for row in parse_sheet(rows, VCLUSTER_COLUMNS):
        clusters.append(VClusterInfo(
            name=get_string_value(row, "name"),
            config_status=get_string_value(row, "config_status"),
            overall_status=get_string_value(row, "overall_status"),
            vm_count=get_int_value(row, "vm_count"),
            host_count=get_int_value(row, "host_count"),
            effective_hosts=get_int_value(row, "effective_hosts"),
            total_cpu_mhz=get_number_value(row, "total_cpu_mhz"),
            cpu_cores=get_int_value(row, "cpu_cores"),
            cpu_threads=get_int_value(row, "cpu_threads"),
            effective_cpu_mhz=get_number_value(row, "effective_cpu_mhz"),
            total_memory_mib=get_number_value(row, "total_memory_mib"),
            effective_memory_mib=get_number_value(row, "effective_memory_mib"),
            ha_enabled=get_boolean_value(row, "ha_enabled"),
            ha_failover_level=get_int_value(row, "ha_failover_level"),
            drs_enabled=get_boolean_value(row, "drs_enabled"),
            drs_behavior=get_string_value(row, "drs_behavior"),
            evc_mode=get_optional_string(row, "evc_mode"),
            datacenter=get_string_value(row, "datacenter"),
        ))
    return [c for c in clusters if c.name]


def parse_vhost(rows: Iterable[Sequence[Any]]) -> list[VHostInfo]:
    hosts = []
    for row in parse_sheet(rows, VHOST_COLUMNS):
        sockets = get_int_value(row, "cpu_sockets")
        cores_per_socket = get_int_value(row, "cores_per_socket")
        total_cores = get_int_value(row, "total_cpu_cores") or sockets * cores_per_socket
        hosts.append(VHostInfo(
            name=get_string_value(row, "name"),
            config_status=get_string_value(row, "config_status"),
            overall_status=get_string_value(row, "overall_status"),
            power_state=get_string_value(row, "power_state"),
            connection_state=get_string_value(row, "connection_state"),
            cpu_model=get_string_value(row, "cpu_model"),
            cpu_mhz=get_number_value(row, "cpu_mhz"),
            cpu_sockets=sockets,
            cores_per_socket=cores_per_socket,
            total_cpu_cores=total_cores,
            hyperthreading=get_boolean_value(row, "hyperthreading"),
            cpu_usage_mhz=get_number_value(row, "cpu_usage_mhz"),
            memory_mib=get_number_value(row, "memory_mib"),
            memory_usage_mib=get_number_value(row, "memory_usage_mib"),
            vm_count=get_int_value(row, "vm_count"),
            vendor=get_string_value(row, "vendor"),
            model=get_string_value(row, "model"),
            esxi_version=get_string_value(row, "esxi_version"),
            esxi_build=get_string_value(row, "esxi_build"),
            datacenter=get_string_value(row, "datacenter"),
            cluster=get_string_value(row, "cluster"),
        ))
    return [h for h in hosts if h.name]


def parse_vdatastore(rows: Iterable[Sequence[Any]]) -> list[VDatastoreInfo]:
    datastores = []
    for row in parse_sheet(rows, VDATASTORE_COLUMNS):
        datastores.append(VDatastoreInfo(
            name=get_string_value(row, "name"),
            config_status=get_string_value(row, "config_status"),
            address=get_optional_string(row, "address"),
            accessible=get_boolean_value(row, "accessible") if "accessible" in row else True,
            type=get_string_value(row, "type"),
            vm_count=get_int_value(row, "vm_count"),
            capacity_mib=get_number_value(row, "capacity_mib"),
            provisioned_mib=get_number_value(row, "provisioned_mib"),
            in_use_mib=get_number_value(row, "in_use_mib"),
            free_mib=get_number_value(row, "free_mib"),
            free_percent=get_number_value(row, "free_percent"),
            sioc_enabled=get_boolean_value(row, "sioc_enabled"),
            host_count=get_int_value(row, "host_count"),
            datacenter=get_string_value(row, "datacenter"),
            cluster=get_optional_string(row, "cluster"),
        ))
    return [d for d in datastores if d.name]
