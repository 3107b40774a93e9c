"""Shared fixtures: a small RVTools export written with openpyxl.

The inventory is deliberately mixed:

  web-01      RHEL 9, healthy, tools OK, recent snapshot, memory hot add
  db-01       Windows 2019, HW v13, CD connected, CPU hot add, no CBT
  Legacy_App  Windows 2008 R2, HW v8, RDM disk, tools missing, old snapshot,
              e1000 NIC, hostname "localhost", invalid RFC 1123 name
  test-off    powered off Ubuntu with a static IP and an independent disk
  vCLS-1234   vSphere Cluster Services agent
  tpl-rhel9   template
"""

from datetime import datetime, timedelta

import openpyxl
import pytest

SAMPLE_FILE_NAME = "RVTools_export_lab_2026-09-30_14.05.00.xlsx"

VINFO = [
    ["VM", "Powerstate", "Template", "CPUs", "Memory", "NICs", "Disks", "HW version",
     "OS according to the configuration file", "Hostname", "Primary IP Address", "CBT",
     "Datacenter", "Cluster", "Host", "Provisioned MB", "In Use MB", "VM UUID", "Folder"],
    ["web-01", "poweredOn", False, 4, 16384, 1, 1, "vmx-19",
     "Red Hat Enterprise Linux 9 (64-bit)", "web-01.example.com", "10.0.1.10", True,
     "DC1", "prod-cluster", "esxi-01.example.com", 102400, 51200, "4201aaaa-0001", "/Prod"],
    ["db-01", "poweredOn", False, 8, 65536, 1, 2, "vmx-13",
     "Microsoft Windows Server 2019 (64-bit)", "db-01.example.com", "10.0.2.20", False,
     "DC1", "prod-cluster", "esxi-02.example.com", 512000, 409600, "4201bbbb-0002", "/Prod"],
    ["Legacy_App", "poweredOn", False, 2, 4096, 1, 1, "vmx-08",
     "Microsoft Windows Server 2008 R2 (64-bit)", "localhost", "10.0.1.30", False,
     "DC1", "dev-cluster", "esxi-03.example.com", 40960, 30720, None, "/Dev"],
    ["test-off", "poweredOff", False, 2, 8192, 1, 1, "vmx-15",
     "Ubuntu Linux (64-bit)", "test-off", "10.0.3.5", False,
     "DC1", "dev-cluster", "esxi-03.example.com", 20480, 10240, "4201cccc-0004", "/Dev"],
    ["vCLS-1234", "poweredOn", False, 1, 128, 0, 1, "vmx-14",
     "Other 3.x or later Linux (64-bit)", None, None, False,
     "DC1", "prod-cluster", "esxi-01.example.com", 2048, 1024, "4201dddd-0005", "/vCLS"],
    ["tpl-rhel9", "poweredOff", True, 2, 4096, 1, 1, "vmx-19",
     "Red Hat Enterprise Linux 9 (64-bit)", None, None, False,
     "DC1", "prod-cluster", "esxi-01.example.com", 20480, 8192, "4201eeee-0006", "/Templates"],
]

VCPU = [
    ["VM", "Powerstate", "CPUs", "Sockets", "Cores p/s", "Hot Add"],
    ["web-01", "poweredOn", 4, 2, 2, False],
    ["db-01", "poweredOn", 8, 2, 4, True],
    ["Legacy_App", "poweredOn", 2, 1, 2, False],
]

VMEMORY = [
    ["VM", "Powerstate", "Size MB", "Hot Add"],
    ["web-01", "poweredOn", 16384, True],
    ["db-01", "poweredOn", 65536, False],
    ["Legacy_App", "poweredOn", 4096, False],
]

VDISK = [
    ["VM", "Powerstate", "Disk", "Disk Key", "Capacity MB", "Raw", "Disk Mode", "Sharing mode", "Thin"],
    ["web-01", "poweredOn", "Hard disk 1", 2000, 102400, False, "persistent", "sharingNone", True],
    ["db-01", "poweredOn", "Hard disk 1", 2000, 102400, False, "persistent", "sharingNone", False],
    ["db-01", "poweredOn", "Hard disk 2", 2001, 409600, False, "persistent", "sharingNone", False],
    ["Legacy_App", "poweredOn", "Hard disk 1", 2000, 40960, True, "persistent", "sharingNone", False],
    ["test-off", "poweredOff", "Hard disk 1", 2000, 20480, False, "independent_persistent", "sharingNone", True],
    ["vCLS-1234", "poweredOn", "Hard disk 1", 2000, 2048, False, "persistent", "sharingNone", True],
]

VNETWORK = [
    ["VM", "Powerstate", "NIC label", "Adapter", "Network", "Switch", "Connected", "IPv4 Address"],
    ["web-01", "poweredOn", "Network adapter 1", "vmxnet3", "VM-Network-Prod", "dvs-prod", True, "10.0.1.10"],
    ["db-01", "poweredOn", "Network adapter 1", "vmxnet3", "VM-Network-DB", "vSwitch0", True, "10.0.2.20"],
    ["Legacy_App", "poweredOn", "Network adapter 1", "e1000", "VM-Network-Prod", "dvs-prod", True, "10.0.1.30"],
    ["test-off", "poweredOff", "Network adapter 1", "vmxnet3", "VM-Network-Dev", "vSwitch0", False, None],
]

VCD = [
    ["VM", "Powerstate", "Device Node", "Connected", "Device Type"],
    ["db-01", "poweredOn", "CD/DVD drive 1", True, "ISO"],
    ["web-01", "poweredOn", "CD/DVD drive 1", False, "Client Device"],
]

VSNAPSHOT = [
    ["VM", "Powerstate", "Name", "Date / time", "Size MiB"],
    ["web-01", "poweredOn", "pre-patch", datetime.now() - timedelta(days=3), 1024],
    ["Legacy_App", "poweredOn", "before-upgrade", datetime(2020, 1, 1, 9, 0, 0), 20480],
]

VTOOLS = [
    ["VM", "Powerstate", "Tools", "Tools Version", "Upgradeable"],
    ["web-01", "poweredOn", "toolsOk", "12352", False],
    ["db-01", "poweredOn", "toolsOld", "11269", True],
    ["Legacy_App", "poweredOn", "toolsNotInstalled", None, False],
    ["test-off", "poweredOff", "toolsNotRunning", "12352", False],
]

VCLUSTER = [
    ["Name", "# Hosts", "# VMs", "# CPU Cores", "Total Memory", "HA enabled", "DRS enabled", "Datacenter"],
    ["prod-cluster", 2, 4, 64, 524288, True, True, "DC1"],
    ["dev-cluster", 1, 2, 32, 262144, False, False, "DC1"],
]

VHOST = [
    ["Host", "Cluster", "CPU Model", "# CPU", "Cores per CPU", "# Memory", "# VMs",
     "Vendor", "Model", "ESX Version", "ESX Build"],
    ["esxi-01.example.com", "prod-cluster", "Intel Xeon Gold 6248", 2, 16, 262144, 3,
     "Dell Inc.", "PowerEdge R640", "VMware ESXi 7.0.3", "21930508"],
    ["esxi-02.example.com", "prod-cluster", "Intel Xeon Gold 6248", 2, 16, 262144, 1,
     "Dell Inc.", "PowerEdge R640", "VMware ESXi 7.0.3", "21930508"],
    ["esxi-03.example.com", "dev-cluster", "Intel Xeon Silver 4214", 2, 12, 262144, 2,
     "HPE", "ProLiant DL360", "VMware ESXi 6.7.0", "17700523"],
]

VDATASTORE = [
    ["Name", "Type", "# VMs", "Capacity MB", "Provisioned MB", "In Use MB", "Free MB", "# Hosts", "Cluster name"],
    ["ds-prod-01", "VMFS", 4, 2097152, 1048576, 1572864, 524288, 2, "prod-cluster"],
    ["ds-dev-01", "NFS", 2, 1048576, 61440, 209716, 838860, 1, "dev-cluster"],
]

SAMPLE_SHEETS = {
    "vInfo": VINFO,
    "vCPU": VCPU,
    "vMemory": VMEMORY,
    "vDisk": VDISK,
    "vNetwork": VNETWORK,
    "vCD": VCD,
    "vSnapshot": VSNAPSHOT,
    "vTools": VTOOLS,
    "vCluster": VCLUSTER,
    "vHost": VHOST,
    "vDatastore": VDATASTORE,
}


def write_workbook(path, sheets: dict) -> None:
    wb = openpyxl.Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(name)
        for row in rows:
            ws.append(row)
    wb.save(path)


@pytest.fixture
def rvtools_file(tmp_path):
    path = tmp_path / SAMPLE_FILE_NAME
    write_workbook(path, SAMPLE_SHEETS)
    return path


@pytest.fixture
def sample_data(rvtools_file):
    from rvtools2ibm.rvtools.parser import parse_rvtools_file
    result = parse_rvtools_file(rvtools_file)
    assert result.success, result.errors
    return result.data
