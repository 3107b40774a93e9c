"""Remediation items derived from pre-flight check counts.

Items are only emitted for checks that affect at least one VM. Order
matters for display: blockers first, then warnings, then info.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING

from rvtools2ibm.constants import VPC_BOOT_DISK_MAX_GB, VPC_MAX_DISKS_PER_VM
from rvtools2ibm.pipeline.os_compat import MIGRATION_MODES

if TYPE_CHECKING:
    from rvtools2ibm.pipeline.preflight import PreflightCheckCounts

MTV_DOCS = "https://docs.redhat.com/en/documentation/migration_toolkit_for_virtualization/2.7/html/installing_and_using_the_migration_toolkit_for_virtualization/prerequisites"
VPC_MIGRATION_GUIDE = "https://fullvalence.com/2025/11/10/from-vmware-to-ibm-cloud-vpc-vsi-part-3-migrating-virtual-machines/"
VPC_PROFILES_DOCS = "https://cloud.ibm.com/docs/vpc?topic=vpc-profiles"
VPC_BLOCK_STORAGE_DOCS = "https://cloud.ibm.com/docs/vpc?topic=vpc-block-storage-profiles"


@dataclass
class RemediationItem:
    id: str
    name: str
    severity: str       # blocker | warning | info
    description: str
    remediation: str
    documentation_link: str
    affected_vms: list[str] = field(default_factory=list)

    @property
    def affected_count(self) -> int:
        return len(self.affected_vms)

    def to_dict(self) -> dict:
        d = asdict(self)
        d["affected_count"] = self.affected_count
        return d


@dataclass(frozen=True)
class MTVRequirement:
    name: str
    description: str
    remediation: str
    documentation_link: str = MTV_DOCS


# ═══════════════════════════════════════════════════════════════════
# MTV REQUIREMENTS
# ═══════════════════════════════════════════════════════════════════

MTV_REQUIREMENTS: dict[str, MTVRequirement] = {
    "tools-installed": MTVRequirement(
        "VMware Tools Not Installed",
        "MTV uses VMware Tools to read guest information and to shut the VM down cleanly.",
        "Install VMware Tools (or open-vm-tools on Linux) in the guest before migration.",
    ),
    "tools-running": MTVRequirement(
        "VMware Tools Not Running",
        "VMware Tools is installed but not running, so guest details such as IP addresses are unavailable.",
        "Start the VMware Tools service in the guest and make sure it starts on boot.",
    ),
    "old-snapshots": MTVRequirement(
        "Old Snapshots Present",
        "Snapshots older than 30 days slow down disk transfer and can make warm migration fail.",
        "Consolidate or delete old snapshots before migration.",
    ),
    "no-rdm": MTVRequirement(
        "RDM Disks Detected",
        "Raw Device Mapping disks cannot be migrated by MTV.",
        "Convert RDM disks to VMDK with Storage vMotion, or migrate the data separately.",
    ),
    "no-shared-disks": MTVRequirement(
        "Shared Disks Detected",
        "Disks shared between VMs (multi-writer) are not supported by MTV.",
        "Remove disk sharing, or move the shared data to a shared file system before migration.",
    ),
    "independent-disk": MTVRequirement(
        "Independent Disk Mode",
        "Independent disks are excluded from snapshots, so MTV cannot copy them.",
        "Change the disk mode to dependent before migration.",
    ),
    "cd-disconnected": MTVRequirement(
        "CD-ROM Connected",
        "Connected CD/DVD devices can block migration when the ISO is not reachable from the target.",
        "Disconnect CD/DVD drives or unmount ISO images before migration.",
    ),
    "hw-version": MTVRequirement(
        "Outdated Hardware Version",
        "Virtual hardware older than version 10 is not supported for warm migration.",
        "Upgrade the VM compatibility (hardware version) in vCenter. This requires a reboot.",
    ),
    "network-adapter": MTVRequirement(
        "Legacy Network Adapter",
        "E1000 adapters are emulated; after migration the VM should use virtio for performance.",
        "Plan to switch to a virtio network interface after migration, with drivers installed in the guest.",
    ),
    "cbt-enabled": MTVRequirement(
        "CBT Not Enabled",
        "Changed Block Tracking is required for warm migration.",
        "Enable CBT (ctkEnabled) on the VM and its disks, then take and remove a snapshot.",
    ),
    "vm-name-rfc1123": MTVRequirement(
        "VM Name Not RFC 1123 Compliant",
        "OpenShift resource names must be lowercase alphanumerics or hyphens, at most 63 characters.",
        "Rename the VM, or set a compliant target name in the migration plan.",
    ),
    "cpu-hot-plug": MTVRequirement(
        "CPU Hot Plug Enabled",
        "CPU hot plug is not carried over to OpenShift Virtualization.",
        "Disable CPU hot plug and size the VM for its peak CPU need.",
    ),
    "memory-hot-plug": MTVRequirement(
        "Memory Hot Plug Enabled",
        "Memory hot plug is not carried over to OpenShift Virtualization.",
        "Disable memory hot plug and size the VM for its peak memory need.",
    ),
    "hostname-missing": MTVRequirement(
        "Missing or Invalid Hostname",
        "The guest hostname is empty or localhost, which complicates post-migration identification.",
        "Configure a proper hostname in the guest operating system.",
    ),
    "static-ip-powered-off": MTVRequirement(
        "Static IP on Powered-Off VM",
        "Static IPs can only be preserved for running VMs, since MTV reads them through VMware Tools.",
        "Power on the VM before migration, or record its network configuration manually.",
    ),
}


def _mtv_item(check_id: str, severity: str, vms: list[str]) -> RemediationItem:
    req = MTV_REQUIREMENTS[check_id]
    return RemediationItem(
        id=check_id,
        name=req.name,
        severity=severity,
        description=req.description,
        remediation=req.remediation,
        documentation_link=req.documentation_link,
        affected_vms=list(vms),
    )


def generate_vsi_remediation_items(counts: "PreflightCheckCounts") -> list[RemediationItem]:
    items: list[RemediationItem] = []

    # ── Blockers ────────────────────────────────────────────────
    if counts.vms_with_large_boot_disk:
        items.append(RemediationItem(
            id="boot-disk-too-large",
            name=f"Boot Disk Exceeds {VPC_BOOT_DISK_MAX_GB}GB Limit",
            severity="blocker",
            description=(f"VPC VSI boot volumes are limited to {VPC_BOOT_DISK_MAX_GB}GB maximum. "
                         "VMs with larger boot disks cannot be migrated directly."),
            remediation=("Reduce boot disk size by moving data to secondary disks, or restructure the VM "
                         "to use a smaller boot volume with separate data volumes."),
            documentation_link=VPC_MIGRATION_GUIDE,
            affected_vms=list(counts.vms_with_large_boot_disk),
        ))

    if counts.vms_with_too_many_disks:
        items.append(RemediationItem(
            id="too-many-disks",
            name=f"Exceeds {VPC_MAX_DISKS_PER_VM} Disk Limit",
            severity="blocker",
            description=(f"VPC VSI supports a maximum of {VPC_MAX_DISKS_PER_VM} disks per instance. "
                         "VMs with more disks cannot be migrated directly."),
            remediation=("Consolidate disks or consider using file storage for some data volumes. "
                         "Alternatively, split workloads across multiple VSIs."),
            documentation_link=VPC_MIGRATION_GUIDE,
            affected_vms=list(counts.vms_with_too_many_disks),
        ))

    if counts.vms_with_rdm:
        items.append(RemediationItem(
            id="no-rdm",
            name="RDM Disks Detected",
            severity="blocker",
            description="Raw Device Mapping disks cannot be migrated to VPC VSI.",
            remediation="Convert RDM disks to VMDK before migration.",
            documentation_link=MTV_REQUIREMENTS["no-rdm"].documentation_link,
            affected_vms=list(counts.vms_with_rdm),
        ))

    if counts.vms_with_shared_disks:
        items.append(RemediationItem(
            id="no-shared-disks",
            name="Shared Disks Detected",
            severity="blocker",
            description=("VPC VSI does not support shared block volumes. File storage is available "
                         "but does not support Windows clients."),
            remediation=("Reconfigure shared storage to use file storage (Linux only), or deploy a custom "
                         "VSI with iSCSI targets as a workaround."),
            documentation_link=VPC_MIGRATION_GUIDE,
            affected_vms=list(counts.vms_with_shared_disks),
        ))

    if counts.vms_with_very_large_memory:
        items.append(RemediationItem(
            id="large-memory",
            name="Very Large Memory VMs (>1TB)",
            severity="blocker",
            description="VMs with >1TB memory exceed VPC VSI profile limits.",
            remediation="Consider using bare metal servers or splitting workloads across multiple VSIs.",
            documentation_link=VPC_PROFILES_DOCS,
            affected_vms=list(counts.vms_with_very_large_memory),
        ))

    if counts.vms_with_unsupported_os:
        items.append(RemediationItem(
            id="unsupported-os",
            name="Unsupported Operating System",
            severity="blocker",
            description=("These VMs have operating systems that are not supported for VPC VSI migration. "
                         "Windows must be Server 2008 R2+ or Windows 7+."),
            remediation=("Upgrade the operating system to a supported version before migration, or consider "
                         "alternative migration strategies."),
            documentation_link=VPC_MIGRATION_GUIDE,
            affected_vms=list(counts.vms_with_unsupported_os),
        ))

    # ── Warnings ────────────────────────────────────────────────
    if counts.vms_without_tools:
        items.append(RemediationItem(
            id="tools-installed",
            name="VMware Tools Not Installed",
            severity="warning",
            description="VMware Tools required for clean VM export and proper shutdown.",
            remediation=("Install VMware Tools before exporting the VM. Windows VMs must be shut down "
                         "cleanly for virt-v2v processing."),
            documentation_link=MTV_REQUIREMENTS["tools-installed"].documentation_link,
            affected_vms=list(counts.vms_without_tools),
        ))

    very_large = set(counts.vms_with_very_large_memory)
    large_only = [vm for vm in counts.vms_with_large_memory if vm not in very_large]
    if large_only:
        items.append(RemediationItem(
            id="large-memory-warning",
            name="Large Memory VMs (>512GB)",
            severity="warning",
            description="VMs with >512GB memory require high-memory profiles which may have limited availability.",
            remediation="Ensure mx2-128x1024 or similar profile is available in your target region.",
            documentation_link=VPC_PROFILES_DOCS,
            affected_vms=large_only,
        ))

    if counts.vms_with_large_disks:
        items.append(RemediationItem(
            id="large-disks",
            name="Large Disks (>2TB)",
            severity="warning",
            description="Disks larger than 2TB may require multiple block volumes.",
            remediation="Plan for disk splitting or use file storage for large data volumes.",
            documentation_link=VPC_BLOCK_STORAGE_DOCS,
            affected_vms=list(counts.vms_with_large_disks),
        ))

    if counts.vms_with_old_snapshots:
        items.append(RemediationItem(
            id="old-snapshots",
            name="Old Snapshots",
            severity="warning",
            description="Snapshots should be consolidated before export for best results.",
            remediation="Delete or consolidate snapshots before VM export.",
            documentation_link=MTV_REQUIREMENTS["old-snapshots"].documentation_link,
            affected_vms=list(counts.vms_with_old_snapshots),
        ))

    return items


# check id, severity, counts attribute; in display order
_ROKS_ITEMS = [
    ("tools-installed", "blocker", "vms_without_tools"),
    ("old-snapshots", "blocker", "vms_with_old_snapshots"),
    ("no-rdm", "blocker", "vms_with_rdm"),
    ("no-shared-disks", "blocker", "vms_with_shared_disks"),
    ("independent-disk", "blocker", "vms_with_independent_disks"),
    ("tools-running", "warning", "vms_with_tools_not_running"),
    ("cd-disconnected", "warning", "vms_with_cd_connected"),
    ("hw-version", "warning", "hw_version_outdated"),
    ("network-adapter", "info", "vms_with_legacy_nic"),
    ("cbt-enabled", "warning", "vms_without_cbt"),
    ("vm-name-rfc1123", "warning", "vms_with_invalid_names"),
    ("cpu-hot-plug", "warning", "vms_with_cpu_hot_plug"),
    ("memory-hot-plug", "warning", "vms_with_memory_hot_plug"),
    ("hostname-missing", "warning", "vms_with_invalid_hostname"),
    ("static-ip-powered-off", "warning", "vms_static_ip_powered_off"),
]


def generate_roks_remediation_items(counts: "PreflightCheckCounts") -> list[RemediationItem]:
    return [
        _mtv_item(check_id, severity, getattr(counts, attr))
        for check_id, severity, attr in _ROKS_ITEMS
        if getattr(counts, attr)
    ]


def generate_remediation_items(counts: "PreflightCheckCounts", mode: str) -> list[RemediationItem]:
    if mode not in MIGRATION_MODES:
        raise ValueError(f"Unknown migration mode '{mode}'")
    if mode == "vsi":
        return generate_vsi_remediation_items(counts)
    return generate_roks_remediation_items(counts)


def count_remediation_severity(items: list[RemediationItem]) -> dict[str, int]:
    """Affected VM totals per severity: {"blockers", "warnings", "info"}."""
    totals = {"blockers": 0, "warnings": 0, "info": 0}
    keys = {"blocker": "blockers", "warning": "warnings", "info": "info"}
    for item in items:
        if item.severity in keys:
            totals[keys[item.severity]] += item.affected_count
    return totals
