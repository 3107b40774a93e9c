"""Guest OS compatibility for IBM Cloud VPC VSI and OpenShift Virtualization (ROKS).

Both tables match on lowercase substrings of the guest OS string reported
by RVTools (e.g. "Microsoft Windows Server 2019 (64-bit)"). Order matters:
the first matching entry wins, so specific versions come before families.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional, Union

from rvtools2ibm.utils.logging import get_logger

if TYPE_CHECKING:
    from rvtools2ibm.rvtools.models import VirtualMachine

logger = get_logger(__name__)

MIGRATION_MODES = ("vsi", "roks")


@dataclass
class VSIOSCompatibility:
    status: str                 # supported | community | unsupported
    notes: str


@dataclass
class ROKSOSCompatibility:
    id: str
    display_name: str
    compatibility_status: str   # fully-supported | supported-with-caveats | unsupported
    compatibility_score: int
    notes: str
    patterns: list[str] = field(default_factory=list)
    documentation_link: Optional[str] = None
    recommended_upgrade: Optional[str] = None
    eol_date: Optional[str] = None


OSCompatibility = Union[VSIOSCompatibility, ROKSOSCompatibility]


@dataclass
class OSCompatibilityResult:
    vm_name: str
    guest_os: str
    compatibility: OSCompatibility
    normalized_status: str      # supported | partial | unsupported


# ═══════════════════════════════════════════════════════════════════
# IBM CLOUD VPC VSI GUEST OS SUPPORT
# ═══════════════════════════════════════════════════════════════════

VSI_OS_SUPPORT: list[tuple[str, VSIOSCompatibility]] = [
    ("rhel",                VSIOSCompatibility("supported", "RHEL 7.x, 8.x, 9.x supported")),
    ("red hat enterprise",  VSIOSCompatibility("supported", "RHEL 7.x, 8.x, 9.x supported")),
    ("centos",              VSIOSCompatibility("community", "CentOS 7.x, 8.x - community supported")),
    ("ubuntu",              VSIOSCompatibility("supported", "Ubuntu 18.04, 20.04, 22.04 supported")),
    ("debian",              VSIOSCompatibility("community", "Debian 10, 11 - community supported")),
    ("windows server 2016", VSIOSCompatibility("supported", "Windows Server 2016 supported")),
    ("windows server 2019", VSIOSCompatibility("supported", "Windows Server 2019 supported")),
    ("windows server 2022", VSIOSCompatibility("supported", "Windows Server 2022 supported")),
    ("windows 2016",        VSIOSCompatibility("supported", "Windows Server 2016 supported")),
    ("windows 2019",        VSIOSCompatibility("supported", "Windows Server 2019 supported")),
    ("windows 2022",        VSIOSCompatibility("supported", "Windows Server 2022 supported")),
    ("sles",                VSIOSCompatibility("supported", "SUSE Linux Enterprise Server supported")),
    ("suse linux enterprise", VSIOSCompatibility("supported", "SUSE Linux Enterprise Server supported")),
    ("rocky",               VSIOSCompatibility("community", "Rocky Linux - community supported")),
    ("alma",                VSIOSCompatibility("community", "AlmaLinux - community supported")),
]

VSI_UNSUPPORTED = VSIOSCompatibility("unsupported", "Not validated for IBM Cloud VPC")


# ═══════════════════════════════════════════════════════════════════
# OPENSHIFT VIRTUALIZATION GUEST OS SUPPORT
# Source: Red Hat "Certified guest operating systems in OpenShift Virtualization"
# ═══════════════════════════════════════════════════════════════════

_OCPV_DOCS = "https://access.redhat.com/articles/973163"

ROKS_OS_ENTRIES: list[ROKSOSCompatibility] = [
    # ── Red Hat ─────────────────────────────────────────────────
    ROKSOSCompatibility(
        "rhel9", "Red Hat Enterprise Linux 9", "fully-supported", 100,
        "Certified guest OS with full Red Hat support",
        patterns=["red hat enterprise linux 9", "rhel 9", "rhel9"],
        documentation_link=_OCPV_DOCS,
    ),
    ROKSOSCompatibility(
        "rhel8", "Red Hat Enterprise Linux 8", "fully-supported", 100,
        "Certified guest OS with full Red Hat support",
        patterns=["red hat enterprise linux 8", "rhel 8", "rhel8"],
        documentation_link=_OCPV_DOCS, eol_date="2029-05-31",
    ),
    ROKSOSCompatibility(
        "rhel7", "Red Hat Enterprise Linux 7", "supported-with-caveats", 70,
        "Maintenance support ended; Extended Life Cycle Support required",
        patterns=["red hat enterprise linux 7", "rhel 7", "rhel7"],
        documentation_link=_OCPV_DOCS, recommended_upgrade="RHEL 9", eol_date="2024-06-30",
    ),
    ROKSOSCompatibility(
        "rhel-legacy", "Red Hat Enterprise Linux 6 or older", "unsupported", 10,
        "End of life; not certified on OpenShift Virtualization",
        patterns=["red hat enterprise linux 6", "red hat enterprise linux 5", "rhel 6", "rhel6"],
        documentation_link=_OCPV_DOCS, recommended_upgrade="RHEL 9", eol_date="2020-11-30",
    ),
    ROKSOSCompatibility(
        "rhel", "Red Hat Enterprise Linux", "fully-supported", 95,
        "Version not reported; assumed to be a current RHEL release",
        patterns=["red hat enterprise linux", "rhel"],
        documentation_link=_OCPV_DOCS,
    ),

    # ── Microsoft Windows ───────────────────────────────────────
    ROKSOSCompatibility(
        "windows-server-2022", "Windows Server 2022", "fully-supported", 100,
        "Certified with VirtIO drivers",
        patterns=["windows server 2022", "windows 2022"],
        documentation_link=_OCPV_DOCS,
    ),
    ROKSOSCompatibility(
        "windows-server-2019", "Windows Server 2019", "fully-supported", 100,
        "Certified with VirtIO drivers",
        patterns=["windows server 2019", "windows 2019"],
        documentation_link=_OCPV_DOCS,
    ),
    ROKSOSCompatibility(
        "windows-server-2016", "Windows Server 2016", "fully-supported", 90,
        "Certified with VirtIO drivers; mainstream support has ended",
        patterns=["windows server 2016", "windows 2016"],
        documentation_link=_OCPV_DOCS, recommended_upgrade="Windows Server 2022", eol_date="2027-01-12",
    ),
    ROKSOSCompatibility(
        "windows-server-2012", "Windows Server 2012 / 2012 R2", "supported-with-caveats", 50,
        "End of support; works with VirtIO drivers but is not certified",
        patterns=["windows server 2012", "windows 2012"],
        documentation_link=_OCPV_DOCS, recommended_upgrade="Windows Server 2022", eol_date="2023-10-10",
    ),
    ROKSOSCompatibility(
        "windows-server-legacy", "Windows Server 2008 or older", "unsupported", 0,
        "End of life; no VirtIO driver support",
        patterns=["windows server 2008", "windows 2008", "windows server 2003", "windows 2003"],
        recommended_upgrade="Windows Server 2022", eol_date="2020-01-14",
    ),
    ROKSOSCompatibility(
        "windows-client", "Windows 10 / 11", "fully-supported", 90,
        "Certified desktop guest",
        patterns=["windows 10", "windows 11"],
        documentation_link=_OCPV_DOCS,
    ),
    ROKSOSCompatibility(
        "windows-client-legacy", "Windows 7 / 8", "unsupported", 0,
        "End of life desktop OS",
        patterns=["windows 7", "windows 8", "windows xp", "windows vista"],
        recommended_upgrade="Windows 11",
    ),

    # ── Other Linux ─────────────────────────────────────────────
    ROKSOSCompatibility(
        "centos-stream", "CentOS Stream", "supported-with-caveats", 75,
        "Runs on OpenShift Virtualization; community support only",
        patterns=["centos stream"],
    ),
    ROKSOSCompatibility(
        "centos", "CentOS Linux", "supported-with-caveats", 60,
        "CentOS Linux is end of life; runs but is community supported",
        patterns=["centos"],
        recommended_upgrade="RHEL 9", eol_date="2024-06-30",
    ),
    ROKSOSCompatibility(
        "rocky-alma", "Rocky Linux / AlmaLinux", "supported-with-caveats", 75,
        "RHEL-compatible; community support only",
        patterns=["rocky", "alma"],
    ),
    ROKSOSCompatibility(
        "ubuntu", "Ubuntu", "supported-with-caveats", 75,
        "Runs with VirtIO drivers; supported by Canonical, not Red Hat",
        patterns=["ubuntu"],
    ),
    ROKSOSCompatibility(
        "debian", "Debian", "supported-with-caveats", 70,
        "Runs with VirtIO drivers; community support only",
        patterns=["debian"],
    ),
    ROKSOSCompatibility(
        "sles", "SUSE Linux Enterprise Server", "supported-with-caveats", 75,
        "Runs with VirtIO drivers; supported by SUSE, not Red Hat",
        patterns=["suse", "sles"],
    ),
    ROKSOSCompatibility(
        "oracle-linux", "Oracle Linux", "supported-with-caveats", 65,
        "RHEL-compatible kernel; vendor support only",
        patterns=["oracle linux"],
    ),
    ROKSOSCompatibility(
        "other-linux", "Other Linux", "supported-with-caveats", 50,
        "Generic Linux guest; verify VirtIO driver availability",
        patterns=["other 4.x", "other 3.x", "other 5.x", "other linux", "linux"],
    ),

    # ── Not supported ───────────────────────────────────────────
    ROKSOSCompatibility(
        "unix", "FreeBSD / Solaris / other Unix", "unsupported", 0,
        "Not supported on OpenShift Virtualization",
        patterns=["freebsd", "solaris", "netware", "os/2", "photon"],
    ),
]

ROKS_DEFAULT_ENTRY = ROKSOSCompatibility(
    "unknown", "Unknown / Other", "unsupported", 0,
    "Guest OS could not be matched to a supported operating system",
    documentation_link=_OCPV_DOCS,
)


def _check_mode(mode: str) -> None:
    if mode not in MIGRATION_MODES:
        raise ValueError(f"Unknown migration mode '{mode}'. Expected one of: {', '.join(MIGRATION_MODES)}")


def get_vsi_os_compatibility(guest_os: str) -> VSIOSCompatibility:
    os_lower = (guest_os or "").lower()
    for pattern, support in VSI_OS_SUPPORT:
        if pattern in os_lower:
            return support
    return VSI_UNSUPPORTED


def get_roks_os_compatibility(guest_os: str) -> ROKSOSCompatibility:
    os_lower = (guest_os or "").lower()
    for entry in ROKS_OS_ENTRIES:
        if any(p in os_lower for p in entry.patterns):
            return entry
    return ROKS_DEFAULT_ENTRY


def get_os_compatibility(guest_os: str, mode: str) -> OSCompatibility:
    _check_mode(mode)
    if mode == "vsi":
        return get_vsi_os_compatibility(guest_os)
    return get_roks_os_compatibility(guest_os)


def get_os_status(guest_os: str, mode: str) -> str:
    """Raw status key for the mode (e.g. 'community' or 'supported-with-caveats')."""
    compat = get_os_compatibility(guest_os, mode)
    if isinstance(compat, VSIOSCompatibility):
        return compat.status
    return compat.compatibility_status


def is_os_blocker(guest_os: str, mode: str) -> bool:
    return get_os_status(guest_os, mode) == "unsupported"


_NORMALIZED = {
    "supported": "supported",
    "fully-supported": "supported",
    "community": "partial",
    "supported-with-caveats": "partial",
}


def get_normalized_os_status(guest_os: str, mode: str) -> str:
    return _NORMALIZED.get(get_os_status(guest_os, mode), "unsupported")


def get_os_compatibility_results(vms: list["VirtualMachine"], mode: str) -> list[OSCompatibilityResult]:
    return [
        OSCompatibilityResult(
            vm_name=vm.vm_name,
            guest_os=vm.guest_os,
            compatibility=get_os_compatibility(vm.guest_os, mode),
            normalized_status=get_normalized_os_status(vm.guest_os, mode),
        )
        for vm in vms
    ]


def count_by_os_status(vms: list["VirtualMachine"], mode: str) -> dict[str, int]:
    return dict(Counter(get_os_status(vm.guest_os, mode) for vm in vms))
