"""IBM Cloud VPC VSI profile catalogue and VM -> profile mapping.

Catalogue: gen2 x86 profiles, us-south list prices.
Source: https://cloud.ibm.com/docs/vpc?topic=vpc-profiles
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from rvtools2ibm.utils.formatters import mib_to_gib, round_half_up
from rvtools2ibm.utils.logging import get_logger

if TYPE_CHECKING:
    from rvtools2ibm.rvtools.models import VirtualMachine

logger = get_logger(__name__)

HOURS_PER_MONTH = 730


@dataclass(frozen=True)
class VSIProfile:
    """Specification of an IBM Cloud VPC instance profile."""
    name: str
    vcpus: int
    memory_gib: int
    bandwidth_gbps: int
    hourly_rate: float
    monthly_rate: float


@dataclass(frozen=True)
class CustomProfile:
    """User-defined profile, used when a VM is overridden to a non-catalogue size."""
    name: str
    vcpus: int
    memory_gib: int
    bandwidth: Optional[int] = None


@dataclass
class VMProfileMapping:
    vm_name: str
    vcpus: int
    memory_gib: int
    auto_profile: VSIProfile
    profile: VSIProfile
    effective_profile_name: str
    is_overridden: bool

    def to_dict(self) -> dict:
        return {
            "vm_name": self.vm_name,
            "vcpus": self.vcpus,
            "memory_gib": self.memory_gib,
            "auto_profile": self.auto_profile.name,
            "profile": self.profile.name,
            "effective_profile_name": self.effective_profile_name,
            "is_overridden": self.is_overridden,
            "monthly_rate": self.profile.monthly_rate,
        }


def _p(name: str, vcpus: int, memory_gib: int, bandwidth_gbps: int, hourly: float) -> VSIProfile:
    return VSIProfile(name, vcpus, memory_gib, bandwidth_gbps, hourly, round(hourly * HOURS_PER_MONTH, 2))


# ═══════════════════════════════════════════════════════════════════
# IBM CLOUD VPC PROFILE CATALOG
# ═══════════════════════════════════════════════════════════════════

VSI_PROFILES: dict[str, list[VSIProfile]] = {

    # ── Balanced (1:4) ──────────────────────────────────────────
    "balanced": [
        _p("bx2-2x8",     2,   8,  4, 0.099),
        _p("bx2-4x16",    4,  16,  8, 0.198),
        _p("bx2-8x32",    8,  32, 16, 0.396),
        _p("bx2-16x64",  16,  64, 32, 0.792),
        _p("bx2-32x128", 32, 128, 64, 1.584),
        _p("bx2-48x192", 48, 192, 80, 2.376),
        _p("bx2-64x256", 64, 256, 80, 3.168),
        _p("bx2-96x384", 96, 384, 80, 4.752),
        _p("bx2-128x512", 128, 512, 80, 6.336),
    ],

    # ── Compute (1:2) ───────────────────────────────────────────
    "compute": [
        _p("cx2-2x4",     2,   4,  4, 0.083),
        _p("cx2-4x8",     4,   8,  8, 0.166),
        _p("cx2-8x16",    8,  16, 16, 0.332),
        _p("cx2-16x32",  16,  32, 32, 0.664),
        _p("cx2-32x64",  32,  64, 64, 1.328),
        _p("cx2-48x96",  48,  96, 80, 1.992),
        _p("cx2-64x128", 64, 128, 80, 2.656),
        _p("cx2-96x192", 96, 192, 80, 3.984),
        _p("cx2-128x256", 128, 256, 80, 5.312),
    ],

    # ── Memory (1:8) ────────────────────────────────────────────
    "memory": [
        _p("mx2-2x16",     2,   16,  4, 0.128),
        _p("mx2-4x32",     4,   32,  8, 0.256),
        _p("mx2-8x64",     8,   64, 16, 0.512),
        _p("mx2-16x128",  16,  128, 32, 1.024),
        _p("mx2-32x256",  32,  256, 64, 2.048),
        _p("mx2-48x384",  48,  384, 80, 3.072),
        _p("mx2-64x512",  64,  512, 80, 4.096),
        _p("mx2-96x768",  96,  768, 80, 6.144),
        _p("mx2-128x1024", 128, 1024, 80, 8.192),
    ],
}

PROFILE_FAMILIES = ("balanced", "compute", "memory")


def get_vsi_profiles() -> dict[str, list[VSIProfile]]:
    return VSI_PROFILES


def all_profiles() -> list[VSIProfile]:
    return [p for family in PROFILE_FAMILIES for p in VSI_PROFILES[family]]


def determine_profile_family(vcpus: int, memory_gib: float) -> str:
    """Pick a family from the memory:vCPU ratio (<=2.5 compute, >=6 memory)."""
    ratio = memory_gib / max(vcpus, 1)
    if ratio <= 2.5:
        return "compute"
    if ratio >= 6:
        return "memory"
    return "balanced"


def map_vm_to_vsi_profile(vcpus: int, memory_gib: float) -> VSIProfile:
    """Smallest profile of the right family that fits, else the family's largest."""
    profiles = VSI_PROFILES[determine_profile_family(vcpus, memory_gib)]
    for profile in profiles:
        if profile.vcpus >= vcpus and profile.memory_gib >= memory_gib:
            return profile
    return profiles[-1]


def find_profile_by_name(name: str) -> Optional[VSIProfile]:
    for profile in all_profiles():
        if profile.name == name:
            return profile
    return None


_FAMILY_PREFIXES = {
    "bx2": "Balanced", "bx2d": "Balanced",
    "cx2": "Compute", "cx2d": "Compute",
    "mx2": "Memory", "mx2d": "Memory",
}


def get_profile_family_from_name(profile_name: str) -> str:
    return _FAMILY_PREFIXES.get(profile_name.split("-")[0], "Other")


def create_vm_profile_mappings(
    vms: list["VirtualMachine"],
    custom_profiles: Optional[list[CustomProfile]] = None,
    overrides: Optional[dict[str, str]] = None,
) -> list[VMProfileMapping]:
    """Map each VM to a profile, honouring per-VM overrides.

    ``overrides`` maps VM name -> profile name. The name is looked up in
    the custom profiles first, then in the catalogue. An unknown name
    keeps the automatic profile but is still reported as overridden.
    """
    custom_profiles = custom_profiles or []
    overrides = overrides or {}
    custom_by_name = {p.name: p for p in custom_profiles}

    mappings = []
    for vm in vms:
        memory_gib = mib_to_gib(vm.memory_mib)
        auto = map_vm_to_vsi_profile(vm.cpus, memory_gib)
        is_overridden = vm.vm_name in overrides
        effective_name = overrides.get(vm.vm_name, auto.name)

        profile = auto
        if is_overridden:
            custom = custom_by_name.get(effective_name)
            if custom:
                profile = VSIProfile(
                    name=custom.name,
                    vcpus=custom.vcpus,
                    memory_gib=custom.memory_gib,
                    bandwidth_gbps=custom.bandwidth or 16,
                    hourly_rate=0,
                    monthly_rate=0,
                )
            else:
                standard = find_profile_by_name(effective_name)
                if standard:
                    profile = standard
                else:
                    logger.warning(f"Override for {vm.vm_name}: unknown profile '{effective_name}', keeping {auto.name}")

        mappings.append(VMProfileMapping(
            vm_name=vm.vm_name,
            vcpus=vm.cpus,
            memory_gib=round_half_up(memory_gib),
            auto_profile=auto,
            profile=profile,
            effective_profile_name=effective_name,
            is_overridden=is_overridden,
        ))
    return mappings


def count_by_profile(mappings: list[VMProfileMapping]) -> dict[str, int]:
    return dict(Counter(m.profile.name for m in mappings))


def count_by_family(mappings: list[VMProfileMapping]) -> dict[str, int]:
    return dict(Counter(get_profile_family_from_name(m.profile.name) for m in mappings))


def get_top_profiles(mappings: list[VMProfileMapping], count: int = 10) -> list[dict]:
    ranked = sorted(count_by_profile(mappings).items(), key=lambda kv: kv[1], reverse=True)
    return [{"label": name, "value": n} for name, n in ranked[:count]]


def get_family_chart_data(mappings: list[VMProfileMapping]) -> list[dict]:
    ranked = sorted(count_by_family(mappings).items(), key=lambda kv: kv[1], reverse=True)
    return [{"label": name, "value": n} for name, n in ranked]


def calculate_profile_totals(mappings: list[VMProfileMapping]) -> dict:
    return {
        "total_vsis": len(mappings),
        "unique_profiles": len(count_by_profile(mappings)),
        "total_vcpus": sum(m.profile.vcpus for m in mappings),
        "total_memory_gib": sum(m.profile.memory_gib for m in mappings),
        "overridden_count": sum(1 for m in mappings if m.is_overridden),
        "monthly_cost": round(sum(m.profile.monthly_rate for m in mappings), 2),
    }


