"""Monthly/annual cost estimates for ROKS and VPC VSI landing zones."""

from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

from rvtools2ibm.ibmcloud.pricing import (
    DiscountOption,
    PricingCatalog,
    RegionPricing,
    get_pricing,
)
from rvtools2ibm.utils.formatters import format_currency
from rvtools2ibm.utils.logging import get_logger

if TYPE_CHECKING:
    from rvtools2ibm.ibmcloud.profiles import VMProfileMapping

logger = get_logger(__name__)

STORAGE_TIERS = ("5iops", "10iops")
DEFAULT_STORAGE_TIER = "10iops"
FALLBACK_COST_PER_GB = 0.10

_FALLBACK_REGION = RegionPricing(name="Dallas", multiplier=1.0, availability_zones=3)
_FALLBACK_DISCOUNT = DiscountOption(name="On-Demand", discount_pct=0, description="Pay-as-you-go")


# ═══════════════════════════════════════════════════════════════════
#  Inputs and results
# ═══════════════════════════════════════════════════════════════════

@dataclass
class ROKSSizingInput:
    compute_nodes: Any
    compute_profile: Any
    storage_nodes: Optional[int] = None
    storage_profile: Optional[str] = None
    storage_tib: Optional[float] = None
    storage_tier: Optional[str] = None
    use_nvme: bool = False


@dataclass
class NetworkingOptions:
    include_vpn: bool = False
    vpn_gateway_count: Optional[int] = None
    include_transit_gateway: bool = False
    transit_gateway_local_connections: Optional[int] = None
    transit_gateway_global_connections: Optional[int] = None
    include_public_gateway: bool = False
    public_gateway_count: Optional[int] = None
    load_balancer_count: Optional[int] = None


@dataclass
class VMProfileCount:
    profile: Any
    count: Any


@dataclass
class VSISizingInput:
    vm_profiles: Any
    storage_tib: Any
    storage_tier: Optional[str] = None
    networking: Optional[NetworkingOptions] = None


@dataclass
class ValidationError:
    field: str
    message: str


@dataclass
class ValidationResult:
    valid: bool
    errors: list[ValidationError] = field(default_factory=list)


@dataclass
class CostLineItem:
    category: str
    description: str
    quantity: float
    unit: str
    unit_cost: float
    monthly_cost: float
    annual_cost: float
    notes: Optional[str] = None


@dataclass
class CostEstimate:
    architecture: str
    region: str
    region_name: str
    discount_type: str
    discount_pct: float
    line_items: list[CostLineItem]
    subtotal_monthly: float
    subtotal_annual: float
    discount_amount_monthly: float
    discount_amount_annual: float
    total_monthly: float
    total_annual: float
    pricing_version: str
    generated_at: str
    notes: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


# ═══════════════════════════════════════════════════════════════════
#  Validation
# ═══════════════════════════════════════════════════════════════════

def _is_int(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and value.is_integer()


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_tier(tier: Optional[str], errors: list[ValidationError]) -> None:
    if tier is not None and tier not in STORAGE_TIERS:
        errors.append(ValidationError("storage_tier", 'Storage tier must be "5iops" or "10iops"'))


def validate_roks_sizing_input(data: ROKSSizingInput) -> ValidationResult:
    errors: list[ValidationError] = []

    if data.compute_nodes is None:
        errors.append(ValidationError("compute_nodes", "Compute nodes count is required"))
    elif not _is_int(data.compute_nodes) or data.compute_nodes < 0:
        errors.append(ValidationError("compute_nodes", "Compute nodes must be a non-negative integer"))
    elif data.compute_nodes > 1000:
        errors.append(ValidationError("compute_nodes", "Compute nodes cannot exceed 1000"))

    if not data.compute_profile or not isinstance(data.compute_profile, str):
        errors.append(ValidationError("compute_profile", "Compute profile is required"))
    elif not data.compute_profile.strip():
        errors.append(ValidationError("compute_profile", "Compute profile cannot be empty"))

    if data.storage_nodes is not None:
        if not _is_int(data.storage_nodes) or data.storage_nodes < 0:
            errors.append(ValidationError("storage_nodes", "Storage nodes must be a non-negative integer"))
        elif data.storage_nodes > 500:
            errors.append(ValidationError("storage_nodes", "Storage nodes cannot exceed 500"))

    if data.storage_tib is not None:
        if not _is_number(data.storage_tib) or data.storage_tib < 0:
            errors.append(ValidationError("storage_tib", "Storage TiB must be a non-negative number"))
        elif data.storage_tib > 10000:
            errors.append(ValidationError("storage_tib", "Storage TiB cannot exceed 10,000"))

    _check_tier(data.storage_tier, errors)
    return ValidationResult(valid=not errors, errors=errors)


def validate_vsi_sizing_input(data: VSISizingInput) -> ValidationResult:
    errors: list[ValidationError] = []

    if data.vm_profiles is None or not isinstance(data.vm_profiles, (list, tuple)):
        errors.append(ValidationError("vm_profiles", "VM profiles array is required"))
    else:
        for index, vm in enumerate(data.vm_profiles):
            prefix = f"vm_profiles[{index}]"
            if not vm.profile or not isinstance(vm.profile, str) or not vm.profile.strip():
                errors.append(ValidationError(f"{prefix}.profile", "Profile name is required"))
            if vm.count is None:
                errors.append(ValidationError(f"{prefix}.count", "VM count is required"))
            elif not _is_int(vm.count) or vm.count < 0:
                errors.append(ValidationError(f"{prefix}.count", "VM count must be a non-negative integer"))
            elif vm.count > 10000:
                errors.append(ValidationError(f"{prefix}.count", "VM count cannot exceed 10,000"))

    if data.storage_tib is None:
        errors.append(ValidationError("storage_tib", "Storage TiB is required"))
    elif not _is_number(data.storage_tib) or data.storage_tib < 0:
        errors.append(ValidationError("storage_tib", "Storage TiB must be a non-negative number"))
    elif data.storage_tib > 100000:
        errors.append(ValidationError("storage_tib", "Storage TiB cannot exceed 100,000"))

    _check_tier(data.storage_tier, errors)

    net = data.networking
    if net:
        for attr, label in (
            ("vpn_gateway_count", "VPN gateway count"),
            ("public_gateway_count", "Public gateway count"),
            ("load_balancer_count", "Load balancer count"),
        ):
            value = getattr(net, attr)
            if value is not None and (not _is_int(value) or value < 0):
                errors.append(ValidationError(f"networking.{attr}", f"{label} must be a non-negative integer"))

    return ValidationResult(valid=not errors, errors=errors)


def validate_region(region: str, pricing: Optional[PricingCatalog] = None) -> ValidationResult:
    pricing = pricing or get_pricing()
    errors: list[ValidationError] = []
    if not region or not isinstance(region, str):
        errors.append(ValidationError("region", "Region is required"))
    elif region not in pricing.regions:
        valid = ", ".join(pricing.regions)
        errors.append(ValidationError("region", f'Invalid region "{region}". Valid regions: {valid}'))
    return ValidationResult(valid=not errors, errors=errors)


def validate_discount_type(discount_type: str, pricing: Optional[PricingCatalog] = None) -> ValidationResult:
    pricing = pricing or get_pricing()
    errors: list[ValidationError] = []
    if not discount_type or not isinstance(discount_type, str):
        errors.append(ValidationError("discount_type", "Discount type is required"))
    elif discount_type not in pricing.discounts:
        valid = ", ".join(pricing.discounts)
        errors.append(ValidationError(
            "discount_type", f'Invalid discount type "{discount_type}". Valid types: {valid}',
        ))
    return ValidationResult(valid=not errors, errors=errors)


# ═══════════════════════════════════════════════════════════════════
#  Catalogue views
# ═══════════════════════════════════════════════════════════════════

def get_regions(pricing: Optional[PricingCatalog] = None) -> list[dict]:
    pricing = pricing or get_pricing()
    return [
        {"code": code, "name": r.name, "multiplier": r.multiplier}
        for code, r in pricing.regions.items()
    ]


def get_discount_options(pricing: Optional[PricingCatalog] = None) -> list[dict]:
    pricing = pricing or get_pricing()
    return [
        {"id": key, "name": d.name, "discount_pct": d.discount_pct, "description": d.description}
        for key, d in pricing.discounts.items()
    ]


def get_bare_metal_profiles(pricing: Optional[PricingCatalog] = None) -> list[dict]:
    pricing = pricing or get_pricing()
    return [{"id": key, **p.model_dump(), "total_nvme_gb": p.total_nvme_gb} for key, p in pricing.bare_metal.items()]


def get_vsi_profiles(pricing: Optional[PricingCatalog] = None) -> list[dict]:
    pricing = pricing or get_pricing()
    return [{"id": key, **p.model_dump()} for key, p in pricing.vsi.items()]


# ═══════════════════════════════════════════════════════════════════
#  Estimates
# ═══════════════════════════════════════════════════════════════════

def _line(category: str, description: str, quantity: float, unit: str,
          unit_cost: float, notes: Optional[str] = None) -> CostLineItem:
    monthly = quantity * unit_cost
    return CostLineItem(
        category=category,
        description=description,
        quantity=quantity,
        unit=unit,
        unit_cost=unit_cost,
        monthly_cost=monthly,
        annual_cost=monthly * 12,
        notes=notes,
    )


def _block_storage_line(pricing: PricingCatalog, storage_tib: float, tier: Optional[str],
                        multiplier: float) -> CostLineItem:
    tier = tier or DEFAULT_STORAGE_TIER
    tier_data = pricing.block_storage.get(tier)
    storage_gb = storage_tib * 1024
    cost_per_gb = (tier_data.cost_per_gb_month if tier_data else FALLBACK_COST_PER_GB) * multiplier
    return _line(
        "Storage - Block",
        f"Block Storage - {tier_data.tier_name if tier_data else tier}",
        storage_gb, "GB", cost_per_gb,
        tier_data.description if tier_data else f"{tier} IOPS tier",
    )


def _finalize(architecture: str, region: str, discount_type: str, line_items: list[CostLineItem],
              pricing: PricingCatalog) -> CostEstimate:
    region_data = pricing.regions.get(region, _FALLBACK_REGION)
    discount = pricing.discounts.get(discount_type, _FALLBACK_DISCOUNT)

    subtotal = sum(item.monthly_cost for item in line_items)
    discount_amount = subtotal * (discount.discount_pct / 100)
    total = subtotal - discount_amount

    return CostEstimate(
        architecture=architecture,
        region=region,
        region_name=region_data.name,
        discount_type=discount_type,
        discount_pct=discount.discount_pct,
        line_items=line_items,
        subtotal_monthly=subtotal,
        subtotal_annual=subtotal * 12,
        discount_amount_monthly=discount_amount,
        discount_amount_annual=discount_amount * 12,
        total_monthly=total,
        total_annual=total * 12,
        pricing_version=pricing.pricing_version,
        generated_at=datetime.now(timezone.utc).isoformat(),
        notes=[
            "Estimated pricing - actual costs may vary",
            "Contact IBM for enterprise pricing",
            f"{discount.name} discount applied" if discount.discount_pct > 0 else "On-demand pricing",
        ],
    )


def calculate_roks_cost(
    data: ROKSSizingInput,
    region: str = "us-south",
    discount_type: str = "onDemand",
    pricing: Optional[PricingCatalog] = None,
) -> CostEstimate:
    """Bare metal workers, storage (NVMe or VSI + block) and ingress load balancers."""
    pricing = pricing or get_pricing()
    multiplier = pricing.regions.get(region, _FALLBACK_REGION).multiplier
    line_items: list[CostLineItem] = []

    compute = pricing.bare_metal.get(data.compute_profile)
    if compute is None:
        logger.warning(f"Unknown bare metal profile '{data.compute_profile}', compute not priced")
    elif data.compute_nodes > 0:
        line_items.append(_line(
            "Compute", f"Bare Metal - {data.compute_profile}",
            data.compute_nodes, "nodes", compute.monthly_rate * multiplier, compute.description,
        ))

    if data.use_nvme and compute is not None and compute.has_nvme:
        capacity_gb = data.compute_nodes * compute.total_nvme_gb
        line_items.append(_line(
            "Storage", "NVMe Local Storage (included)",
            round(capacity_gb / 1024), "TiB raw", 0,
            f"{compute.nvme_disks}x {compute.nvme_size_gb / 1000:g}TB NVMe per node",
        ))
    else:
        if data.storage_nodes and data.storage_profile:
            storage_vsi = pricing.vsi.get(data.storage_profile)
            if storage_vsi:
                line_items.append(_line(
                    "Storage - VSI", f"VSI - {data.storage_profile}",
                    data.storage_nodes, "nodes", storage_vsi.monthly_rate * multiplier,
                    f"ODF storage workers - {storage_vsi.description}",
                ))
        if data.storage_tib and data.storage_tib > 0:
            line_items.append(_block_storage_line(pricing, data.storage_tib, data.storage_tier, multiplier))

    line_items.append(_line(
        "Networking", "Load Balancers (2x)", 2, "LBs",
        pricing.networking.load_balancer_monthly * multiplier,
        "Application Load Balancers for ingress",
    ))

    architecture = "All-NVMe Converged" if data.use_nvme else "Hybrid (Bare Metal + VSI Storage)"
    return _finalize(architecture, region, discount_type, line_items, pricing)


def calculate_vsi_cost(
    data: VSISizingInput,
    region: str = "us-south",
    discount_type: str = "onDemand",
    pricing: Optional[PricingCatalog] = None,
) -> CostEstimate:
    """Per-profile instances, block storage and optional network services."""
    pricing = pricing or get_pricing()
    multiplier = pricing.regions.get(region, _FALLBACK_REGION).multiplier
    line_items: list[CostLineItem] = []

    counts: Counter[str] = Counter()
    for vm in data.vm_profiles:
        if vm.profile in pricing.vsi:
            counts[vm.profile] += vm.count
        else:
            logger.debug(f"Profile '{vm.profile}' not in pricing catalogue, skipped")

    for profile_name, count in counts.items():
        profile = pricing.vsi[profile_name]
        line_items.append(_line(
            "Compute - VSI", f"VSI - {profile_name}", count, "instances",
            profile.monthly_rate * multiplier, profile.description,
        ))

    if data.storage_tib > 0:
        line_items.append(_block_storage_line(pricing, data.storage_tib, data.storage_tier, multiplier))

    net = data.networking or NetworkingOptions()
    prices = pricing.networking

    lb_count = 1 if net.load_balancer_count is None else net.load_balancer_count
    if lb_count > 0:
        line_items.append(_line(
            "Networking", "Application Load Balancer", lb_count, "LB",
            prices.load_balancer_monthly * multiplier, "For application traffic distribution",
        ))

    if net.include_vpn:
        line_items.append(_line(
            "Networking", "VPN Gateway", net.vpn_gateway_count or 1, "gateway",
            prices.vpn_gateway_monthly * multiplier, "Site-to-site VPN connectivity to on-premises",
        ))

    if net.include_transit_gateway:
        local = net.transit_gateway_local_connections or 1
        global_ = net.transit_gateway_global_connections or 0
        if local > 0:
            line_items.append(_line(
                "Networking", "Transit Gateway - Local Connection", local, "connection",
                prices.transit_local_connection_monthly * multiplier, "Same-region VPC/Classic connectivity",
            ))
        if global_ > 0:
            line_items.append(_line(
                "Networking", "Transit Gateway - Global Connection", global_, "connection",
                prices.transit_global_connection_monthly * multiplier, "Cross-region connectivity",
            ))

    if net.include_public_gateway:
        line_items.append(_line(
            "Networking", "Public Gateway", net.public_gateway_count or 1, "gateway",
            prices.public_gateway_monthly * multiplier, "Outbound internet access for VPC subnets",
        ))

    return _finalize("VPC Virtual Server Instances", region, discount_type, line_items, pricing)


def build_vsi_sizing_input(
    mappings: list["VMProfileMapping"],
    storage_tib: float,
    storage_tier: Optional[str] = None,
    networking: Optional[NetworkingOptions] = None,
) -> VSISizingInput:
    """Collapse per-VM profile mappings into profile counts for costing."""
    counts = Counter(m.profile.name for m in mappings)
    return VSISizingInput(
        vm_profiles=[VMProfileCount(name, n) for name, n in counts.items()],
        storage_tib=storage_tib,
        storage_tier=storage_tier,
        networking=networking,
    )


def describe_estimate(estimate: CostEstimate) -> str:
    return (
        f"{estimate.architecture} in {estimate.region_name}: "
        f"{format_currency(estimate.total_monthly)}/month, {format_currency(estimate.total_annual)}/year"
    )
