"""Static IBM Cloud pricing catalogue.

List prices in USD per month for us-south. Other regions apply a
multiplier. A YAML file can override any section (see
``PricingCatalog.from_yaml``) to refresh prices without a release.
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

from rvtools2ibm.constants import BARE_METAL_RESERVED_MEMORY_GIB
from rvtools2ibm.ibmcloud.profiles import all_profiles
from rvtools2ibm.utils.logging import get_logger

logger = get_logger(__name__)


class RegionPricing(BaseModel):
    name: str
    multiplier: float = Field(1.0, gt=0, description="Price multiplier relative to us-south")
    availability_zones: int = Field(3, ge=1)


class DiscountOption(BaseModel):
    name: str
    discount_pct: float = Field(0, ge=0, le=100)
    description: str = ""


class BareMetalPricing(BaseModel):
    monthly_rate: float = Field(..., ge=0)
    physical_cores: int = Field(..., gt=0)
    # At least one thread must stay schedulable after worker headroom
    vcpus: int = Field(..., ge=2)
    memory_gib: int = Field(..., gt=BARE_METAL_RESERVED_MEMORY_GIB)
    has_nvme: bool = False
    nvme_disks: int = 0
    nvme_size_gb: int = 0
    description: str = ""

    @property
    def total_nvme_gb(self) -> int:
        return self.nvme_disks * self.nvme_size_gb


class VSIPricing(BaseModel):
    monthly_rate: float = Field(..., ge=0)
    vcpus: int
    memory_gib: int
    description: str = ""


class BlockStorageTier(BaseModel):
    tier_name: str
    cost_per_gb_month: float = Field(..., ge=0)
    iops_per_gb: Optional[int] = None
    description: str = ""


class NetworkingPricing(BaseModel):
    load_balancer_monthly: float = 21.60
    vpn_gateway_monthly: float = 99.0
    transit_local_connection_monthly: float = 50.0
    transit_global_connection_monthly: float = 100.0
    public_gateway_monthly: float = 5.0


# ═══════════════════════════════════════════════════════════════════
# DEFAULT CATALOG
# Source: https://cloud.ibm.com/vpc-ext/provision/vs (list prices)
# ═══════════════════════════════════════════════════════════════════

DEFAULT_PRICING: dict = {
    "pricing_version": "2026-09",

    "regions": {
        "us-south": {"name": "Dallas", "multiplier": 1.0, "availability_zones": 3},
        "us-east":  {"name": "Washington DC", "multiplier": 1.0, "availability_zones": 3},
        "ca-tor":   {"name": "Toronto", "multiplier": 1.05, "availability_zones": 3},
        "br-sao":   {"name": "Sao Paulo", "multiplier": 1.2, "availability_zones": 3},
        "eu-de":    {"name": "Frankfurt", "multiplier": 1.1, "availability_zones": 3},
        "eu-gb":    {"name": "London", "multiplier": 1.1, "availability_zones": 3},
        "eu-es":    {"name": "Madrid", "multiplier": 1.1, "availability_zones": 3},
        "jp-tok":   {"name": "Tokyo", "multiplier": 1.15, "availability_zones": 3},
        "jp-osa":   {"name": "Osaka", "multiplier": 1.15, "availability_zones": 3},
        "au-syd":   {"name": "Sydney", "multiplier": 1.15, "availability_zones": 3},
    },

    "discounts": {
        "onDemand":      {"name": "On-Demand", "discount_pct": 0, "description": "Pay-as-you-go"},
        "reserved1Year": {"name": "1-Year Reserved", "discount_pct": 20, "description": "1-year commitment"},
        "reserved3Year": {"name": "3-Year Reserved", "discount_pct": 35, "description": "3-year commitment"},
    },

    "bare_metal": {
        "bx2d.metal.96x384": {
            "monthly_rate": 3820.0, "physical_cores": 48, "vcpus": 96, "memory_gib": 384,
            "has_nvme": True, "nvme_disks": 8, "nvme_size_gb": 3200,
            "description": "96 vCPU, 384 GiB, 8x 3.2TB NVMe",
        },
        "bx2.metal.96x384": {
            "monthly_rate": 3280.0, "physical_cores": 48, "vcpus": 96, "memory_gib": 384,
            "description": "96 vCPU, 384 GiB, no local NVMe",
        },
        "cx2d.metal.96x192": {
            "monthly_rate": 3150.0, "physical_cores": 48, "vcpus": 96, "memory_gib": 192,
            "has_nvme": True, "nvme_disks": 8, "nvme_size_gb": 3200,
            "description": "96 vCPU, 192 GiB, 8x 3.2TB NVMe",
        },
        "mx2d.metal.96x768": {
            "monthly_rate": 4940.0, "physical_cores": 48, "vcpus": 96, "memory_gib": 768,
            "has_nvme": True, "nvme_disks": 8, "nvme_size_gb": 3200,
            "description": "96 vCPU, 768 GiB, 8x 3.2TB NVMe",
        },
        "bx3d.metal.192x1024": {
            "monthly_rate": 7460.0, "physical_cores": 96, "vcpus": 192, "memory_gib": 1024,
            "has_nvme": True, "nvme_disks": 8, "nvme_size_gb": 7680,
            "description": "192 vCPU, 1 TiB, 8x 7.68TB NVMe",
        },
    },

    "vsi": {
        p.name: {
            "monthly_rate": p.monthly_rate,
            "vcpus": p.vcpus,
            "memory_gib": p.memory_gib,
            "description": f"{p.vcpus} vCPU, {p.memory_gib} GiB RAM",
        }
        for p in all_profiles()
    },

    "block_storage": {
        "general-purpose": {"tier_name": "General Purpose (3 IOPS/GB)", "cost_per_gb_month": 0.08,
                            "iops_per_gb": 3, "description": "3 IOPS/GB tiered profile"},
        "5iops":  {"tier_name": "5 IOPS/GB", "cost_per_gb_month": 0.10, "iops_per_gb": 5,
                   "description": "5 IOPS/GB tiered profile"},
        "10iops": {"tier_name": "10 IOPS/GB", "cost_per_gb_month": 0.13, "iops_per_gb": 10,
                   "description": "10 IOPS/GB tiered profile"},
    },

    "networking": {},
}


class PricingCatalog(BaseModel):
    """Prices for every billable item the cost estimator knows about."""

    pricing_version: str
    regions: dict[str, RegionPricing]
    discounts: dict[str, DiscountOption]
    bare_metal: dict[str, BareMetalPricing]
    vsi: dict[str, VSIPricing]
    block_storage: dict[str, BlockStorageTier]
    networking: NetworkingPricing = NetworkingPricing()

    @classmethod
    def default(cls) -> "PricingCatalog":
        return cls(**copy.deepcopy(DEFAULT_PRICING))

    @classmethod
    def from_yaml(cls, path: str | Path) -> "PricingCatalog":
        """Load a pricing override file on top of the built-in catalogue.

        Sections are merged key by key, so an override file only needs
        the entries it changes.
        """
        with open(path) as f:
            overrides = yaml.safe_load(f) or {}
        if not isinstance(overrides, dict):
            raise ValueError(f"Pricing file {path} must contain a mapping")

        base = copy.deepcopy(DEFAULT_PRICING)
        for key, value in overrides.items():
            if isinstance(value, dict) and isinstance(base.get(key), dict):
                base[key].update(value)
            else:
                base[key] = value
        logger.info(f"Loaded pricing overrides from {path}")
        return cls(**base)


_default_catalog: Optional[PricingCatalog] = None


def get_pricing(pricing_file: str | Path | None = None) -> PricingCatalog:
    """Built-in catalogue, or the catalogue with ``pricing_file`` applied."""
    global _default_catalog
    if pricing_file:
        return PricingCatalog.from_yaml(pricing_file)
    if _default_catalog is None:
        _default_catalog = PricingCatalog.default()
    return _default_catalog
