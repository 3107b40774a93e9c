"""Application configuration for rvtools2ibm.

Sections:
  config.assessment   migration target and thresholds
  config.pricing      region, discount and pricing override file
  config.mtv          MTV manifest generation options
  config.report       report branding and section toggles
  config.exclusion    auto-exclusion rules file and manual overrides
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator


ENV_PREFIX = "RVTOOLS2IBM_"


class AssessmentSettings(BaseModel):
    mode: str = Field("vsi", pattern=r"^(vsi|roks)$", description="Migration target: vsi or roks")
    include_powered_off: bool = Field(False, description="Keep powered-off VMs in scope")


class PricingSettings(BaseModel):
    region: str = Field("us-south", description="IBM Cloud region code")
    discount_type: str = Field("onDemand", description="onDemand, reserved1Year or reserved3Year")
    pricing_file: Optional[Path] = Field(None, description="YAML file overriding the built-in price list")
    storage_tier: str = Field("10iops", pattern=r"^(5iops|10iops)$")
    use_nvme: bool = Field(True, description="ROKS: use bare-metal NVMe for ODF instead of storage VSIs")


class MTVExportOptions(BaseModel):
    namespace: str = Field("openshift-mtv")
    target_namespace: str = Field("migrated-vms")
    source_provider_name: str = Field("vmware-source")
    destination_provider_name: str = Field("host")
    network_map_name: str = Field("vmware-network-map")
    storage_map_name: str = Field("vmware-storage-map")
    default_storage_class: str = Field("ocs-storagecluster-ceph-rbd")
    warm: bool = Field(False, description="Warm migration (requires CBT)")
    preserve_static_ips: bool = Field(False)

    @field_validator("namespace", "target_namespace")
    @classmethod
    def _dns_label(cls, v: str) -> str:
        if not re.match(r"^[a-z0-9]([a-z0-9-]{0,61}[a-z0-9])?$", v):
            raise ValueError(f"'{v}' is not a valid Kubernetes namespace")
        return v


class ReportSettings(BaseModel):
    client_name: str = Field("", description="Client name shown on report covers")
    prepared_by: str = Field("")
    company_name: str = Field("")
    include_roks: bool = Field(True)
    include_vsi: bool = Field(True)
    include_costs: bool = Field(True)
    max_issue_vms: int = Field(20, ge=1, description="Maximum VMs listed in the readiness table")


class ExclusionSettings(BaseModel):
    rules_file: Optional[Path] = Field(None, description="YAML file replacing the built-in exclusion rules")
    include: list[str] = Field(default_factory=list, description="VM names forced back into scope")
    exclude: list[str] = Field(default_factory=list, description="VM names always excluded")


class AppConfig(BaseModel):
    assessment: AssessmentSettings = Field(default_factory=AssessmentSettings)
    pricing: PricingSettings = Field(default_factory=PricingSettings)
    mtv: MTVExportOptions = Field(default_factory=MTVExportOptions)
    report: ReportSettings = Field(default_factory=ReportSettings)
    exclusion: ExclusionSettings = Field(default_factory=ExclusionSettings)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "AppConfig":
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        return cls(**data)

    @classmethod
    def from_env_and_args(cls, base: Optional["AppConfig"] = None, **overrides) -> "AppConfig":
        """Environment variables on top of ``base``, then ``overrides`` on top.

        ``overrides`` are keyed by section, e.g. ``assessment={"mode": "roks"}``.
        Keys whose value is None are ignored so CLI options can be passed through
        unconditionally.
        """
        data = (base or cls()).model_dump()

        env = {
            ("assessment", "mode"): os.getenv(f"{ENV_PREFIX}MODE"),
            ("pricing", "region"): os.getenv(f"{ENV_PREFIX}REGION"),
            ("pricing", "discount_type"): os.getenv(f"{ENV_PREFIX}DISCOUNT"),
            ("mtv", "namespace"): os.getenv(f"{ENV_PREFIX}NAMESPACE"),
        }
        for (section, key), value in env.items():
            if value:
                data[section][key] = value

        for section, values in overrides.items():
            if section not in data:
                raise ValueError(f"Unknown config section '{section}'")
            data[section].update({k: v for k, v in (values or {}).items() if v is not None})

        return cls(**data)

    def to_yaml(self, path: str | Path) -> None:
        with open(path, "w") as f:
            yaml.dump(self.model_dump(mode="json"), f, default_flow_style=False, sort_keys=False)
