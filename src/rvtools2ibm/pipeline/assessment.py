"""End-to-end migration assessment of one RVTools export.

Runs the analysis stages in order and collects their output into an
``AssessmentReport``:

  exclusion -> OS compatibility -> complexity -> pre-flight counts
  -> remediation -> readiness -> waves -> sizing (VSI profiles or ROKS)
  -> cost estimate
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from rvtools2ibm.config import AppConfig
from rvtools2ibm.ibmcloud.cost import (
    CostEstimate,
    ROKSSizingInput,
    build_vsi_sizing_input,
    calculate_roks_cost,
    calculate_vsi_cost,
)
from rvtools2ibm.ibmcloud.pricing import get_pricing
from rvtools2ibm.ibmcloud.profiles import (
    VMProfileMapping,
    calculate_profile_totals,
    count_by_family,
    create_vm_profile_mappings,
)
from rvtools2ibm.ibmcloud.sizing import (
    BareMetalSizing,
    WorkerSizing,
    calculate_bare_metal_sizing,
    calculate_worker_sizing,
)
from rvtools2ibm.pipeline.complexity import (
    ComplexityScore,
    calculate_complexity_scores,
    calculate_readiness_score,
    get_assessment_summary,
)
from rvtools2ibm.pipeline.exclusion import (
    NO_AUTO_EXCLUSION,
    AutoExclusionResult,
    filter_vms,
    get_auto_exclusion_map,
    get_rules,
)
from rvtools2ibm.pipeline.os_compat import MIGRATION_MODES, count_by_os_status, get_normalized_os_status
from rvtools2ibm.pipeline.preflight import PreflightCheckCounts, calculate_preflight_counts
from rvtools2ibm.pipeline.remediation import (
    RemediationItem,
    count_remediation_severity,
    generate_remediation_items,
)
from rvtools2ibm.pipeline.waves import WaveGroup, build_vm_wave_data, create_complexity_waves
from rvtools2ibm.utils.formatters import mib_to_tib
from rvtools2ibm.utils.logging import get_logger

if TYPE_CHECKING:
    from rvtools2ibm.rvtools.models import RVToolsData, VirtualMachine

logger = get_logger(__name__)

# Storage VSIs used for ODF when NVMe bare metal is not selected
ROKS_STORAGE_NODES = 3
ROKS_STORAGE_PROFILE = "bx2-16x64"


@dataclass
class AssessmentReport:
    mode: str
    file_name: str
    generated_at: str
    inventory: dict
    total_vms: int
    in_scope: list["VirtualMachine"]
    exclusions: dict[str, AutoExclusionResult]
    os_status_counts: dict[str, int]
    scores: list[ComplexityScore]
    preflight: PreflightCheckCounts
    remediation: list[RemediationItem]
    severity_counts: dict[str, int]
    readiness_score: int
    waves: list[WaveGroup]
    profile_mappings: list[VMProfileMapping] = field(default_factory=list)
    worker_sizing: Optional[WorkerSizing] = None
    bare_metal_sizing: Optional[BareMetalSizing] = None
    cost: Optional[CostEstimate] = None

    @property
    def blocker_count(self) -> int:
        return self.severity_counts.get("blockers", 0)

    @property
    def excluded_count(self) -> int:
        return self.total_vms - len(self.in_scope)

    def exclusion_label_counts(self) -> dict[str, int]:
        labels: Counter[str] = Counter()
        for result in self.exclusions.values():
            labels.update(result.labels)
        return dict(labels)

    def to_dict(self) -> dict:
        summary = get_assessment_summary(self.scores)
        d = {
            "mode": self.mode,
            "file_name": self.file_name,
            "generated_at": self.generated_at,
            "inventory": self.inventory,
            "scope": {
                "total_vms": self.total_vms,
                "in_scope": len(self.in_scope),
                "excluded": self.excluded_count,
                "excluded_by_label": self.exclusion_label_counts(),
            },
            "readiness_score": self.readiness_score,
            "os_status_counts": self.os_status_counts,
            "complexity": {
                "summary": vars(summary),
                "scores": [s.to_dict() for s in self.scores],
            },
            "preflight": self.preflight.to_dict(),
            "remediation": [item.to_dict() for item in self.remediation],
            "severity_counts": self.severity_counts,
            "waves": [w.to_dict() for w in self.waves],
        }
        if self.profile_mappings:
            d["profiles"] = {
                "totals": calculate_profile_totals(self.profile_mappings),
                "by_family": count_by_family(self.profile_mappings),
                "mappings": [m.to_dict() for m in self.profile_mappings],
            }
        if self.worker_sizing:
            d["roks_worker_sizing"] = self.worker_sizing.to_dict()
        if self.bare_metal_sizing:
            d["roks_bare_metal_sizing"] = self.bare_metal_sizing.to_dict()
        if self.cost:
            d["cost"] = self.cost.to_dict()
        return d


def determine_scope(
    vms: list["VirtualMachine"],
    config: AppConfig,
) -> tuple[list["VirtualMachine"], dict[str, AutoExclusionResult]]:
    """Apply auto-exclusion rules and the manual include/exclude lists."""
    rules = get_rules(config.exclusion.rules_file)
    exclusions = get_auto_exclusion_map(vms, rules)

    if config.assessment.include_powered_off:
        # Drop results where power state was the only reason
        exclusions = {
            key: (NO_AUTO_EXCLUSION if result.reasons == ["powered-off"] else result)
            for key, result in exclusions.items()
        }

    in_scope = filter_vms(vms, exclusions, config.exclusion.include, config.exclusion.exclude)
    return in_scope, exclusions


def _preflight_population(
    vms: list["VirtualMachine"],
    exclusions: dict[str, AutoExclusionResult],
    config: AppConfig,
) -> list["VirtualMachine"]:
    """In-scope VMs plus those excluded only for being powered off."""
    manual_include = {n.lower() for n in config.exclusion.include}
    manual_exclude = {n.lower() for n in config.exclusion.exclude}
    population = []
    for vm in vms:
        name = vm.vm_name.lower()
        if name in manual_exclude:
            continue
        reasons = exclusions.get(vm.identifier, NO_AUTO_EXCLUSION).reasons
        if set(reasons) <= {"powered-off"} or name in manual_include:
            population.append(vm)
    return population


def _estimate_cost(
    mode: str,
    config: AppConfig,
    in_scope: list["VirtualMachine"],
    mappings: list[VMProfileMapping],
    bare_metal: Optional[BareMetalSizing],
) -> CostEstimate:
    pricing = get_pricing(config.pricing.pricing_file)
    storage_tib = round(mib_to_tib(sum(vm.in_use_mib or vm.provisioned_mib for vm in in_scope)), 2)

    if mode == "vsi":
        sizing_input = build_vsi_sizing_input(mappings, storage_tib, config.pricing.storage_tier)
        return calculate_vsi_cost(sizing_input, config.pricing.region, config.pricing.discount_type, pricing)

    use_nvme = config.pricing.use_nvme
    sizing_input = ROKSSizingInput(
        compute_nodes=bare_metal.worker_nodes,
        compute_profile=bare_metal.profile_name,
        storage_nodes=None if use_nvme else ROKS_STORAGE_NODES,
        storage_profile=None if use_nvme else ROKS_STORAGE_PROFILE,
        storage_tib=None if use_nvme else storage_tib,
        storage_tier=config.pricing.storage_tier,
        use_nvme=use_nvme,
    )
    return calculate_roks_cost(sizing_input, config.pricing.region, config.pricing.discount_type, pricing)


def assess(
    data: "RVToolsData",
    mode: Optional[str] = None,
    config: Optional[AppConfig] = None,
) -> AssessmentReport:
    """Run the full assessment.

    Args:
        data: Parsed RVTools export
        mode: "vsi" or "roks"; defaults to ``config.assessment.mode``
        config: Application configuration; defaults to built-in settings

    Returns:
        AssessmentReport for the VMs left in scope after exclusions
    """
    config = config or AppConfig()
    mode = mode or config.assessment.mode
    if mode not in MIGRATION_MODES:
        raise ValueError(f"Unknown migration mode '{mode}'")

    logger.info(f"Assessing {data.metadata.file_name} for {mode.upper()}")

    # 1. Exclusion
    candidates = [vm for vm in data.vms if not vm.template]
    in_scope, exclusions = determine_scope(data.vms, config)

    # 2. OS compatibility
    os_status_counts = count_by_os_status(in_scope, mode)
    unsupported_os = sum(1 for vm in in_scope if get_normalized_os_status(vm.guest_os, mode) == "unsupported")

    # 3. Complexity
    scores = calculate_complexity_scores(in_scope, data.disks, data.networks, mode)

    # 4-5. Pre-flight counts and remediation
    preflight = calculate_preflight_counts(data, mode, _preflight_population(candidates, exclusions, config))
    remediation = generate_remediation_items(preflight, mode)
    severity = count_remediation_severity(remediation)

    # 6. Readiness
    readiness = calculate_readiness_score(
        severity["blockers"], severity["warnings"], unsupported_os, len(in_scope)
    )

    # 7. Waves
    wave_data = build_vm_wave_data(
        in_scope, scores, data.disks, data.snapshots, data.tools, data.networks, mode
    )
    waves = create_complexity_waves(wave_data, mode)

    # 8. Sizing
    report = AssessmentReport(
        mode=mode,
        file_name=data.metadata.file_name,
        generated_at=datetime.now(timezone.utc).isoformat(),
        inventory=data.summary(),
        total_vms=len(data.vms),
        in_scope=in_scope,
        exclusions=exclusions,
        os_status_counts=os_status_counts,
        scores=scores,
        preflight=preflight,
        remediation=remediation,
        severity_counts=severity,
        readiness_score=readiness,
        waves=waves,
    )

    if mode == "vsi":
        report.profile_mappings = create_vm_profile_mappings(in_scope)
    else:
        from rvtools2ibm.rvtools.models import RVToolsData

        scoped = RVToolsData(metadata=data.metadata, vms=in_scope)
        report.worker_sizing = calculate_worker_sizing(scoped)
        report.bare_metal_sizing = calculate_bare_metal_sizing(scoped, get_pricing(config.pricing.pricing_file))

    report.cost = _estimate_cost(mode, config, in_scope, report.profile_mappings, report.bare_metal_sizing)

    logger.info(
        f"Assessment complete: {len(in_scope)}/{len(data.vms)} VMs in scope, "
        f"readiness {readiness}%, {severity['blockers']} blocker(s)"
    )
    return report
