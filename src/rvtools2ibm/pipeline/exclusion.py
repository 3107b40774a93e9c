"""Automatic exclusion of VMs that should not be migrated.

Rules come in two kinds:

  field_rules    compare a VM attribute with a value (template == True,
                 power_state != poweredOn)
  name_patterns  match the VM name (contains, startsWith, endsWith,
                 exact or regex), case-insensitive, with optional
                 exclude_patterns that veto a match

The built-in rules can be replaced by a YAML file with the same two
top-level keys.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable, Optional

import yaml

from rvtools2ibm.utils.logging import get_logger

if TYPE_CHECKING:
    from rvtools2ibm.rvtools.models import VirtualMachine

logger = get_logger(__name__)

MATCH_TYPES = ("contains", "startsWith", "endsWith", "exact", "regex")
VMWARE_INFRASTRUCTURE_LABEL = "VMware Infrastructure"


@dataclass
class FieldRule:
    id: str
    label: str
    field: str
    value: Any
    operator: str = "equals"    # equals | notEquals
    description: str = ""


@dataclass
class NamePatternRule:
    id: str
    label: str
    match: str
    patterns: list[str]
    exclude_patterns: list[str] = field(default_factory=list)
    description: str = ""


@dataclass
class AutoExclusionResult:
    is_auto_excluded: bool = False
    reasons: list[str] = field(default_factory=list)
    labels: list[str] = field(default_factory=list)


NO_AUTO_EXCLUSION = AutoExclusionResult()


# ═══════════════════════════════════════════════════════════════════
# DEFAULT RULES
# ═══════════════════════════════════════════════════════════════════

DEFAULT_RULES: dict = {
    "field_rules": [
        {"id": "template", "label": "Template", "field": "template", "value": True},
        {"id": "powered-off", "label": "Powered Off", "field": "power_state",
         "operator": "notEquals", "value": "poweredOn"},
    ],
    "name_patterns": [
        {"id": "vmware-vcls", "label": VMWARE_INFRASTRUCTURE_LABEL, "match": "startsWith",
         "patterns": ["vcls-", "vcls ("], "description": "vSphere Cluster Services agent VMs"},
        {"id": "vmware-vcenter", "label": VMWARE_INFRASTRUCTURE_LABEL, "match": "regex",
         "patterns": [r"^vcenter", r"^vcsa", r"[-_.]vcsa\d*$", r"[-_.]vcenter\d*$"],
         "description": "vCenter Server Appliance"},
        {"id": "vmware-nsx", "label": VMWARE_INFRASTRUCTURE_LABEL, "match": "contains",
         "patterns": ["nsx-manager", "nsx-mgr", "nsxmgr", "nsx-edge", "nsx-controller", "nsxt-", "nsx-t-"],
         "description": "NSX managers, controllers and edges"},
        {"id": "vmware-hcx", "label": VMWARE_INFRASTRUCTURE_LABEL, "match": "contains",
         "patterns": ["hcx-manager", "hcx-ix", "hcx-ne", "hcx-wo", "hcx-sgw", "hcx-connector"],
         "description": "HCX manager and service mesh appliances"},
        {"id": "vmware-aria", "label": VMWARE_INFRASTRUCTURE_LABEL, "match": "contains",
         "patterns": ["vrops", "vrli", "vrealize", "vrni", "aria-ops", "aria-logs", "vra-", "vrslcm"],
         "description": "Aria/vRealize operations, logs and automation"},
        {"id": "vmware-avi", "label": VMWARE_INFRASTRUCTURE_LABEL, "match": "contains",
         "patterns": ["avi-controller", "avi-se-", "nsx-alb"],
         "exclude_patterns": ["avi-demo"],
         "description": "NSX Advanced Load Balancer (Avi)"},
        {"id": "vmware-misc", "label": VMWARE_INFRASTRUCTURE_LABEL, "match": "startsWith",
         "patterns": ["sddc-manager", "vsan-witness", "vxrail-manager", "vsphere-replication", "srm-"],
         "description": "SDDC manager, vSAN witness and replication appliances"},
        {"id": "network-edge-appliance", "label": "Network Edge Appliance", "match": "contains",
         "patterns": ["cust-edge", "service-edge"]},
        {"id": "windows-adns", "label": "Windows AD/DNS", "match": "startsWith",
         "patterns": ["ADNSvcs"]},
    ],
}


def _camel_to_snake(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


class ExclusionRules:
    """Compiled rule set. Regexes are compiled once, on construction."""

    def __init__(self, field_rules: list[FieldRule], name_patterns: list[NamePatternRule]):
        self.field_rules = field_rules
        self.name_patterns = name_patterns
        self._regexes: dict[str, list[re.Pattern]] = {}

        for rule in name_patterns:
            if rule.match not in MATCH_TYPES:
                raise ValueError(f"Rule '{rule.id}': unknown match type '{rule.match}'")
            if rule.match == "regex":
                self._regexes[rule.id] = [re.compile(p, re.IGNORECASE) for p in rule.patterns]
        for rule in field_rules:
            if rule.operator not in ("equals", "notEquals"):
                raise ValueError(f"Rule '{rule.id}': unknown operator '{rule.operator}'")

    @classmethod
    def from_dict(cls, config: dict) -> "ExclusionRules":
        # Accept the camelCase keys used by other tools' rule files
        field_rules = config.get("field_rules", config.get("fieldRules")) or []
        name_patterns = config.get("name_patterns", config.get("namePatterns")) or []
        return cls(
            field_rules=[
                FieldRule(
                    id=r["id"],
                    label=r["label"],
                    field=_camel_to_snake(r["field"]),
                    value=r.get("value"),
                    operator=r.get("operator", "equals"),
                    description=r.get("description", ""),
                )
                for r in field_rules
            ],
            name_patterns=[
                NamePatternRule(
                    id=r["id"],
                    label=r["label"],
                    match=r.get("match", "contains"),
                    patterns=list(r.get("patterns") or []),
                    exclude_patterns=list(r.get("exclude_patterns", r.get("excludePatterns")) or []),
                    description=r.get("description", ""),
                )
                for r in name_patterns
            ],
        )

    @classmethod
    def default(cls) -> "ExclusionRules":
        return cls.from_dict(DEFAULT_RULES)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "ExclusionRules":
        with open(path) as f:
            config = yaml.safe_load(f) or {}
        if not isinstance(config, dict):
            raise ValueError(f"Exclusion rules file {path} must contain a mapping")
        rules = cls.from_dict(config)
        logger.info(f"Loaded {len(rules.field_rules)} field rules and "
                    f"{len(rules.name_patterns)} name rules from {path}")
        return rules

    # ── Matching ────────────────────────────────────────────────

    def matches_field_rule(self, vm: "VirtualMachine", rule: FieldRule) -> bool:
        value = getattr(vm, rule.field, None)
        if rule.operator == "notEquals":
            return value != rule.value
        return value == rule.value

    def matches_name_rule(self, vm_name: str, rule: NamePatternRule) -> bool:
        name = vm_name.lower()
        if any(ep.lower() in name for ep in rule.exclude_patterns):
            return False

        if rule.match == "regex":
            return any(rx.search(name) for rx in self._regexes.get(rule.id, []))

        for pattern in rule.patterns:
            p = pattern.lower()
            if rule.match == "startsWith" and name.startswith(p):
                return True
            if rule.match == "endsWith" and name.endswith(p):
                return True
            if rule.match == "exact" and name == p:
                return True
            if rule.match == "contains" and p in name:
                return True
        return False

    def evaluate(self, vm: "VirtualMachine") -> AutoExclusionResult:
        reasons: list[str] = []
        labels: list[str] = []

        for rule in self.field_rules:
            if self.matches_field_rule(vm, rule):
                reasons.append(rule.id)
                labels.append(rule.label)

        for rule in self.name_patterns:
            if self.matches_name_rule(vm.vm_name, rule):
                reasons.append(rule.id)
                if rule.label not in labels:
                    labels.append(rule.label)

        if reasons:
            logger.debug(f"{vm.vm_name}: auto-excluded ({', '.join(reasons)})")
        return AutoExclusionResult(is_auto_excluded=bool(reasons), reasons=reasons, labels=labels)


_default_rules: Optional[ExclusionRules] = None


def get_rules(rules_file: str | Path | None = None) -> ExclusionRules:
    """Built-in rules, or the rules loaded from ``rules_file``."""
    global _default_rules
    if rules_file:
        return ExclusionRules.from_yaml(rules_file)
    if _default_rules is None:
        _default_rules = ExclusionRules.default()
    return _default_rules


def get_auto_exclusion(vm: "VirtualMachine", rules: Optional[ExclusionRules] = None) -> AutoExclusionResult:
    return (rules or get_rules()).evaluate(vm)


def is_vmware_infrastructure_vm(vm_name: str, rules: Optional[ExclusionRules] = None) -> bool:
    """True if the name matches a rule labelled VMware Infrastructure."""
    rules = rules or get_rules()
    return any(
        rules.matches_name_rule(vm_name, rule)
        for rule in rules.name_patterns
        if rule.label == VMWARE_INFRASTRUCTURE_LABEL
    )


def get_auto_exclusion_map(
    vms: Iterable["VirtualMachine"],
    rules: Optional[ExclusionRules] = None,
) -> dict[str, AutoExclusionResult]:
    """Auto-exclusion per VM, keyed by ``VirtualMachine.identifier``."""
    rules = rules or get_rules()
    return {vm.identifier: rules.evaluate(vm) for vm in vms}


def filter_vms(
    vms: list["VirtualMachine"],
    exclusions: dict[str, AutoExclusionResult],
    include_names: Iterable[str] = (),
    exclude_names: Iterable[str] = (),
) -> list["VirtualMachine"]:
    """VMs left in scope after auto-exclusion and manual overrides.

    ``include_names`` forces a VM back in even if a rule excluded it;
    ``exclude_names`` removes it regardless. Names compare case-insensitively.
    """
    include = {n.lower() for n in include_names}
    exclude = {n.lower() for n in exclude_names}

    kept = []
    for vm in vms:
        name = vm.vm_name.lower()
        if name in exclude:
            continue
        if name in include or not exclusions.get(vm.identifier, NO_AUTO_EXCLUSION).is_auto_excluded:
            kept.append(vm)

    logger.info(f"In scope: {len(kept)} of {len(vms)} VMs")
    return kept
