"""Tests for the end-to-end assessment.

Covers:
  - Scope after auto-exclusion and manual overrides
  - ROKS run: remediation, readiness, waves, bare-metal sizing and cost
  - VSI run: profile mappings and cost
  - Report serialisation
"""

import pytest


# ═══════════════════════════════════════════════════════════════════
#  Scope
# ═══════════════════════════════════════════════════════════════════

class TestDetermineScope:
    def test_default_scope(self, sample_data):
        from rvtools2ibm.config import AppConfig
        from rvtools2ibm.pipeline.assessment import determine_scope
        in_scope, exclusions = determine_scope(sample_data.vms, AppConfig())

        assert [vm.vm_name for vm in in_scope] == ["web-01", "db-01", "Legacy_App"]
        assert exclusions["vCLS-1234::4201dddd-0005"].reasons == ["vmware-vcls"]
        assert exclusions["tpl-rhel9::4201eeee-0006"].reasons == ["template", "powered-off"]

    def test_include_powered_off(self, sample_data):
        from rvtools2ibm.config import AppConfig
        from rvtools2ibm.pipeline.assessment import determine_scope
        config = AppConfig(assessment={"include_powered_off": True})
        in_scope, _ = determine_scope(sample_data.vms, config)

        names = [vm.vm_name for vm in in_scope]
        assert "test-off" in names
        # Templates stay out: power state was not their only reason
        assert "tpl-rhel9" not in names

    def test_manual_overrides(self, sample_data):
        from rvtools2ibm.config import AppConfig
        from rvtools2ibm.pipeline.assessment import determine_scope
        config = AppConfig(exclusion={"include": ["vcls-1234"], "exclude": ["DB-01"]})
        in_scope, _ = determine_scope(sample_data.vms, config)
        assert [vm.vm_name for vm in in_scope] == ["web-01", "Legacy_App", "vCLS-1234"]


# ═══════════════════════════════════════════════════════════════════
#  Full runs
# ═══════════════════════════════════════════════════════════════════

class TestAssessROKS:
    @pytest.fixture
    def report(self, sample_data):
        from rvtools2ibm.pipeline.assessment import assess
        return assess(sample_data, "roks")

    def test_scope(self, report):
        assert report.mode == "roks"
        assert report.total_vms == 6
        assert report.excluded_count == 3
        assert report.exclusion_label_counts() == {
            "Template": 1, "Powered Off": 2, "VMware Infrastructure": 1,
        }

    def test_os_and_complexity(self, report):
        assert report.os_status_counts == {"fully-supported": 2, "unsupported": 1}
        scores = {s.vm_name: s.score for s in report.scores}
        assert scores == {"web-01": 0, "db-01": 10, "Legacy_App": 55}

    def test_preflight_includes_powered_off(self, report):
        # test-off is excluded for power state only, so its disks and IP still count
        assert report.preflight.vms_with_independent_disks == ["test-off"]
        assert report.preflight.vms_static_ip_powered_off == ["test-off"]
        assert "vCLS-1234" not in report.preflight.vms_without_tools

    def test_remediation_and_readiness(self, report):
        assert report.severity_counts == {"blockers": 4, "warnings": 9, "info": 1}
        assert report.blocker_count == 4
        assert report.readiness_score == 0
        assert report.remediation[0].id == "tools-installed"

    def test_waves(self, report):
        assert [w.name for w in report.waves] == ["Wave 1: Pilot", "Wave 5: Remediation"]

    def test_sizing_and_cost(self, report):
        assert report.profile_mappings == []
        assert report.worker_sizing.worker_count == 3
        assert report.bare_metal_sizing.worker_nodes == 4
        assert report.cost.architecture == "All-NVMe Converged"
        assert report.cost.total_monthly == pytest.approx(4 * 3820 + 2 * 21.60)

    def test_without_nvme(self, sample_data):
        from rvtools2ibm.config import AppConfig
        from rvtools2ibm.pipeline.assessment import assess
        report = assess(sample_data, "roks", AppConfig(pricing={"use_nvme": False}))
        categories = [i.category for i in report.cost.line_items]
        assert categories == ["Compute", "Storage - VSI", "Storage - Block", "Networking"]

    def test_to_dict(self, report):
        d = report.to_dict()
        assert d["scope"] == {
            "total_vms": 6,
            "in_scope": 3,
            "excluded": 3,
            "excluded_by_label": {"Template": 1, "Powered Off": 2, "VMware Infrastructure": 1},
        }
        assert d["complexity"]["summary"]["complex_count"] == 1
        assert d["waves"][0]["vms"] == ["web-01", "db-01"]
        assert d["roks_bare_metal_sizing"]["total_cores"] == 192
        assert "profiles" not in d
        assert d["cost"]["line_items"][0]["description"] == "Bare Metal - bx2d.metal.96x384"


class TestAssessVSI:
    @pytest.fixture
    def report(self, sample_data):
        from rvtools2ibm.config import AppConfig
        from rvtools2ibm.pipeline.assessment import assess
        return assess(sample_data, config=AppConfig(assessment={"mode": "vsi"}))

    def test_remediation(self, report):
        assert report.mode == "vsi"
        assert [i.id for i in report.remediation] == [
            "no-rdm", "unsupported-os", "tools-installed", "old-snapshots",
        ]
        assert report.severity_counts == {"blockers": 2, "warnings": 2, "info": 0}

    def test_waves(self, report):
        waves = {w.name: [vm.vm_name for vm in w.vms] for w in report.waves}
        assert waves == {"Wave 1: Pilot": ["web-01", "db-01"], "Wave 5: Remediation": ["Legacy_App"]}

    def test_profiles_and_cost(self, report):
        assert [m.profile.name for m in report.profile_mappings] == ["bx2-4x16", "mx2-8x64", "cx2-2x4"]
        assert report.worker_sizing is None

        storage = next(i for i in report.cost.line_items if i.category == "Storage - Block")
        assert storage.quantity == pytest.approx(0.47 * 1024)
        expected = 144.54 + 373.76 + 60.59 + 0.47 * 1024 * 0.13 + 21.60
        assert report.cost.total_monthly == pytest.approx(expected)

    def test_to_dict(self, report):
        d = report.to_dict()
        assert d["profiles"]["totals"]["total_vsis"] == 3
        assert d["profiles"]["by_family"] == {"Balanced": 1, "Memory": 1, "Compute": 1}
        assert "roks_worker_sizing" not in d


def test_unknown_mode(sample_data):
    from rvtools2ibm.pipeline.assessment import assess
    with pytest.raises(ValueError):
        assess(sample_data, "classic")
