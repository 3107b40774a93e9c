"""Tests for the assessment pipeline stages.

Covers:
  - Auto-exclusion rules and manual include/exclude
  - Guest OS compatibility (VSI and ROKS tables)
  - Complexity scoring and readiness
  - Pre-flight checks and aggregate counts
  - Remediation items and severity totals
  - Wave planning (complexity and network grouping)
"""

import pytest
import yaml


def _vm(name="app-01", **kwargs):
    from rvtools2ibm.rvtools.models import VirtualMachine
    defaults = {
        "power_state": "poweredOn",
        "cpus": 2,
        "memory_mib": 4096,
        "hardware_version": "vmx-19",
        "guest_os": "Red Hat Enterprise Linux 9 (64-bit)",
    }
    defaults.update(kwargs)
    return VirtualMachine(vm_name=name, **defaults)


# ═══════════════════════════════════════════════════════════════════
#  Exclusion
# ═══════════════════════════════════════════════════════════════════

class TestExclusion:
    def test_template_and_power_state(self):
        from rvtools2ibm.pipeline.exclusion import get_auto_exclusion
        result = get_auto_exclusion(_vm("tpl", template=True, power_state="poweredOff"))
        assert result.is_auto_excluded
        assert result.reasons == ["template", "powered-off"]
        assert result.labels == ["Template", "Powered Off"]

    def test_running_vm_not_excluded(self):
        from rvtools2ibm.pipeline.exclusion import get_auto_exclusion
        assert not get_auto_exclusion(_vm("web-01")).is_auto_excluded

    @pytest.mark.parametrize("name", [
        "vCLS-1f2e", "vcenter01", "site-a-vcsa", "NSX-Manager-01", "hcx-ix-01", "vrops-node", "sddc-manager",
    ])
    def test_vmware_infrastructure_names(self, name):
        from rvtools2ibm.pipeline.exclusion import is_vmware_infrastructure_vm
        assert is_vmware_infrastructure_vm(name)

    def test_exclude_pattern_vetoes_match(self):
        from rvtools2ibm.pipeline.exclusion import is_vmware_infrastructure_vm
        assert is_vmware_infrastructure_vm("avi-controller-01")
        assert not is_vmware_infrastructure_vm("avi-demo-avi-controller-01")

    def test_other_labels(self):
        from rvtools2ibm.pipeline.exclusion import get_auto_exclusion
        assert get_auto_exclusion(_vm("ADNSvcs01")).labels == ["Windows AD/DNS"]
        assert get_auto_exclusion(_vm("cust-edge-02")).labels == ["Network Edge Appliance"]

    def test_map_keyed_by_identifier(self):
        from rvtools2ibm.pipeline.exclusion import get_auto_exclusion_map
        vms = [_vm("app", uuid="u1"), _vm("app", uuid="u2", power_state="poweredOff")]
        result = get_auto_exclusion_map(vms)
        assert not result["app::u1"].is_auto_excluded
        assert result["app::u2"].is_auto_excluded

    def test_filter_with_manual_overrides(self):
        from rvtools2ibm.pipeline.exclusion import filter_vms, get_auto_exclusion_map
        vms = [_vm("web-01"), _vm("db-01"), _vm("old", power_state="poweredOff")]
        exclusions = get_auto_exclusion_map(vms)

        assert [vm.vm_name for vm in filter_vms(vms, exclusions)] == ["web-01", "db-01"]
        kept = filter_vms(vms, exclusions, include_names=["OLD"], exclude_names=["db-01"])
        assert [vm.vm_name for vm in kept] == ["web-01", "old"]

    def test_rules_from_yaml(self, tmp_path):
        from rvtools2ibm.pipeline.exclusion import get_auto_exclusion, get_rules
        path = tmp_path / "rules.yaml"
        path.write_text(yaml.safe_dump({
            "fieldRules": [{"id": "big", "label": "Huge", "field": "cpus", "value": 64}],
            "namePatterns": [{"id": "lab", "label": "Lab", "match": "regex", "patterns": [r"^lab-\d+$"]}],
        }))
        rules = get_rules(path)

        assert get_auto_exclusion(_vm("lab-7"), rules).reasons == ["lab"]
        assert get_auto_exclusion(_vm("x", cpus=64), rules).labels == ["Huge"]
        # Power state is no longer a rule
        assert not get_auto_exclusion(_vm("x", power_state="poweredOff"), rules).is_auto_excluded

    def test_invalid_match_type(self):
        from rvtools2ibm.pipeline.exclusion import ExclusionRules
        with pytest.raises(ValueError):
            ExclusionRules.from_dict({"name_patterns": [
                {"id": "x", "label": "X", "match": "glob", "patterns": ["*"]},
            ]})


# ═══════════════════════════════════════════════════════════════════
#  OS compatibility
# ═══════════════════════════════════════════════════════════════════

class TestOSCompatibility:
    @pytest.mark.parametrize("guest_os,status", [
        ("Red Hat Enterprise Linux 8 (64-bit)", "supported"),
        ("rhel8_64Guest", "supported"),
        ("SUSE Linux Enterprise 15 (64-bit)", "supported"),
        ("CentOS 7 (64-bit)", "community"),
        ("Microsoft Windows Server 2022 (64-bit)", "supported"),
        ("Microsoft Windows Server 2008 R2 (64-bit)", "unsupported"),
        ("", "unsupported"),
    ])
    def test_vsi(self, guest_os, status):
        from rvtools2ibm.pipeline.os_compat import get_vsi_os_compatibility
        assert get_vsi_os_compatibility(guest_os).status == status

    @pytest.mark.parametrize("guest_os,entry_id,status", [
        ("Red Hat Enterprise Linux 9 (64-bit)", "rhel9", "fully-supported"),
        ("Red Hat Enterprise Linux 7 (64-bit)", "rhel7", "supported-with-caveats"),
        ("Microsoft Windows Server 2019 (64-bit)", "windows-server-2019", "fully-supported"),
        ("Microsoft Windows Server 2008 R2 (64-bit)", "windows-server-legacy", "unsupported"),
        ("CentOS Stream 9", "centos-stream", "supported-with-caveats"),
        ("FreeBSD 13 (64-bit)", "unix", "unsupported"),
        ("Something Else", "unknown", "unsupported"),
    ])
    def test_roks(self, guest_os, entry_id, status):
        from rvtools2ibm.pipeline.os_compat import get_roks_os_compatibility
        entry = get_roks_os_compatibility(guest_os)
        assert entry.id == entry_id
        assert entry.compatibility_status == status

    def test_normalized_status(self):
        from rvtools2ibm.pipeline.os_compat import get_normalized_os_status
        assert get_normalized_os_status("CentOS 7 (64-bit)", "vsi") == "partial"
        assert get_normalized_os_status("Ubuntu Linux (64-bit)", "roks") == "partial"
        assert get_normalized_os_status("Red Hat Enterprise Linux 9", "roks") == "supported"

    def test_is_os_blocker(self):
        from rvtools2ibm.pipeline.os_compat import is_os_blocker
        assert is_os_blocker("Microsoft Windows Server 2003", "roks")
        assert not is_os_blocker("Ubuntu Linux (64-bit)", "vsi")

    def test_unknown_mode(self):
        from rvtools2ibm.pipeline.os_compat import get_os_compatibility
        with pytest.raises(ValueError):
            get_os_compatibility("Ubuntu", "classic")

    def test_count_by_status(self, sample_data):
        from rvtools2ibm.pipeline.os_compat import count_by_os_status
        vms = [vm for vm in sample_data.vms if vm.vm_name in ("web-01", "db-01", "Legacy_App")]
        assert count_by_os_status(vms, "roks") == {"fully-supported": 2, "unsupported": 1}

    def test_results_per_vm(self, sample_data):
        from rvtools2ibm.pipeline.os_compat import get_os_compatibility_results
        results = {r.vm_name: r for r in get_os_compatibility_results(sample_data.active_vms[:3], "roks")}

        assert results["web-01"].normalized_status == "supported"
        assert results["Legacy_App"].normalized_status == "unsupported"
        assert results["Legacy_App"].guest_os == "Microsoft Windows Server 2008 R2 (64-bit)"


# ═══════════════════════════════════════════════════════════════════
#  Complexity
# ═══════════════════════════════════════════════════════════════════

class TestComplexity:
    def test_categories(self):
        from rvtools2ibm.pipeline.complexity import get_complexity_category
        assert get_complexity_category(25) == "Simple"
        assert get_complexity_category(26) == "Moderate"
        assert get_complexity_category(75) == "Complex"
        assert get_complexity_category(76) == "Blocker"

    def test_roks_scores(self, sample_data):
        from rvtools2ibm.pipeline.complexity import calculate_complexity_scores
        vms = sample_data.active_vms[:3]
        scores = {s.vm_name: s for s in calculate_complexity_scores(
            vms, sample_data.disks, sample_data.networks, "roks")}

        assert scores["web-01"].score == 0
        assert scores["web-01"].factors == "No complexity factors"
        assert scores["db-01"].score == 10          # HW v13
        assert scores["Legacy_App"].score == 55     # OS (+30) and HW v8 (+25)
        assert scores["Legacy_App"].category == "Complex"
        assert scores["Legacy_App"].hw_version == 8

    def test_top_complex_vms(self, sample_data):
        from rvtools2ibm.pipeline.complexity import calculate_complexity_scores, get_top_complex_vms
        scores = calculate_complexity_scores(
            sample_data.active_vms[:3], sample_data.disks, sample_data.networks, "roks")
        assert get_top_complex_vms(scores, count=2) == [
            {"label": "Legacy_App", "value": 55},
            {"label": "db-01", "value": 10},
        ]

    def test_vsi_scores(self, sample_data):
        from rvtools2ibm.pipeline.complexity import calculate_complexity_scores
        scores = {s.vm_name: s.score for s in calculate_complexity_scores(
            sample_data.active_vms[:3], sample_data.disks, sample_data.networks, "vsi")}
        assert scores == {"web-01": 0, "db-01": 0, "Legacy_App": 40}

    def test_vsi_size_factors_capped(self):
        from rvtools2ibm.pipeline.complexity import calculate_vsi_complexity_score
        from rvtools2ibm.rvtools.models import VDiskInfo
        vm = _vm("huge", cpus=96, memory_mib=2048 * 1024, guest_os="Solaris 11")
        disks = [VDiskInfo("huge", capacity_mib=3000 * 1024, disk_key=2000 + i) for i in range(6)]
        score = calculate_vsi_complexity_score(vm, disks, nic_count=4)
        assert score.score == 100
        assert "6 disks (+20)" in score.factors
        assert "4 NICs (+25)" in score.factors

    def test_summary_and_chart(self):
        from rvtools2ibm.pipeline.complexity import (
            ComplexityScore, get_assessment_summary, get_complexity_chart_data, get_complexity_distribution,
        )
        scores = [
            ComplexityScore(f"vm{i}", s, "", cat, "", 2, 4, 1, 1)
            for i, (s, cat) in enumerate([(10, "Simple"), (20, "Simple"), (60, "Complex")])
        ]
        summary = get_assessment_summary(scores)
        assert (summary.simple_count, summary.complex_count, summary.average_score) == (2, 1, 30)
        chart = get_complexity_chart_data(get_complexity_distribution(scores))
        assert chart == [{"label": "Simple (0-25)", "value": 2}, {"label": "Complex (51-75)", "value": 1}]

    def test_readiness_score(self):
        from rvtools2ibm.pipeline.complexity import calculate_readiness_score
        assert calculate_readiness_score(0, 0, 0, 10) == 100
        assert calculate_readiness_score(1, 2, 1, 10) == 87     # 100 - 5 - 6 - 2
        assert calculate_readiness_score(50, 50, 50, 10) == 0
        assert calculate_readiness_score(0, 0, 0, 0) == 100


# ═══════════════════════════════════════════════════════════════════
#  Pre-flight
# ═══════════════════════════════════════════════════════════════════

class TestPreflightChecks:
    def test_checks_per_mode(self):
        from rvtools2ibm.pipeline.preflight import get_checks_for_mode
        roks = {c.id for c in get_checks_for_mode("roks")}
        vsi = {c.id for c in get_checks_for_mode("vsi")}
        assert "cbt-enabled" in roks and "cbt-enabled" not in vsi
        assert "boot-disk-size" in vsi and "boot-disk-size" not in roks
        assert "rdm-disks" in roks & vsi

    def test_rfc1123(self):
        from rvtools2ibm.pipeline.preflight import is_rfc1123_compliant
        assert is_rfc1123_compliant("web-01")
        assert not is_rfc1123_compliant("Legacy_App")
        assert not is_rfc1123_compliant("-leading")
        assert not is_rfc1123_compliant("a" * 64)

    def test_run_roks(self, sample_data):
        from rvtools2ibm.pipeline.preflight import run_preflight_checks
        results = {r.vm_name: r for r in run_preflight_checks(sample_data, "roks")}

        # Powered-off VMs and templates are skipped
        assert set(results) == {"web-01", "db-01", "Legacy_App", "vCLS-1234"}

        legacy = results["Legacy_App"]
        assert not legacy.passed
        assert legacy.checks["tools-installed"].status == "fail"
        assert legacy.checks["rdm-disks"].status == "fail"
        assert legacy.checks["old-snapshots"].status == "fail"
        assert legacy.checks["rfc1123-name"].message == "uppercase, invalid chars"
        assert legacy.checks["hostname-valid"].status == "fail"

        db = results["db-01"]
        assert db.passed
        assert db.checks["cd-connected"].status == "fail"
        assert db.checks["cpu-hotplug"].status == "fail"
        assert db.checks["hw-version"].status == "pass"

        web = results["web-01"]
        assert web.blocker_count == 0
        assert web.checks["mem-hotplug"].status == "fail"
        assert web.checks["old-snapshots"].value == "1 snapshots"

    def test_run_vsi(self, sample_data):
        from rvtools2ibm.pipeline.preflight import run_preflight_checks
        results = {r.vm_name: r for r in run_preflight_checks(sample_data, "vsi", sample_data.vms[:3])}
        assert results["web-01"].checks["boot-disk-size"].value == "100 GB"
        assert results["Legacy_App"].checks["vsi-os"].status == "fail"
        assert results["Legacy_App"].checks["vsi-tools"].status == "fail"
        assert "cbt-enabled" not in results["web-01"].checks

    def test_unknown_check(self, sample_data):
        from rvtools2ibm.pipeline.preflight import CheckContext, evaluate_check
        result = evaluate_check("does-not-exist", sample_data.vms[0], CheckContext())
        assert result.status == "na"


class TestPreflightCounts:
    def _population(self, data):
        return [vm for vm in data.vms if vm.vm_name in ("web-01", "db-01", "Legacy_App", "test-off")]

    def test_roks_counts(self, sample_data):
        from rvtools2ibm.pipeline.preflight import calculate_preflight_counts
        counts = calculate_preflight_counts(sample_data, "roks", self._population(sample_data))

        assert counts.vms_without_tools == ["Legacy_App"]
        assert counts.vms_with_tools_not_running == []
        assert counts.vms_with_old_snapshots == ["Legacy_App"]
        assert counts.vms_with_rdm == ["Legacy_App"]
        assert counts.vms_with_independent_disks == ["test-off"]
        assert counts.vms_with_cd_connected == ["db-01"]
        assert counts.vms_with_legacy_nic == ["Legacy_App"]
        assert counts.vms_without_cbt == ["db-01", "Legacy_App"]
        assert counts.vms_with_invalid_names == ["Legacy_App"]
        assert counts.vms_with_cpu_hot_plug == ["db-01"]
        assert counts.vms_with_memory_hot_plug == ["web-01"]
        assert counts.vms_with_invalid_hostname == ["Legacy_App"]
        assert counts.vms_static_ip_powered_off == ["test-off"]
        assert vars(counts.hw_version_counts) == {"recommended": 1, "supported": 1, "outdated": 1}

    def test_vsi_counts(self, sample_data):
        from rvtools2ibm.pipeline.preflight import calculate_preflight_counts
        counts = calculate_preflight_counts(sample_data, "vsi", self._population(sample_data))
        assert counts.vms_with_unsupported_os == ["Legacy_App"]
        assert counts.vms_with_large_boot_disk == []
        # ROKS-only lists stay empty
        assert counts.vms_without_cbt == []

    def test_to_dict(self, sample_data):
        from rvtools2ibm.pipeline.preflight import calculate_preflight_counts
        d = calculate_preflight_counts(sample_data, "roks", self._population(sample_data)).to_dict()
        assert d["vms_without_cbt"] == 2
        assert d["hw_version_counts"]["outdated"] == 1


# ═══════════════════════════════════════════════════════════════════
#  Remediation
# ═══════════════════════════════════════════════════════════════════

class TestRemediation:
    def test_roks_items(self):
        from rvtools2ibm.pipeline.preflight import PreflightCheckCounts
        from rvtools2ibm.pipeline.remediation import count_remediation_severity, generate_remediation_items
        counts = PreflightCheckCounts(
            vms_without_tools=["a"],
            vms_with_rdm=["a", "b"],
            vms_without_cbt=["c"],
            vms_with_legacy_nic=["d"],
        )
        items = generate_remediation_items(counts, "roks")

        assert [i.id for i in items] == ["tools-installed", "no-rdm", "network-adapter", "cbt-enabled"]
        assert items[1].affected_count == 2
        assert count_remediation_severity(items) == {"blockers": 3, "warnings": 1, "info": 1}

    def test_vsi_large_memory_split(self):
        from rvtools2ibm.pipeline.preflight import PreflightCheckCounts
        from rvtools2ibm.pipeline.remediation import generate_remediation_items
        counts = PreflightCheckCounts(
            vms_with_large_memory=["big", "huge"],
            vms_with_very_large_memory=["huge"],
        )
        items = {i.id: i for i in generate_remediation_items(counts, "vsi")}
        assert items["large-memory"].severity == "blocker"
        assert items["large-memory"].affected_vms == ["huge"]
        assert items["large-memory-warning"].affected_vms == ["big"]

    def test_no_issues_no_items(self):
        from rvtools2ibm.pipeline.preflight import PreflightCheckCounts
        from rvtools2ibm.pipeline.remediation import generate_remediation_items
        assert generate_remediation_items(PreflightCheckCounts(), "roks") == []

    def test_to_dict(self):
        from rvtools2ibm.pipeline.preflight import PreflightCheckCounts
        from rvtools2ibm.pipeline.remediation import generate_remediation_items
        item = generate_remediation_items(PreflightCheckCounts(vms_with_rdm=["x"]), "roks")[0]
        d = item.to_dict()
        assert d["affected_count"] == 1
        assert d["documentation_link"].startswith("https://")


# ═══════════════════════════════════════════════════════════════════
#  Waves
# ═══════════════════════════════════════════════════════════════════

class TestWaves:
    def _wave_data(self, data, mode):
        from rvtools2ibm.pipeline.complexity import calculate_complexity_scores
        from rvtools2ibm.pipeline.waves import build_vm_wave_data
        vms = data.active_vms[:3]
        scores = calculate_complexity_scores(vms, data.disks, data.networks, mode)
        return build_vm_wave_data(vms, scores, data.disks, data.snapshots, data.tools, data.networks, mode)

    def test_vm_wave_data(self, sample_data):
        wave_data = {w.vm_name: w for w in self._wave_data(sample_data, "roks")}
        web = wave_data["web-01"]
        assert web.network_name == "VM-Network-Prod"
        assert web.subnet == "10.0.1.0/24"
        assert web.storage_gib == 50
        assert web.uuid == "4201aaaa-0001"
        assert wave_data["Legacy_App"].has_blocker

    def test_complexity_waves(self, sample_data):
        from rvtools2ibm.pipeline.waves import create_complexity_waves
        waves = create_complexity_waves(self._wave_data(sample_data, "roks"), "roks")
        assert [w.name for w in waves] == ["Wave 1: Pilot", "Wave 5: Remediation"]
        assert [vm.vm_name for vm in waves[0].vms] == ["web-01", "db-01"]
        assert waves[1].has_blockers
        assert waves[0].vcpus == 12
        assert waves[0].memory_gib == 80

    def test_port_group_waves(self, sample_data):
        from rvtools2ibm.pipeline.waves import create_network_waves
        waves = create_network_waves(self._wave_data(sample_data, "roks"), "portGroup")
        assert [w.name for w in waves] == ["VM-Network-DB", "VM-Network-Prod"]
        assert waves[1].has_blockers
        assert waves[1].description == "IPs: 10.0.1.10, 10.0.1.30"

    def test_cluster_waves(self, sample_data):
        from rvtools2ibm.pipeline.waves import create_network_waves
        waves = create_network_waves(self._wave_data(sample_data, "roks"), "cluster")
        assert [w.name for w in waves] == ["prod-cluster", "dev-cluster"]
        assert waves[0].description == "Port Group: VM-Network-Prod, VM-Network-DB"

    def test_bad_grouping(self, sample_data):
        from rvtools2ibm.pipeline.waves import create_network_waves
        with pytest.raises(ValueError):
            create_network_waves(self._wave_data(sample_data, "roks"), "host")

    def test_chart_and_resources(self, sample_data):
        from rvtools2ibm.pipeline.waves import create_complexity_waves, get_wave_chart_data, get_wave_resources
        waves = create_complexity_waves(self._wave_data(sample_data, "vsi"), "vsi")
        assert get_wave_chart_data(waves, network_mode=False) == [
            {"label": "Wave 1", "value": 2}, {"label": "Wave 2", "value": 1},
        ]
        resources = get_wave_resources(waves)
        assert "vms" not in resources[0]
        assert resources[0]["vm_count"] == 2
