"""Tests for the rvtools2ibm command line interface.

Covers:
  - validate / inventory on good and bad files
  - assess output, JSON export and --fail-on-blockers exit code
  - preflight, waves, profiles (with overrides) and cost
  - export to every format
"""

import io
import json
import zipfile

import pytest
import yaml
from click.testing import CliRunner


@pytest.fixture
def runner(monkeypatch):
    from rich.console import Console
    from rvtools2ibm import cli
    # Wide enough that table cells never wrap
    monkeypatch.setattr(cli, "console", Console(width=200))
    return CliRunner()


def _invoke(runner, *args):
    from rvtools2ibm.cli import main
    return runner.invoke(main, [str(a) for a in args])


# ═══════════════════════════════════════════════════════════════════
#  validate / inventory
# ═══════════════════════════════════════════════════════════════════

class TestValidate:
    def test_valid_file(self, runner, rvtools_file):
        result = _invoke(runner, "validate", rvtools_file)
        assert result.exit_code == 0, result.output
        assert "5 VMs" in result.output

    def test_missing_file(self, runner, tmp_path):
        result = _invoke(runner, "validate", tmp_path / "missing.xlsx")
        assert result.exit_code == 1

    def test_broken_file(self, runner, tmp_path):
        path = tmp_path / "broken.xlsx"
        path.write_bytes(b"not a workbook")
        result = _invoke(runner, "validate", path)
        assert result.exit_code == 1
        assert "Failed to parse file" in result.output

    def test_version(self, runner):
        from rvtools2ibm import __version__
        result = _invoke(runner, "--version")
        assert result.exit_code == 0
        assert __version__ in result.output


class TestInventory:
    def test_table(self, runner, rvtools_file):
        result = _invoke(runner, "inventory", rvtools_file)
        assert result.exit_code == 0, result.output
        assert "Templates" in result.output

    def test_json_file(self, runner, rvtools_file, tmp_path):
        out = tmp_path / "inventory.json"
        result = _invoke(runner, "inventory", rvtools_file, "-o", out)
        assert result.exit_code == 0, result.output

        payload = json.loads(out.read_text())
        assert payload["environment"] == "lab"
        assert payload["total_vms"] == 5
        assert payload["hosts"] == 3


# ═══════════════════════════════════════════════════════════════════
#  assess
# ═══════════════════════════════════════════════════════════════════

class TestAssess:
    def test_table(self, runner, rvtools_file):
        result = _invoke(runner, "assess", rvtools_file, "--mode", "roks")
        assert result.exit_code == 0, result.output
        assert "Wave 1: Pilot" in result.output

    def test_json_file(self, runner, rvtools_file, tmp_path):
        out = tmp_path / "assessment.json"
        result = _invoke(runner, "assess", rvtools_file, "--mode", "vsi", "-o", out)
        assert result.exit_code == 0, result.output

        payload = json.loads(out.read_text())
        assert payload["mode"] == "vsi"
        assert payload["scope"]["in_scope"] == 3
        assert payload["profiles"]["totals"]["total_vsis"] == 3

    def test_fail_on_blockers(self, runner, rvtools_file):
        result = _invoke(runner, "assess", rvtools_file, "--mode", "roks", "--fail-on-blockers")
        assert result.exit_code == 1
        assert "4 blocker(s) found" in result.output

    def test_config_file(self, runner, rvtools_file, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text("assessment:\n  mode: roks\nexclusion:\n  exclude: [Legacy_App]\n")
        out = tmp_path / "assessment.json"
        result = _invoke(runner, "assess", rvtools_file, "--config", config, "-o", out)
        assert result.exit_code == 0, result.output

        payload = json.loads(out.read_text())
        assert payload["mode"] == "roks"
        assert payload["scope"]["in_scope"] == 2

    def test_bad_config(self, runner, rvtools_file, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text("assessment:\n  mode: classic\n")
        result = _invoke(runner, "assess", rvtools_file, "--config", config)
        assert result.exit_code == 1
        assert "Error loading config" in result.output


# ═══════════════════════════════════════════════════════════════════
#  preflight / waves / profiles / cost
# ═══════════════════════════════════════════════════════════════════

class TestPlanningCommands:
    def test_preflight(self, runner, rvtools_file):
        result = _invoke(runner, "preflight", rvtools_file, "--mode", "roks")
        assert result.exit_code == 0, result.output
        assert "2/3 VMs without blockers" in result.output

    def test_waves_by_cluster(self, runner, rvtools_file):
        result = _invoke(runner, "waves", rvtools_file, "--mode", "roks", "--group-by", "cluster")
        assert result.exit_code == 0, result.output
        assert "prod-cluster" in result.output
        assert "dev-cluster" in result.output

    def test_profiles_with_override(self, runner, rvtools_file):
        result = _invoke(runner, "profiles", rvtools_file, "--override", "web-01=bx2-8x32")
        assert result.exit_code == 0, result.output
        assert "bx2-8x32" in result.output
        assert "3 VSIs" in result.output

    def test_bad_override(self, runner, rvtools_file):
        result = _invoke(runner, "profiles", rvtools_file, "--override", "web-01")
        assert result.exit_code == 2
        assert "VM=PROFILE" in result.output

    def test_cost(self, runner, rvtools_file):
        result = _invoke(runner, "cost", rvtools_file, "--mode", "roks", "--discount", "reserved1Year")
        assert result.exit_code == 0, result.output
        assert "Discount" in result.output
        assert "1-Year Reserved discount applied" in result.output


# ═══════════════════════════════════════════════════════════════════
#  export
# ═══════════════════════════════════════════════════════════════════

class TestExport:
    @pytest.mark.parametrize("fmt,suffix,magic", [
        ("xlsx", ".xlsx", b"PK"),
        ("pdf", ".pdf", b"%PDF"),
        ("docx", ".docx", b"PK"),
    ])
    def test_reports(self, runner, rvtools_file, tmp_path, fmt, suffix, magic):
        out = tmp_path / f"report{suffix}"
        result = _invoke(runner, "export", rvtools_file, "--format", fmt, "-o", out)
        assert result.exit_code == 0, result.output
        assert out.read_bytes().startswith(magic)

    def test_mtv_bundle(self, runner, rvtools_file, tmp_path):
        out = tmp_path / "mtv.zip"
        result = _invoke(runner, "export", rvtools_file, "--format", "mtv", "-o", out)
        assert result.exit_code == 0, result.output

        with zipfile.ZipFile(io.BytesIO(out.read_bytes())) as zf:
            names = zf.namelist()
            network_map = zf.read("network-map.yaml").decode()
            plan = yaml.safe_load(zf.read("plan-wave-1-pilot.yaml"))

        assert "plan-wave-2-remediation.yaml" in names
        assert plan["metadata"]["name"] == "pilot"
        assert plan["spec"]["preserveStaticIPs"] is False
        # Only networks of in-scope VMs are mapped
        assert "VM-Network-Dev" not in network_map

    def test_format_required(self, runner, rvtools_file, tmp_path):
        result = _invoke(runner, "export", rvtools_file, "-o", tmp_path / "x.pdf")
        assert result.exit_code == 2
