"""Tests for rvtools2ibm.config."""

import pytest
import yaml
from pydantic import ValidationError


class TestAppConfig:
    def test_defaults(self):
        from rvtools2ibm.config import AppConfig
        config = AppConfig()
        assert config.assessment.mode == "vsi"
        assert config.pricing.region == "us-south"
        assert config.pricing.use_nvme is True
        assert config.mtv.namespace == "openshift-mtv"
        assert config.report.max_issue_vms == 20
        assert config.exclusion.include == []

    def test_from_yaml(self, tmp_path):
        from rvtools2ibm.config import AppConfig
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({
            "assessment": {"mode": "roks", "include_powered_off": True},
            "pricing": {"region": "eu-de", "discount_type": "reserved1Year"},
            "report": {"client_name": "Acme Corp"},
            "exclusion": {"exclude": ["db-01"]},
        }))
        config = AppConfig.from_yaml(path)

        assert config.assessment.mode == "roks"
        assert config.assessment.include_powered_off
        assert config.pricing.discount_type == "reserved1Year"
        assert config.report.client_name == "Acme Corp"
        assert config.exclusion.exclude == ["db-01"]
        # Sections not in the file keep their defaults
        assert config.mtv.target_namespace == "migrated-vms"

    def test_empty_yaml(self, tmp_path):
        from rvtools2ibm.config import AppConfig
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert AppConfig.from_yaml(path).assessment.mode == "vsi"

    def test_yaml_round_trip(self, tmp_path):
        from rvtools2ibm.config import AppConfig
        path = tmp_path / "config.yaml"
        config = AppConfig.from_env_and_args(pricing={"region": "jp-tok"})
        config.to_yaml(path)
        assert AppConfig.from_yaml(path).pricing.region == "jp-tok"

    def test_invalid_mode(self):
        from rvtools2ibm.config import AppConfig
        with pytest.raises(ValidationError):
            AppConfig(assessment={"mode": "classic"})

    def test_invalid_storage_tier(self):
        from rvtools2ibm.config import PricingSettings
        with pytest.raises(ValidationError):
            PricingSettings(storage_tier="3iops")

    @pytest.mark.parametrize("namespace", ["Openshift-MTV", "-mtv", "mtv_ns", "a" * 64])
    def test_invalid_namespace(self, namespace):
        from rvtools2ibm.config import MTVExportOptions
        with pytest.raises(ValidationError):
            MTVExportOptions(namespace=namespace)


class TestEnvAndArgs:
    def test_env_vars(self, monkeypatch):
        from rvtools2ibm.config import AppConfig
        monkeypatch.setenv("RVTOOLS2IBM_MODE", "roks")
        monkeypatch.setenv("RVTOOLS2IBM_REGION", "ca-tor")
        monkeypatch.setenv("RVTOOLS2IBM_NAMESPACE", "mtv")
        config = AppConfig.from_env_and_args()

        assert config.assessment.mode == "roks"
        assert config.pricing.region == "ca-tor"
        assert config.mtv.namespace == "mtv"

    def test_args_override_env(self, monkeypatch):
        from rvtools2ibm.config import AppConfig
        monkeypatch.setenv("RVTOOLS2IBM_MODE", "roks")
        config = AppConfig.from_env_and_args(assessment={"mode": "vsi"})
        assert config.assessment.mode == "vsi"

    def test_none_values_ignored(self):
        from rvtools2ibm.config import AppConfig
        base = AppConfig(pricing={"region": "eu-gb"})
        config = AppConfig.from_env_and_args(base, pricing={"region": None, "use_nvme": False})
        assert config.pricing.region == "eu-gb"
        assert config.pricing.use_nvme is False

    def test_unknown_section(self):
        from rvtools2ibm.config import AppConfig
        with pytest.raises(ValueError):
            AppConfig.from_env_and_args(billing={"region": "x"})
