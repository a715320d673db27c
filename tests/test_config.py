"""
Smoke tests for configuration loading and validation.
"""

import pytest

from main import load_config, validate_config


class TestValidateConfig:
    """Tests for validate_config function."""

    def test_valid_config_passes(self, valid_config):
        is_valid, error = validate_config(valid_config)

        assert is_valid is True
        assert error is None

    @pytest.mark.parametrize("section", ["camera", "detector", "alerts", "log_path", "log_level"])
    def test_missing_section(self, valid_config, section):
        del valid_config[section]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert section in error

    def test_invalid_device_id_type(self, valid_config):
        valid_config["camera"]["device_id"] = [1, 2, 3]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "device_id" in error

    def test_negative_device_id(self, valid_config):
        valid_config["camera"]["device_id"] = -1

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "non-negative" in error

    def test_rtsp_device_id_allowed(self, valid_config):
        valid_config["camera"]["device_id"] = "rtsp://10.0.0.2/stream"

        assert validate_config(valid_config) == (True, None)

    def test_missing_model(self, valid_config):
        valid_config["detector"]["model"] = ""

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "detector.model" in error

    def test_threshold_out_of_range(self, valid_config):
        valid_config["detector"]["conf_threshold"] = 1.5

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "conf_threshold" in error

    def test_class_names_must_be_strings(self, valid_config):
        valid_config["detector"]["class_names"] = ["person", 3]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "class_names" in error

    def test_non_positive_period(self, valid_config):
        valid_config["sampler"]["period_ms"] = 0

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "period_ms" in error

    def test_unknown_condition_kind(self, valid_config):
        valid_config["alerts"]["conditions"][0]["kind"] = "absent"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "kind" in error

    def test_duplicate_condition_name(self, valid_config):
        valid_config["alerts"]["conditions"][1]["name"] = "more-than-one-person"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "duplicated" in error

    def test_non_positive_cooldown(self, valid_config):
        valid_config["alerts"]["conditions"][0]["cooldown_s"] = 0

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "cooldown_s" in error

    def test_unknown_sink(self, valid_config):
        valid_config["alerts"]["sinks"] = ["pager"]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "sinks" in error

    def test_invalid_log_level(self, valid_config):
        valid_config["log_level"] = "VERBOSE"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "log_level" in error


class TestLoadConfig:
    def test_loads_default(self, temp_config_dir):
        config = load_config(str(temp_config_dir / "config.yaml"))

        assert config["camera"]["resolution"] == [640, 480]
        assert config["alerts"]["sinks"] == ["log"]
        assert validate_config(config) == (True, None)

    def test_local_overrides_are_merged(self, temp_config_dir):
        (temp_config_dir / "config.yaml").write_text("sampler:\n  period_ms: 500\ncamera:\n  fps: 15\n")

        config = load_config(str(temp_config_dir / "config.yaml"))

        assert config["sampler"]["period_ms"] == 500
        assert config["camera"]["fps"] == 15
        # Untouched keys survive the merge
        assert config["camera"]["resolution"] == [640, 480]

    def test_explicit_config_applied_last(self, temp_config_dir):
        (temp_config_dir / "config.yaml").write_text("log_level: WARNING\n")
        explicit = temp_config_dir / "site.yaml"
        explicit.write_text("log_level: DEBUG\n")

        config = load_config(str(explicit))

        assert config["log_level"] == "DEBUG"

    def test_missing_directory_yields_empty(self, tmp_path):
        assert load_config(str(tmp_path / "nope" / "config.yaml")) == {}
