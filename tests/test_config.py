"""
Tests for the Configuration Manager
====================================
"""

import logging

import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from utils.config import Config

REPO_CONFIG = Path(__file__).parent.parent / "config" / "config.yaml"


@pytest.fixture(autouse=True)
def fresh_config():
    Config.reset()
    yield
    Config.reset()


class TestConfig:
    """Test suite for YAML config loading."""

    def test_singleton(self):
        assert Config() is Config()

    def test_repo_config_is_valid(self):
        config = Config().load(str(REPO_CONFIG))

        assert config.validate() == []
        assert config.get("transport.port") == 8081
        assert config.get("tracking.grace_frames") == 5
        assert config.get("actuator.click_hold_ms") == 50

    def test_missing_file_uses_defaults(self, tmp_path):
        config = Config().load(str(tmp_path / "absent.yaml"))

        assert config.camera == {}
        assert config.get("transport.port", 8081) == 8081

    def test_dot_path_lookup(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("transport:\n  host: 0.0.0.0\n  port: 9001\n")

        config = Config().load(str(path))

        assert config.get("transport.host") == "0.0.0.0"
        assert config.get("transport.missing", "x") == "x"
        assert config.get("nope.deeper") is None
        assert config.transport == {"host": "0.0.0.0", "port": 9001}

    def test_overrides_merge(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("logging:\n  level: INFO\n  file: app.log\n")

        config = Config().load(str(path), overrides={"logging": {"level": "DEBUG"}})

        assert config.logging == {"level": "DEBUG", "file": "app.log"}

    def test_wrong_types_warn(self, tmp_path, caplog):
        path = tmp_path / "config.yaml"
        path.write_text(
            "transport:\n  port: '8081'\n"
            "camera:\n  flip_horizontal: true\n  device_id: true\n"
            "tracking:\n  tick_interval: 1\n"
        )

        with caplog.at_level(logging.WARNING):
            config = Config().load(str(path))

        warnings = config.validate()
        assert any("transport.port" in w for w in warnings)
        assert any("camera.device_id" in w for w in warnings)
        assert not any("tick_interval" in w for w in warnings)
        assert not any("flip_horizontal" in w for w in warnings)
        assert "Config validation" in caplog.text

    def test_out_of_range_values_warn(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "transport:\n  port: 70000\n"
            "actuator:\n  control_method: telepathy\n  click_hold_ms: -5\n"
            "mediapipe:\n  min_detection_confidence: 1.5\n"
            "logging:\n  level: debug\n"
        )

        warnings = Config().load(str(path)).validate()

        assert "transport.port: value 70000 out of range" in warnings
        assert any("actuator.control_method" in w for w in warnings)
        assert any("actuator.click_hold_ms" in w for w in warnings)
        assert any("min_detection_confidence" in w for w in warnings)
        assert not any("logging.level" in w for w in warnings)

    def test_unknown_keys_warn(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("tracking:\n  grace_frame: 5\n")

        assert Config().load(str(path)).validate() == ["tracking: unknown keys grace_frame"]

    def test_records_path(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("{}\n")

        assert Config().load(str(path)).path == str(path)

    def test_malformed_section(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("camera: 5\n")

        config = Config().load(str(path))

        assert config.camera == {}
        assert config.validate() == ["Section 'camera' should be a dict, got int"]

    def test_non_mapping_root(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")

        assert Config().load(str(path)).tracking == {}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
