"""Tests for configuration loading and legacy key normalization."""

from __future__ import annotations

from pathlib import Path

from config.controller import ConfigController
from hardware.camera_controller import CameraSettings
from vision.notification_gate import NotificationGateConfig


def _write_config(tmp_path: Path, default: str, override: str | None = None) -> None:
    config_dir = tmp_path / "config"
    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / "default.yaml").write_text(default, encoding="utf-8")
    if override is not None:
        (config_dir / "override.yaml").write_text(override, encoding="utf-8")


def test_config_controller_maps_legacy_notification_keys(tmp_path: Path, monkeypatch) -> None:
    _write_config(
        tmp_path,
        "\n".join(
            [
                "notification_confidence_threshold: 0.8",
                "notification_cooldown_ms: 1500",
                "camera_rotation_degrees: 270",
                "camera_front_facing: true",
            ]
        ),
    )
    monkeypatch.chdir(tmp_path)
    ConfigController._instance = None

    config = ConfigController.get_instance().get_config()

    gate_config = NotificationGateConfig.from_config(config)
    assert gate_config.confidence_threshold == 0.8
    assert gate_config.cooldown_ms == 1500
    camera = CameraSettings.from_config(config)
    assert camera.rotation_degrees == 270
    assert camera.front_facing is True


def test_missing_notification_section_gets_defaults(tmp_path: Path, monkeypatch) -> None:
    _write_config(tmp_path, "logging_level: DEBUG\n")
    monkeypatch.chdir(tmp_path)
    ConfigController._instance = None

    controller = ConfigController.get_instance()

    config = controller.get_config()
    assert config["notification"] == {
        "confidence_threshold": 0.9,
        "cooldown_ms": 2000,
    }
    assert "camera" not in config


def test_override_is_deep_merged(tmp_path: Path, monkeypatch) -> None:
    _write_config(
        tmp_path,
        "notification:\n  confidence_threshold: 0.9\n  cooldown_ms: 2000\n",
        override="notification:\n  cooldown_ms: 500\n",
    )
    monkeypatch.chdir(tmp_path)
    ConfigController._instance = None

    section = ConfigController.get_instance().get_config()["notification"]

    assert section == {"confidence_threshold": 0.9, "cooldown_ms": 500}


def test_save_config_archives_previous_override(tmp_path: Path, monkeypatch) -> None:
    _write_config(tmp_path, "{}\n", override="logging_level: INFO\n")
    monkeypatch.chdir(tmp_path)
    ConfigController._instance = None

    controller = ConfigController.get_instance()
    controller.set_config({"notification": {"cooldown_ms": 1000}})

    assert (tmp_path / "config" / "override_0001.yaml").exists()
    assert "cooldown_ms: 1000" in (tmp_path / "config" / "override.yaml").read_text(encoding="utf-8")
