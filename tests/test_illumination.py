"""Tests for the PCA9685 illumination LED."""

from __future__ import annotations

import pytest

from hardware.illumination import IlluminationSettings, Pca9685Illumination, create_illumination


class _FakeBus:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.writes: list[tuple[int, int, int]] = []

    def write_byte_data(self, address: int, reg: int, value: int) -> None:
        if self.fail and reg != 0x00:
            raise OSError("I2C write failed")
        self.writes.append((address, reg, value))


def test_enable_sets_full_on_bit_for_channel() -> None:
    bus = _FakeBus()
    light = Pca9685Illumination(IlluminationSettings(channel=2), bus=bus)

    assert light.set_enabled(True) is True

    base = 0x06 + 4 * 2
    assert bus.writes[0] == (0x40, 0x00, 0x00)
    assert bus.writes[1:] == [
        (0x40, base, 0x00),
        (0x40, base + 1, 0x10),
        (0x40, base + 2, 0x00),
        (0x40, base + 3, 0x00),
    ]


def test_disable_sets_full_off_bit() -> None:
    bus = _FakeBus()
    light = Pca9685Illumination(IlluminationSettings(channel=0), bus=bus)

    light.set_enabled(False)

    assert bus.writes[-1] == (0x40, 0x06 + 3, 0x10)
    assert bus.writes[-3] == (0x40, 0x06 + 1, 0x00)


def test_bus_error_reports_fault() -> None:
    light = Pca9685Illumination(IlluminationSettings(), bus=_FakeBus(fail=True))

    assert light.set_enabled(True) is False


def test_invalid_channel_is_rejected() -> None:
    with pytest.raises(ValueError):
        Pca9685Illumination(IlluminationSettings(channel=16), bus=_FakeBus())


def test_disabled_settings_create_no_light() -> None:
    assert create_illumination(IlluminationSettings(enabled=False)) is None


def test_settings_from_config() -> None:
    settings = IlluminationSettings.from_config(
        {"illumination": {"enabled": True, "i2c_address": 0x41, "channel": 3}}
    )

    assert settings.enabled is True
    assert settings.i2c_address == 0x41
    assert settings.channel == 3
    assert settings.i2c_bus == 1
