"""Illumination assist driven through a PCA9685 PWM channel."""

from __future__ import annotations

from dataclasses import dataclass
import importlib
import importlib.util
import threading
from typing import Any, Mapping, Protocol

from core.logging import logger as LOGGER


class IlluminationControl(Protocol):
    """Light source switch; returns False when the request faulted."""

    def set_enabled(self, enabled: bool) -> bool:
        """Switch the light on or off."""


@dataclass(frozen=True)
class IlluminationSettings:
    """Wiring of the illumination LED."""

    enabled: bool = False
    i2c_bus: int = 1
    i2c_address: int = 0x40
    channel: int = 15

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "IlluminationSettings":
        section = config.get("illumination") if isinstance(config, Mapping) else None
        if not isinstance(section, Mapping):
            return cls()
        return cls(
            enabled=bool(section.get("enabled", False)),
            i2c_bus=int(section.get("i2c_bus", 1)),
            i2c_address=int(section.get("i2c_address", 0x40)),
            channel=int(section.get("channel", 15)),
        )


class Pca9685Illumination:
    """LED on one PCA9685 output, switched with the full-on/full-off bits."""

    __MODE1 = 0x00
    __LED0_ON_L = 0x06
    __FULL_BIT = 0x10

    def __init__(self, settings: IlluminationSettings, bus: Any | None = None) -> None:
        if not 0 <= settings.channel <= 15:
            raise ValueError(f"PCA9685 channel must be within 0-15, got {settings.channel}.")
        if bus is None:
            if importlib.util.find_spec("smbus") is None:
                raise RuntimeError("smbus is required for Pca9685Illumination")
            smbus = importlib.import_module("smbus")
            bus = smbus.SMBus(settings.i2c_bus)
        self.bus = bus
        self.address = settings.i2c_address
        self.channel = settings.channel
        self._lock = threading.Lock()
        self.write(self.__MODE1, 0x00)

    def write(self, reg: int, value: int) -> None:
        """Write an 8-bit value to the specified register/address."""

        self.bus.write_byte_data(self.address, reg, value)

    def set_enabled(self, enabled: bool) -> bool:
        base = self.__LED0_ON_L + 4 * self.channel
        on_high = self.__FULL_BIT if enabled else 0x00
        off_high = 0x00 if enabled else self.__FULL_BIT
        try:
            with self._lock:
                self.write(base, 0x00)
                self.write(base + 1, on_high)
                self.write(base + 2, 0x00)
                self.write(base + 3, off_high)
        except OSError as exc:
            LOGGER.error("[ILLUMINATION] I2C write failed on channel %s: %s", self.channel, exc)
            return False
        LOGGER.info("[ILLUMINATION] Channel %s %s", self.channel, "on" if enabled else "off")
        return True


def create_illumination(settings: IlluminationSettings) -> IlluminationControl | None:
    """Build the configured light source, or ``None`` when it is unavailable."""

    if not settings.enabled:
        LOGGER.info("[ILLUMINATION] Disabled in config")
        return None
    try:
        return Pca9685Illumination(settings)
    except Exception as exc:
        LOGGER.warning("[ILLUMINATION] Light source unavailable: %s", exc)
        return None
