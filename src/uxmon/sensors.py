"""CPU temperature from sysfs thermal zones and hwmon sensors."""

from pathlib import Path

import structlog

log = structlog.get_logger()

SYS_ROOT = Path("/sys")

# Probed in order before scanning thermal zone types
_FIXED_SENSORS = (
    "class/thermal/thermal_zone0/temp",
    "class/hwmon/hwmon0/temp1_input",
    "class/hwmon/hwmon1/temp1_input",
    "class/hwmon/hwmon2/temp1_input",
)
_CPU_ZONE_HINTS = ("cpu", "x86", "pkg", "soc", "core")
_MAX_ZONES = 128


def detect_sensor(sys_root: Path = SYS_ROOT) -> Path | None:
    """Find a readable temperature file reporting millidegrees Celsius.

    Tries well-known paths first, then the first thermal zone whose type
    names a CPU package.
    """
    for rel in _FIXED_SENSORS:
        path = sys_root / rel
        if path.is_file():
            return path

    for i in range(_MAX_ZONES):
        zone = sys_root / "class" / "thermal" / f"thermal_zone{i}"
        try:
            zone_type = (zone / "type").read_text().strip().lower()
        except OSError:
            continue
        if any(hint in zone_type for hint in _CPU_ZONE_HINTS):
            return zone / "temp"
    return None


class ThermalReader:
    """Smoothed CPU temperature.

    A failed read returns the last smoothed value (0.0 before any reading).
    """

    def __init__(
        self,
        sys_root: Path = SYS_ROOT,
        decay: float = 0.7,
        sensor: Path | None = None,
    ) -> None:
        self.decay = decay
        self.sensor = sensor if sensor is not None else detect_sensor(sys_root)
        self._smoothed = 0.0
        if self.sensor is None:
            log.debug("thermal_sensor_not_found", sys_root=str(sys_root))

    @property
    def available(self) -> bool:
        """True when a sensor path was found."""
        return self.sensor is not None

    @property
    def celsius(self) -> float:
        """Last smoothed temperature."""
        return self._smoothed

    def read(self) -> float:
        """Read the sensor and return the smoothed temperature in Celsius."""
        if self.sensor is None:
            return self._smoothed
        try:
            raw = float(self.sensor.read_text().split()[0])
        except (OSError, ValueError, IndexError):
            return self._smoothed
        value = raw / 1000.0
        if self._smoothed == 0.0:
            self._smoothed = value
        else:
            self._smoothed = self.decay * self._smoothed + (1.0 - self.decay) * value
        return self._smoothed
