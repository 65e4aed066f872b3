"""
Domain: dip-chart calibration and volume interpolation.

A tank's dipstick depth (mm) is converted to a liquid volume (liters) using a
piecewise-linear calibration table of (depth_mm, volume_liters) points.

Rules:
- Below the first calibrated depth the tank is empty (0 liters).
- Above the last calibrated depth the volume saturates at the last table
  volume. Values are never extrapolated beyond the table.
- Between two points the volume is linearly interpolated.
- Results are rounded to one decimal place.

The table is loaded once at startup and never mutated. Validation happens at
load time; interpolation itself assumes a valid table.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Sequence, Tuple, Union

from .errors import ConfigurationError

Number = Union[Decimal, int, float, str]

MM_PER_INCH = Decimal("25.4")
_ONE_PLACE = Decimal("0.1")


def to_decimal(value: Number) -> Decimal:
    """Convert a numeric value to Decimal without float artifacts."""

    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def inches_to_mm(inches: Number) -> Decimal:
    return to_decimal(inches) * MM_PER_INCH


def mm_to_inches(mm: Number) -> Decimal:
    return (to_decimal(mm) / MM_PER_INCH).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def interpolate(depth: Number, depths: Sequence[Decimal], volumes: Sequence[Decimal]) -> Decimal:
    """
    Piecewise-linear interpolation of `depth` over the calibration points.

    Preconditions (checked by DipChartCalibration, not here):
    - len(depths) == len(volumes) >= 2
    - depths strictly increasing
    """

    d = to_decimal(depth)

    if d < depths[0]:
        return Decimal("0.0")
    if d > depths[-1]:
        return volumes[-1].quantize(_ONE_PLACE, rounding=ROUND_HALF_UP)

    for i in range(len(depths) - 1):
        low, high = depths[i], depths[i + 1]
        if low <= d <= high:
            slope = (volumes[i + 1] - volumes[i]) / (high - low)
            volume = volumes[i] + slope * (d - low)
            return volume.quantize(_ONE_PLACE, rounding=ROUND_HALF_UP)

    # Unreachable for a valid table: d lies within [depths[0], depths[-1]].
    return volumes[-1].quantize(_ONE_PLACE, rounding=ROUND_HALF_UP)


@dataclass(frozen=True, slots=True)
class DipChartCalibration:
    """
    Immutable calibration table shared by every tank.

    depths: strictly increasing dip depths in millimetres
    volumes: strictly increasing volumes in liters, parallel to depths
    """

    depths: Tuple[Decimal, ...]
    volumes: Tuple[Decimal, ...]

    def __post_init__(self) -> None:
        if len(self.depths) != len(self.volumes):
            raise ConfigurationError(
                f"Calibration arrays differ in length: {len(self.depths)} depths, {len(self.volumes)} volumes"
            )
        if len(self.depths) < 2:
            raise ConfigurationError("Calibration table needs at least two points")
        for i in range(1, len(self.depths)):
            if self.depths[i] <= self.depths[i - 1]:
                raise ConfigurationError(
                    f"Calibration depths must be strictly increasing (index {i}: "
                    f"{self.depths[i - 1]} -> {self.depths[i]})"
                )
            if self.volumes[i] <= self.volumes[i - 1]:
                raise ConfigurationError(
                    f"Calibration volumes must be strictly increasing (index {i}: "
                    f"{self.volumes[i - 1]} -> {self.volumes[i]})"
                )

    @staticmethod
    def from_arrays(depths: Sequence[Number], volumes: Sequence[Number]) -> "DipChartCalibration":
        try:
            return DipChartCalibration(
                depths=tuple(to_decimal(d) for d in depths),
                volumes=tuple(to_decimal(v) for v in volumes),
            )
        except (InvalidOperation, TypeError) as e:
            raise ConfigurationError(f"Calibration table contains a non-numeric value: {e}") from e

    @property
    def max_depth(self) -> Decimal:
        return self.depths[-1]

    @property
    def max_volume(self) -> Decimal:
        return self.volumes[-1]

    def volume_for_depth(self, depth_mm: Number) -> Decimal:
        """Liters held at the given dip depth (mm)."""

        return interpolate(depth_mm, self.depths, self.volumes)

    def volume_for_inches(self, depth_inches: Number) -> Decimal:
        return self.volume_for_depth(inches_to_mm(depth_inches))


def load_calibration(path: Union[str, Path]) -> DipChartCalibration:
    """
    Load the calibration table from a JSON file of the form
    {"mm": [...], "ltr": [...]}.

    Raises:
        ConfigurationError: file missing, unreadable, or table invalid
    """

    file_path = Path(path)
    try:
        raw: Any = json.loads(file_path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigurationError(f"Calibration file not found: {file_path}") from e
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Calibration file {file_path} could not be read: {e}") from e

    if not isinstance(raw, dict) or "mm" not in raw or "ltr" not in raw:
        raise ConfigurationError(f"Calibration file {file_path} must contain 'mm' and 'ltr' arrays")

    return DipChartCalibration.from_arrays(raw["mm"], raw["ltr"])


__all__ = [
    "DipChartCalibration",
    "MM_PER_INCH",
    "inches_to_mm",
    "interpolate",
    "load_calibration",
    "mm_to_inches",
    "to_decimal",
]
