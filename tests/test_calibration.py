"""
Tests for `domain/calibration.py`.

Covers contract rules:
- Linear interpolation between calibration points, rounded to one decimal.
- Below the table -> 0; above the table -> last volume (no extrapolation).
- Exact table points return the exact table value.
- Monotonicity: a deeper dip never yields less volume.
- Malformed tables fail fast with ConfigurationError.
"""

from __future__ import annotations

import json
from decimal import Decimal

import pytest

from config import PROJECT_ROOT
from domain.calibration import (
    DipChartCalibration,
    inches_to_mm,
    interpolate,
    load_calibration,
    mm_to_inches,
)
from domain.errors import ConfigurationError


@pytest.mark.parametrize(
    "depth, expected",
    [
        (5, Decimal("50.0")),
        (15, Decimal("200.0")),
        (-5, Decimal("0")),
        (25, Decimal("300.0")),
        (20, Decimal("300.0")),
        (0, Decimal("0")),
        (10, Decimal("100.0")),
    ],
)
def test_volume_for_depth_matches_reference_table(calibration: DipChartCalibration, depth, expected) -> None:
    """Verify the reference values of the three-point table."""

    assert calibration.volume_for_depth(depth) == expected


def test_interpolation_rounds_to_one_decimal_place() -> None:
    """Verify results are rounded half-up to one decimal."""

    table = DipChartCalibration.from_arrays([0, 3], [0, 1])
    # 1/3 -> 0.333.. ; 2/3 -> 0.666..
    assert table.volume_for_depth(1) == Decimal("0.3")
    assert table.volume_for_depth(2) == Decimal("0.7")
    assert str(table.volume_for_depth("1.5")) == "0.5"


def test_interpolation_is_monotonic(station_calibration: DipChartCalibration) -> None:
    """Verify depth1 < depth2 implies volume1 <= volume2 across and beyond the table."""

    depths = [Decimal(d) for d in range(-100, 2200, 7)]
    volumes = [station_calibration.volume_for_depth(d) for d in depths]

    for previous, current in zip(volumes, volumes[1:]):
        assert previous <= current


def test_interpolate_function_accepts_float_and_string_depths() -> None:
    """Verify the pure function converts inputs without float artifacts."""

    depths = (Decimal("0"), Decimal("10"))
    volumes = (Decimal("0"), Decimal("1"))

    assert interpolate(0.1, depths, volumes) == Decimal("0.0")
    assert interpolate("2.5", depths, volumes) == Decimal("0.3")


def test_inch_conversions() -> None:
    """Verify 25.4 mm per inch in both directions."""

    assert inches_to_mm(10) == Decimal("254.0")
    assert mm_to_inches(254) == Decimal("10.00")
    assert mm_to_inches(100) == Decimal("3.94")


@pytest.mark.parametrize(
    "depths, volumes",
    [
        ([0, 10], [0]),  # length mismatch
        ([0], [0]),  # fewer than two points
        ([0, 10, 10], [0, 100, 200]),  # repeated depth
        ([0, 20, 10], [0, 100, 200]),  # descending depth
        ([0, 10, 20], [0, 200, 100]),  # descending volume
        ([0, "ten"], [0, 100]),  # non-numeric
    ],
)
def test_malformed_tables_raise_configuration_error(depths, volumes) -> None:
    """Verify invalid tables are rejected at load time."""

    with pytest.raises(ConfigurationError):
        DipChartCalibration.from_arrays(depths, volumes)


def test_load_calibration_reads_json_file(tmp_path) -> None:
    """Verify the {"mm", "ltr"} JSON format is loaded."""

    path = tmp_path / "table.json"
    path.write_text(json.dumps({"mm": [0, 100, 200], "ltr": [0, 500, 1200]}), encoding="utf-8")

    table = load_calibration(path)

    assert table.max_depth == Decimal("200")
    assert table.max_volume == Decimal("1200")
    assert table.volume_for_depth(150) == Decimal("850.0")


def test_load_calibration_missing_or_malformed_file(tmp_path) -> None:
    """Verify unreadable files are configuration errors."""

    with pytest.raises(ConfigurationError):
        load_calibration(tmp_path / "missing.json")

    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_calibration(bad)

    wrong_keys = tmp_path / "wrong.json"
    wrong_keys.write_text(json.dumps({"depths": [0, 1]}), encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_calibration(wrong_keys)


def test_bundled_calibration_table_is_valid() -> None:
    """Verify the shipped data/dip_calibration.json loads and saturates at its last point."""

    table = load_calibration(PROJECT_ROOT / "data" / "dip_calibration.json")

    assert len(table.depths) == 26
    assert table.volume_for_depth(0) == Decimal("0")
    assert table.volume_for_depth(150) == Decimal("590.0")
    assert table.volume_for_depth(3000) == Decimal("19000.0")
