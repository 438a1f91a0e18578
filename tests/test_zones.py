from __future__ import annotations

import pytest

from bici.workout.zones import classify_power, classify_zone, round_half_up


@pytest.mark.parametrize(
    ("pct", "zone"),
    [
        (250, "sprint"),
        (130, "sprint"),
        (129, "activation"),
        (105, "activation"),
        (95, "threshold"),
        (85, "sweetspot"),
        (75, "endurance"),
        (60, "tempo"),
        (59, "recovery"),
        (0, "recovery"),
    ],
)
def test_classify_zone_thresholds(pct: int, zone: str) -> None:
    assert classify_zone(pct).zone == zone


def test_labels() -> None:
    assert classify_zone(88).label_prefix == "Sweet Spot"
    assert classify_zone(10).label_prefix == "Recovery"


def test_classify_power_rounds_percentage() -> None:
    assert classify_power(1.049).zone == "activation"
    assert classify_power(0.594).zone == "recovery"


def test_round_half_up() -> None:
    assert round_half_up(2.5) == 3
    assert round_half_up(0.5) == 1
    assert round_half_up(2.49) == 2
    assert round_half_up(-2.5) == -3
