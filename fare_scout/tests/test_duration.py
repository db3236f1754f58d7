import pytest

from fare_scout.duration import format_minutes, parse_iso_duration


@pytest.mark.parametrize(
    "iso, minutes",
    [("PT13H45M", 825), ("PT55M", 55), ("PT20H", 1200), ("PT100H5M", 6005)],
)
def test_parse_iso_duration(iso, minutes):
    assert parse_iso_duration(iso) == minutes


@pytest.mark.parametrize("raw", ["garbage", None, "", "P1DT2H", "PT1H30M15S", "pt2h", 90])
def test_parse_iso_duration_rejects(raw):
    assert parse_iso_duration(raw) is None


def test_bare_pt_is_zero_minutes():
    assert parse_iso_duration("PT") == 0


def test_format_minutes():
    assert format_minutes(920) == "PT15H20M"
    assert format_minutes(120) == "PT2H"
    assert format_minutes(45) == "PT45M"
    assert format_minutes(0) == "PT0M"
