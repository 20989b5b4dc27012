from datetime import datetime, timedelta, timezone

import pytest

from conftest import FakeProvider, make_positions
from kundli.services.ephem import BodyState, datetime_to_jd, jd_to_datetime
from kundli.services.errors import ConfigurationError, MissingBodiesError
from kundli.services.positions import resolve_position
from kundli.services.transits import (
    compute_transits,
    find_transit_aspects,
    sade_sati,
    sign_window,
    transit_strength,
    transit_timeline,
)

EPOCH = 2451545.0
AT = jd_to_datetime(EPOCH)


def test_transit_strength_bands():
    assert transit_strength(0.5) == "strong"
    assert transit_strength(2.0) == "moderate"
    assert transit_strength(6.0) == "weak"


def test_find_transit_aspects_applying_follows_motion():
    natal = {"Moon": resolve_position("Moon", 100.0)}
    forward = {"Saturn": resolve_position("Saturn", 102.0, 0.1)}
    backward = {"Saturn": resolve_position("Saturn", 102.0, -0.1)}

    (hit,) = find_transit_aspects(forward, natal)
    assert (hit.transit_body, hit.natal_body, hit.aspect) == ("Saturn", "Moon", "conjunction")
    assert hit.orb == pytest.approx(2.0)
    assert hit.strength == "moderate"
    assert hit.applying is False

    (hit,) = find_transit_aspects(backward, natal)
    assert hit.applying is True


def test_sade_sati_phases():
    moon_sign = 1  # Taurus
    assert sade_sati(15.0, moon_sign, AT).phase == "rising"
    assert sade_sati(75.0, moon_sign, AT).phase == "setting"
    assert sade_sati(100.0, moon_sign, AT).active is False

    peak = sade_sati(45.0, moon_sign, AT)
    assert peak.active and peak.phase == "peak"
    assert peak.phase_start == AT - timedelta(days=456)
    assert peak.start == peak.phase_start - timedelta(days=912)
    assert peak.end - peak.start == timedelta(days=3 * 912)


def test_sign_window_nodes_run_backwards():
    jupiter = sign_window("Jupiter", 20.0, AT, moon_sign=1)
    rahu = sign_window("Rahu", 20.0, AT, moon_sign=1)
    assert jupiter.start == AT - timedelta(days=365 * 20 / 30)
    assert rahu.start == AT - timedelta(days=547 * 10 / 30)
    assert rahu.end - rahu.start == timedelta(days=547)
    assert jupiter.house_from_moon == 12
    assert jupiter.to_dict()["estimated"] is True


def test_compute_transits_with_fake_provider():
    report = compute_transits(FakeProvider(), make_positions(), AT)
    assert set(report.positions) == {"Saturn", "Jupiter", "Mars", "Rahu", "Ketu"}
    assert report.unavailable == ()
    assert len(report.windows) == 5
    # Saturn in Capricorn is ninth from a Taurus Moon
    assert report.sade_sati.active is False
    assert any(
        a.transit_body == "Saturn" and a.natal_body == "Saturn" and a.aspect == "conjunction"
        for a in report.aspects
    )
    data = report.to_dict()
    assert data["sade_sati"]["active"] is False


def test_compute_transits_reports_missing_bodies():
    report = compute_transits(FakeProvider(fail=("Saturn",)), make_positions(), AT)
    assert report.unavailable == ("Saturn",)
    assert "Saturn" not in report.positions
    assert all(w.body != "Saturn" for w in report.windows)
    assert report.sade_sati.active is False


def test_compute_transits_requires_natal_moon():
    natal = make_positions()
    natal.pop("Moon")
    with pytest.raises(MissingBodiesError):
        compute_transits(FakeProvider(), natal, AT)


def test_timeline_finds_ingress():
    provider = FakeProvider(longitudes={"Mars": 208.0}, speeds={"Mars": 0.5})
    events = transit_timeline(provider, AT, AT + timedelta(days=10), bodies=("Mars",), max_workers=2)
    assert len(events) == 1
    (event,) = events
    assert event.kind == "ingress"
    assert event.detail == {"from_sign": "Libra", "to_sign": "Scorpio"}
    assert event.jd == pytest.approx(EPOCH + 4.0, abs=1.0 / 24.0)


class StationingProvider(FakeProvider):
    """Jupiter slowing to a standstill five days after the epoch."""

    def position(self, body, jd_ut):
        t = jd_ut - self.epoch
        speed = 0.5 - 0.1 * t
        lon = 100.0 + 0.5 * t - 0.05 * t * t
        return BodyState(longitude=lon, latitude=0.0, distance=1.0, speed=speed)


def test_timeline_finds_station():
    events = transit_timeline(StationingProvider(), AT, AT + timedelta(days=10), bodies=("Jupiter",))
    (event,) = events
    assert event.kind == "station"
    assert event.detail == {"direction": "retrograde"}
    assert event.jd == pytest.approx(EPOCH + 5.0, abs=1.0 / 24.0)


def test_timeline_rejects_inverted_range():
    with pytest.raises(ConfigurationError):
        transit_timeline(FakeProvider(), AT, AT)
    with pytest.raises(ConfigurationError):
        transit_timeline(FakeProvider(), AT, AT + timedelta(days=1), step_days=0)


def test_datetime_to_jd_epoch():
    assert datetime_to_jd(datetime(2000, 1, 1, 12, tzinfo=timezone.utc)) == pytest.approx(EPOCH)
