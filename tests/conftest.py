import os

os.environ.setdefault("EPHEMERIS_BACKEND", "moseph")

import pytest

from kundli.services.ephem import BodyState, HouseCusps, SunEvents
from kundli.services.errors import ProviderUnavailable
from kundli.services.positions import resolve_position

# sidereal longitudes of a reference chart; with ayanamsa 0 they are also tropical
NATAL = {
    "Sun": 130.0,      # Leo 10
    "Moon": 45.0,      # Taurus 15, Rohini
    "Mars": 190.0,     # Libra 10
    "Mercury": 140.0,  # Leo 20
    "Jupiter": 98.0,   # Cancer 8
    "Venus": 110.0,    # Cancer 20
    "Saturn": 290.0,   # Capricorn 20
    "Rahu": 20.0,      # Aries 20
    "Ketu": 200.0,     # Libra 20
}

SPEEDS = {
    "Sun": 0.98,
    "Moon": 13.2,
    "Mars": 0.6,
    "Mercury": 1.2,
    "Jupiter": 0.2,
    "Venus": 1.1,
    "Saturn": -0.05,
    "Rahu": -0.05,
    "Ketu": -0.05,
}


class FakeProvider:
    """In-memory ephemeris: linear motion from ``epoch`` at constant speed."""

    def __init__(
        self,
        longitudes=None,
        speeds=None,
        offset=0.0,
        ascendant=95.0,
        cusps="equal",
        fail=(),
        epoch=2451545.0,
        sun_events=None,
    ):
        self.longitudes = dict(NATAL if longitudes is None else longitudes)
        self.speeds = dict(SPEEDS if speeds is None else speeds)
        self.offset = offset
        self.ascendant = ascendant
        self.cusps = cusps
        self.fail = set(fail)
        self.epoch = epoch
        self.events = sun_events
        self.calls = []

    def position(self, body, jd_ut):
        self.calls.append(("position", body))
        if body in self.fail or body not in self.longitudes:
            raise ProviderUnavailable(f"no data for {body}", body=body)
        speed = self.speeds.get(body, 0.0)
        lon = (self.longitudes[body] + self.offset + speed * (jd_ut - self.epoch)) % 360.0
        return BodyState(longitude=lon, latitude=0.0, distance=1.0, speed=speed)

    def house_cusps(self, jd_ut, lat, lon, system):
        if self.cusps is None:
            return None
        asc = (self.ascendant + self.offset) % 360.0
        cusps = tuple((asc + 30.0 * i) % 360.0 for i in range(12))
        return HouseCusps(cusps=cusps, ascendant=asc, midheaven=(asc + 270.0) % 360.0)

    def sun_events(self, jd_ut, lat, lon):
        if isinstance(self.events, Exception):
            raise self.events
        if self.events is not None:
            return self.events
        # daytime birth: sunrise six hours before, sunset six hours after
        return SunEvents(sunrise=jd_ut - 0.25, sunset=jd_ut + 0.25, next_sunrise=jd_ut + 0.75)

    def ayanamsa(self, jd_ut, variant):
        self.calls.append(("ayanamsa", variant))
        return self.offset


def make_positions(longitudes=None, speeds=None):
    longitudes = NATAL if longitudes is None else longitudes
    speeds = SPEEDS if speeds is None else speeds
    return {b: resolve_position(b, lon, speeds.get(b)) for b, lon in longitudes.items()}


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def positions():
    return make_positions()
