import pytest

from conftest import FakeProvider
from kundli.services.ayanamsa import (
    ayanamsa_value,
    canonical_variant,
    to_dms,
    to_sidereal,
)
from kundli.services.errors import ConfigurationError


def test_variant_aliases():
    assert canonical_variant("KP") == "krishnamurti"
    assert canonical_variant("Fagan-Bradley") == "fagan_bradley"
    assert canonical_variant("lahiri") == "lahiri"


def test_unknown_variant_raises():
    with pytest.raises(ConfigurationError):
        canonical_variant("galactic")


def test_conversion_wraps():
    assert to_sidereal(10.0, 24.0) == pytest.approx(346.0)


def test_provider_receives_canonical_variant():
    provider = FakeProvider(offset=23.5)
    assert ayanamsa_value(provider, 2451545.0, "kp") == 23.5
    assert ("ayanamsa", "krishnamurti") in provider.calls


def test_to_dms():
    assert to_dms(23.8512) == {"sign": 1, "degrees": 23, "minutes": 51, "seconds": 4}


def test_swiss_lahiri_at_j2000():
    from kundli.services.ephem import SwissEphemeris

    value = SwissEphemeris().ayanamsa(2451545.0, "lahiri")
    assert value == pytest.approx(23.85, abs=0.05)
