import pytest

from conftest import make_positions
from kundli.services.errors import ConfigurationError
from kundli.services.vargas import DIVISIONS, divisional_chart, parse_division, varga_longitude, varga_sign


def test_sixteen_divisions():
    assert len(DIVISIONS) == 16


def test_parse_division_forms():
    assert parse_division(9) == 9
    assert parse_division("d9") == 9
    assert parse_division("D60") == 60
    with pytest.raises(ConfigurationError):
        parse_division("D11")


def test_rasi_is_identity():
    assert varga_longitude(123.456, 1) == pytest.approx(123.456)


def test_navamsa_starts_by_element():
    assert varga_sign(0.0, 9) == 0        # Aries starts from Aries
    assert varga_sign(3.5, 9) == 1        # second pada of Aries -> Taurus
    assert varga_sign(30.0, 9) == 9       # Taurus starts from Capricorn
    assert varga_sign(359.9, 9) == 11     # last navamsa of Pisces


def test_hora_odd_and_even_signs():
    assert varga_sign(5.0, 2) == 4    # Aries first half -> Leo
    assert varga_sign(20.0, 2) == 3   # Aries second half -> Cancer
    assert varga_sign(35.0, 2) == 3   # Taurus first half -> Cancer


def test_trimsamsa_unequal_parts():
    assert varga_sign(3.0, 30) == 0    # Aries 0-5 -> Aries
    assert varga_sign(7.0, 30) == 10   # Aries 5-10 -> Aquarius
    assert varga_sign(33.0, 30) == 1   # Taurus 0-5 -> Taurus
    # degree inside the part is scaled to the whole sign
    assert varga_longitude(2.5, 30) == pytest.approx(15.0)


def test_shashtiamsa():
    assert varga_sign(0.4, 60) == 0
    assert varga_sign(15.0, 60) == 6


def test_varga_degree_is_scaled():
    # Aries 2 in D9: first part, 2 * 9 = 18 degrees into Aries
    assert varga_longitude(2.0, 9) == pytest.approx(18.0)


def test_divisional_chart_and_vargottama():
    positions = make_positions({"Sun": 1.0, "Moon": 45.0})
    chart = divisional_chart(positions, 95.0, "D9")
    assert chart.name == "Navamsa"
    assert chart.sign_of("Sun") == 0
    sun = chart.placements[0]
    assert sun.vargottama
    assert chart.ascendant is not None
    assert divisional_chart(positions, None, 9).ascendant is None
    assert chart.to_dict()["division"] == "D9"


def test_chaturthamsa_odd_and_even_signs():
    # odd signs count from the sign itself
    assert varga_sign(2.0, 4) == 0     # Aries, first part -> Aries
    assert varga_sign(10.0, 4) == 1    # Aries, second part -> Taurus
    assert varga_sign(125.0, 4) == 4   # Leo, first part -> Leo
    # even signs count from the fourth sign
    assert varga_sign(32.0, 4) == 4    # Taurus, first part -> Leo
    assert varga_sign(40.0, 4) == 5    # Taurus, second part -> Virgo
    assert varga_sign(359.0, 4) == 5   # Pisces, last part -> Virgo
