import pytest

from conftest import NATAL, make_positions
from kundli.services.doshas import (
    gandmool,
    grahan,
    guru_chandal,
    kaal_sarp,
    kemadruma,
    manglik,
    matching_doshas,
    papa_kartari,
    pitra,
    shrapit,
)
from kundli.services.patterns import (
    CANCELLED,
    ChartState,
    candidate,
    detect_patterns,
    has_pattern,
    resolve,
    resolve_strength,
    summarize,
)
from kundli.services.positions import resolve_position
from kundli.services.yogas import (
    adhi,
    amala,
    budhaditya,
    chamara,
    chandra_mangal,
    dhana,
    gaja_kesari,
    kahala,
    lakshmi,
    mahapurusha,
    neecha_bhanga_raja,
    parivartana,
    parvata,
    raja,
    shakata,
    shubh_kartari,
    sunapha_anapha_durudhara,
    vesi_vosi_ubhayachari,
    viparita_raja,
)


def _state(longitudes, ascendant_sign=0, threshold=5):
    speeds = {b: 1.0 for b in longitudes}
    return ChartState(
        positions=make_positions(longitudes, speeds),
        ascendant_sign=ascendant_sign,
        kaal_sarp_threshold=threshold,
    )


def _only(matches, kind):
    found = [resolve(m) for m in matches if m.kind == kind]
    assert len(found) == 1
    return found[0]


@pytest.mark.parametrize(
    "initial,active,expected",
    [
        ("strong", 0, "strong"),
        ("strong", 1, "moderate"),
        ("moderate", 1, "weak"),
        ("weak", 1, "weak"),
        ("strong", 2, CANCELLED),
        ("weak", 3, CANCELLED),
    ],
)
def test_resolve_strength_steps(initial, active, expected):
    assert resolve_strength(initial, active) == expected


def test_candidate_rejects_unknown_strength():
    with pytest.raises(ValueError):
        candidate("raja", "yoga", "cancelled")


def test_gaja_kesari_cancellations_lower_then_cancel():
    base = {"Moon": 5.0, "Jupiter": 95.0}
    m = _only(gaja_kesari(_state(base)), "gaja_kesari")
    assert m.strength == "strong"
    assert m.details["jupiter_house_from_moon"] == 4

    m = _only(gaja_kesari(_state({**base, "Rahu": 8.0})), "gaja_kesari")
    assert m.strength == "moderate"
    assert m.cancellation_reasons == ["Moon conjunct a lunar node"]

    m = _only(gaja_kesari(_state({**base, "Rahu": 8.0, "Sun": 96.0})), "gaja_kesari")
    assert m.strength == CANCELLED
    assert not has_pattern([m], "gaja_kesari")


def test_ruchaka_exalted_in_lagna_is_strong():
    m = _only(mahapurusha(_state({"Mars": 298.0}, ascendant_sign=9)), "ruchaka")
    assert m.strength == "strong"
    assert m.details["house"] == 1
    assert m.cancellation_reasons == []


def test_ruchaka_one_cancellation_then_two():
    m = _only(mahapurusha(_state({"Mars": 298.0, "Sun": 290.0}, ascendant_sign=9)), "ruchaka")
    assert m.initial_strength == "strong"
    assert m.strength == "moderate"
    assert m.cancellation_reasons == ["Mars combust"]

    m = _only(mahapurusha(_state({"Mars": 298.0, "Sun": 290.0, "Rahu": 285.0}, ascendant_sign=9)), "ruchaka")
    assert m.strength == CANCELLED


def test_hamsa_own_sign_in_fourth_is_moderate():
    m = _only(mahapurusha(_state({"Jupiter": 245.0}, ascendant_sign=5)), "hamsa")
    assert m.details["house"] == 4
    assert m.strength == "moderate"


def test_mahapurusha_needs_a_kendra():
    assert mahapurusha(_state({"Mars": 298.0}, ascendant_sign=1)) == []
    assert mahapurusha(_state({"Mars": 10.0}, ascendant_sign=2)) == []


@pytest.mark.parametrize(
    "lons,ascendant_sign,expected",
    [
        ({"Sun": 130.0, "Mercury": 140.0}, 0, "moderate"),
        ({"Sun": 10.0, "Mercury": 15.0}, 0, "strong"),
        ({"Sun": 130.0, "Mercury": 131.0}, 0, "weak"),
        ({"Sun": 130.0, "Mercury": 140.0}, 11, "weak"),
    ],
)
def test_budhaditya_strength(lons, ascendant_sign, expected):
    assert _only(budhaditya(_state(lons, ascendant_sign)), "budhaditya").strength == expected


def test_budhaditya_absent_in_different_signs():
    assert budhaditya(_state({"Sun": 130.0, "Mercury": 160.0})) == []


def test_raja_kendra_and_trikona_lords_conjunct():
    # Aries lagna: Moon rules the 4th, Jupiter the 9th, both strong in Cancer
    m = _only(raja(_state({"Moon": 95.0, "Jupiter": 100.0})), "raja")
    assert m.strength == "strong"
    assert m.bodies == ("Moon", "Jupiter")
    assert m.details == {"kendra_house": 4, "trikona_house": 9, "relation": "conjunction"}


def test_raja_mutual_aspect_and_absent():
    m = _only(raja(_state({"Moon": 95.0, "Jupiter": 275.0})), "raja")
    assert m.details["relation"] == "mutual_aspect"
    assert m.strength == "moderate"
    assert raja(_state({"Moon": 95.0, "Jupiter": 155.0})) == []


def test_sunapha_anapha_durudhara():
    m = _only(sunapha_anapha_durudhara(_state({"Moon": 45.0, "Mars": 70.0})), "sunapha")
    assert m.bodies == ("Moon", "Mars")
    assert m.strength == "moderate"

    m = _only(sunapha_anapha_durudhara(_state({"Moon": 45.0, "Saturn": 15.0})), "anapha")
    assert m.strength == "weak"

    m = _only(sunapha_anapha_durudhara(_state({"Moon": 165.0, "Saturn": 200.0, "Mercury": 130.0})), "durudhara")
    assert m.details == {"second": ["Saturn"], "twelfth": ["Mercury"]}
    assert m.strength == "strong"


def test_sun_does_not_form_sunapha():
    assert sunapha_anapha_durudhara(_state({"Moon": 45.0, "Sun": 70.0})) == []


def test_vesi_vosi_ubhayachari():
    assert _only(vesi_vosi_ubhayachari(_state({"Sun": 130.0, "Mars": 160.0})), "vesi").bodies == ("Sun", "Mars")
    assert _only(vesi_vosi_ubhayachari(_state({"Sun": 130.0, "Venus": 100.0})), "vosi").strength == "moderate"
    m = _only(vesi_vosi_ubhayachari(_state({"Sun": 130.0, "Mars": 160.0, "Venus": 100.0})), "ubhayachari")
    assert m.details == {"second": ["Mars"], "twelfth": ["Venus"]}
    assert vesi_vosi_ubhayachari(_state({"Sun": 130.0, "Moon": 160.0})) == []


@pytest.mark.parametrize(
    "lons,expected",
    [
        ({"Jupiter": 155.0}, "weak"),
        ({"Jupiter": 155.0, "Venus": 185.0}, "moderate"),
        ({"Jupiter": 155.0, "Venus": 185.0, "Mercury": 215.0}, "strong"),
    ],
)
def test_adhi_grows_with_benefics(lons, expected):
    m = _only(adhi(_state({"Moon": 5.0, **lons})), "adhi")
    assert m.strength == expected
    assert m.bodies == ("Moon",) + tuple(lons)


def test_adhi_absent():
    assert adhi(_state({"Moon": 5.0, "Jupiter": 95.0})) == []


def test_dhana_second_lord_in_eleventh():
    # Aries lagna: Venus rules the 2nd, Saturn the 11th
    m = _only(dhana(_state({"Venus": 305.0, "Saturn": 200.0})), "dhana")
    assert m.details == {"variation": 1}
    assert m.strength == "strong"


def test_dhana_lords_conjunct():
    m = _only(dhana(_state({"Venus": 280.0, "Saturn": 285.0})), "dhana")
    assert m.details == {"variation": 2}
    assert m.strength == "moderate"


def test_dhana_jupiter_aspect():
    m = _only(dhana(_state({"Jupiter": 215.0})), "dhana")
    assert m.details == {"variation": 3, "houses": [2]}
    assert dhana(_state({"Jupiter": 95.0})) == []


def test_lakshmi():
    m = _only(lakshmi(_state({"Jupiter": 95.0, "Venus": 350.0})), "lakshmi")
    assert m.strength == "strong"
    assert m.bodies == ("Jupiter", "Venus")
    assert m.details == {"ninth_lord": "Jupiter"}
    assert _only(lakshmi(_state({"Jupiter": 5.0, "Venus": 350.0})), "lakshmi").strength == "moderate"
    assert lakshmi(_state({"Jupiter": 95.0, "Venus": 70.0})) == []


@pytest.mark.parametrize(
    "moon,mars,expected",
    [(35.0, 40.0, "strong"), (215.0, 220.0, "weak"), (70.0, 75.0, "moderate")],
)
def test_chandra_mangal(moon, mars, expected):
    assert _only(chandra_mangal(_state({"Moon": moon, "Mars": mars})), "chandra_mangal").strength == expected


def test_chandra_mangal_absent():
    assert chandra_mangal(_state({"Moon": 45.0, "Mars": 80.0})) == []


def test_shubh_kartari_around_lagna():
    m = _only(shubh_kartari(_state({"Jupiter": 340.0, "Venus": 40.0})), "shubh_kartari")
    assert m.details == {"house": 1}
    assert m.bodies == ("Jupiter", "Venus")
    assert shubh_kartari(_state({"Moon": 340.0, "Venus": 40.0})) == []


def test_viparita_raja_sixth_and_eighth_lords():
    # Aries lagna: Mercury rules the 6th, Mars the 8th
    m = _only(viparita_raja(_state({"Mercury": 100.0, "Mars": 105.0})), "viparita_raja")
    assert m.details == {"houses": [6, 8]}
    assert m.strength == "moderate"
    assert viparita_raja(_state({"Mercury": 100.0, "Mars": 140.0})) == []


def test_neecha_bhanga_raja():
    m = _only(neecha_bhanga_raja(_state({"Mars": 95.0, "Moon": 5.0})), "neecha_bhanga_raja")
    assert m.bodies == ("Mars", "Moon")
    assert m.details == {"dispositor_house": 1}
    assert m.strength == "moderate"

    m = _only(neecha_bhanga_raja(_state({"Mars": 95.0, "Moon": 100.0})), "neecha_bhanga_raja")
    assert m.strength == "strong"

    assert neecha_bhanga_raja(_state({"Mars": 95.0, "Moon": 35.0})) == []


def test_parivartana_sign_exchange():
    m = _only(parivartana(_state({"Sun": 95.0, "Moon": 125.0})), "parivartana")
    assert m.bodies == ("Sun", "Moon")
    assert m.strength == "moderate"
    assert parivartana(_state({"Sun": 95.0, "Moon": 200.0})) == []


def test_amala_benefic_in_tenth():
    # Libra lagna: the 10th is Cancer, Jupiter's exaltation
    assert _only(amala(_state({"Jupiter": 95.0}, ascendant_sign=6)), "amala").strength == "strong"
    assert _only(amala(_state({"Venus": 280.0})), "amala").strength == "moderate"
    assert amala(_state({"Mars": 280.0})) == []


def test_parvata():
    m = _only(parvata(_state({"Jupiter": 95.0, "Saturn": 40.0})), "parvata")
    assert m.bodies == ("Jupiter",)
    assert parvata(_state({"Jupiter": 95.0, "Mars": 160.0})) == []
    assert parvata(_state({"Jupiter": 40.0})) == []


def test_kahala():
    m = _only(kahala(_state({"Moon": 5.0, "Jupiter": 185.0})), "kahala")
    assert m.bodies == ("Jupiter", "Moon")
    assert kahala(_state({"Moon": 5.0, "Jupiter": 125.0})) == []


def test_chamara():
    m = _only(chamara(_state({"Mars": 290.0, "Jupiter": 95.0})), "chamara")
    assert m.strength == "strong"
    assert m.bodies == ("Mars", "Jupiter")
    assert chamara(_state({"Mars": 290.0, "Jupiter": 5.0})) == []


def test_shakata_and_its_cancellation():
    m = _only(shakata(_state({"Jupiter": 5.0, "Moon": 155.0})), "shakata")
    assert m.details == {"moon_house_from_jupiter": 6}
    assert m.strength == "moderate"

    m = _only(shakata(_state({"Jupiter": 5.0, "Moon": 155.0}, ascendant_sign=2)), "shakata")
    assert m.strength == "weak"
    assert m.cancellation_reasons == ["Moon in a kendra from lagna"]

    assert shakata(_state({"Jupiter": 5.0, "Moon": 95.0})) == []


def test_manglik_from_lagna_and_moon():
    m = _only(manglik(_state({"Mars": 185.0, "Moon": 5.0})), "manglik")
    assert m.strength == "strong"
    assert m.details["from_references"] == ["lagna", "moon"]
    assert m.active_cancellations == 0


def test_manglik_jupiter_aspect_cancels_one_step():
    m = _only(manglik(_state({"Mars": 185.0, "Moon": 5.0, "Jupiter": 65.0})), "manglik")
    assert m.initial_strength == "strong"
    assert m.strength == "moderate"
    assert m.cancellation_reasons == ["Jupiter aspects Mars"]


def test_manglik_absent_outside_its_houses():
    assert manglik(_state({"Mars": 35.0, "Moon": 5.0})) == []


HEMMED = {
    "Rahu": 0.5,
    "Ketu": 180.5,
    "Sun": 20.0,
    "Moon": 40.0,
    "Mars": 60.0,
    "Mercury": 30.0,
    "Jupiter": 100.0,
    "Venus": 50.0,
    "Saturn": 150.0,
}


def test_kaal_sarp_full():
    m = _only(kaal_sarp(_state(HEMMED)), "kaal_sarp")
    assert m.details["full"] is True
    assert m.details["type"] == "Anant"
    assert m.details["hemmed"] == 7
    assert m.strength == "strong"


def test_kaal_sarp_partial_respects_threshold():
    lons = {**HEMMED, "Mars": 200.0, "Saturn": 250.0}
    m = _only(kaal_sarp(_state(lons, threshold=5)), "kaal_sarp")
    assert m.details["full"] is False
    assert m.details["hemmed"] == 5
    assert m.strength == "weak"
    assert kaal_sarp(_state(lons, threshold=6)) == []


def test_kemadruma_with_strong_moon():
    m = _only(kemadruma(_state({"Moon": 45.0, "Sun": 200.0, "Saturn": 250.0})), "kemadruma")
    assert m.initial_strength == "moderate"
    assert m.strength == "weak"
    assert m.cancellation_reasons == ["Moon in own or exaltation sign"]


def test_kemadruma_absent_with_neighbour():
    assert kemadruma(_state({"Moon": 45.0, "Mars": 70.0})) == []


def test_pitra_single_condition():
    m = _only(pitra(_state({"Sun": 70.0, "Rahu": 75.0})), "pitra")
    assert m.details["conditions"] == ["sun_with_rahu"]
    assert m.details["severity"] == "low"
    assert m.strength == "weak"


def test_pitra_all_conditions_and_jupiter_relief():
    lons = {"Sun": 250.0, "Rahu": 255.0, "Saturn": 260.0}
    m = _only(pitra(_state(lons)), "pitra")
    assert m.details["conditions"] == ["sun_with_rahu", "saturn_affliction", "sun_in_ninth"]
    assert m.strength == "strong"

    m = _only(pitra(_state({**lons, "Jupiter": 5.0})), "pitra")
    assert m.strength == "moderate"
    assert m.cancellation_reasons == ["Jupiter aspects the Sun"]


def test_pitra_absent():
    assert pitra(_state({"Sun": 70.0})) == []


def test_grahan():
    m = _only(grahan(_state({"Sun": 100.0, "Rahu": 108.0})), "grahan")
    assert m.bodies == ("Sun",)
    assert m.strength == "moderate"

    m = _only(grahan(_state({"Sun": 100.0, "Rahu": 108.0, "Jupiter": 340.0})), "grahan")
    assert m.strength == "weak"

    assert _only(grahan(_state({"Moon": 290.0, "Ketu": 285.0})), "grahan").bodies == ("Moon",)
    assert grahan(_state({"Sun": 100.0, "Rahu": 115.0})) == []


def test_guru_chandal_conjunction_and_aspect():
    m = _only(guru_chandal(_state({"Jupiter": 40.0, "Rahu": 45.0})), "guru_chandal")
    assert m.details["relation"] == "conjunction"
    assert m.strength == "moderate"

    m = _only(guru_chandal(_state({"Jupiter": 185.0, "Rahu": 5.0})), "guru_chandal")
    assert m.details["relation"] == "aspect"
    assert m.cancellation_reasons == ["Jupiter in a kendra"]
    assert m.strength == "weak"


def test_guru_chandal_cancelled_and_absent():
    m = _only(guru_chandal(_state({"Jupiter": 95.0, "Rahu": 100.0})), "guru_chandal")
    assert m.strength == CANCELLED
    assert guru_chandal(_state({"Jupiter": 40.0, "Rahu": 100.0})) == []


def test_shrapit():
    assert _only(shrapit(_state({"Saturn": 130.0, "Rahu": 135.0})), "shrapit").strength == "strong"
    m = _only(shrapit(_state({"Saturn": 310.0, "Rahu": 315.0})), "shrapit")
    assert m.cancellation_reasons == ["Saturn in own or exaltation sign"]
    assert m.strength == "moderate"
    assert shrapit(_state({"Saturn": 130.0, "Rahu": 150.0})) == []


@pytest.mark.parametrize(
    "moon,nakshatra,expected",
    [(5.0, 0, "weak"), (230.0, 17, "moderate"), (245.0, 18, "moderate")],
)
def test_gandmool_nakshatras(moon, nakshatra, expected):
    m = _only(gandmool(_state({"Moon": moon})), "gandmool")
    assert m.details["nakshatra"] == nakshatra
    assert m.strength == expected


def test_gandmool_absent_in_rohini():
    assert gandmool(_state({"Moon": 45.0})) == []


def test_papa_kartari():
    m = _only(papa_kartari(_state({"Saturn": 340.0, "Mars": 40.0})), "papa_kartari")
    assert m.bodies == ("Saturn", "Mars")
    assert m.strength == "moderate"

    m = _only(papa_kartari(_state({"Saturn": 340.0, "Mars": 40.0, "Jupiter": 5.0})), "papa_kartari")
    assert m.cancellation_reasons == ["Benefic in lagna"]
    assert m.strength == "weak"

    assert papa_kartari(_state({"Saturn": 340.0})) == []


def test_detection_is_independent_of_input_order():
    forward = ChartState(positions=make_positions(), ascendant_sign=3)
    reversed_positions = dict(reversed(list(make_positions().items())))
    backward = ChartState(positions=reversed_positions, ascendant_sign=3)
    a = [m.to_dict() for m in detect_patterns(forward)]
    b = [m.to_dict() for m in detect_patterns(backward)]
    assert a == b
    assert a


def test_detect_patterns_sorted_yogas_first():
    matches = detect_patterns(ChartState(positions=make_positions(NATAL), ascendant_sign=3))
    categories = [m.category for m in matches]
    assert categories == sorted(categories, key=lambda c: 0 if c == "yoga" else 1)
    counts = summarize(matches)
    assert sum(counts.values()) == len(matches)


def test_nadi_same_nakshatra_different_pada():
    found = matching_doshas(resolve_position("Moon", 1.0), resolve_position("Moon", 4.0))
    assert [m.kind for m in found] == ["nadi"]
    assert found[0].details["nadi"] == "adi"
    assert found[0].strength == "moderate"
    assert found[0].cancellation_reasons == ["same nakshatra, different pada"]


def test_bhakoot_and_gana_six_eight():
    found = matching_doshas(resolve_position("Moon", 1.0), resolve_position("Moon", 175.0))
    assert [m.kind for m in found] == ["bhakoot", "gana"]
    bhakoot, gana = found
    assert bhakoot.details["pair"] == "6-8"
    assert bhakoot.details["house_from_first"] == 6
    assert bhakoot.strength == "strong"
    assert gana.details["ganas"] == ["deva", "rakshasa"]
    assert gana.strength == "strong"
