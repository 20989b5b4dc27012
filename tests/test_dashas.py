from datetime import datetime, timedelta, timezone

import pytest

from conftest import make_positions
from kundli.services.constants import NAKSHATRA_SPAN
from kundli.services.dasha_systems import (
    ASHTOTTARI,
    VIMSHOTTARI,
    YOGINI,
    ashtottari_applicability,
    ashtottari_group,
    chara_sequence,
    chara_system,
    chara_years,
    compute_dasha,
    yogini_index,
)
from kundli.services.dashas import SIDEREAL_YEAR_DAYS, compute_timeline, find_period, iter_periods
from kundli.services.errors import ConfigurationError, MissingBodiesError

BIRTH = datetime(1990, 8, 18, 9, 2, tzinfo=timezone.utc)


def _years(period):
    return (period.end - period.start).total_seconds() / 86400.0 / SIDEREAL_YEAR_DAYS


def _assert_tiles(periods):
    for parent in periods:
        if not parent.children:
            continue
        assert parent.children[0].start == parent.start
        assert parent.children[-1].end == parent.end
        for a, b in zip(parent.children, parent.children[1:]):
            assert a.end == b.start
        _assert_tiles(parent.children)


def test_vimshottari_start_of_ashwini():
    timeline = compute_timeline(VIMSHOTTARI, 0.0, BIRTH, levels=1)
    assert timeline.birth_ruler == "Ketu"
    assert timeline.balance == pytest.approx(1.0)
    first = timeline.periods[0]
    assert first.ruler == "Ketu"
    assert _years(first) == pytest.approx(7.0)
    assert [p.ruler for p in timeline.periods[:3]] == ["Ketu", "Venus", "Sun"]


def test_vimshottari_balance_from_moon_degree():
    # three quarters of Ashwini already traversed
    timeline = compute_timeline(VIMSHOTTARI, NAKSHATRA_SPAN * 0.75, BIRTH, levels=1)
    assert timeline.balance == pytest.approx(0.25)
    assert _years(timeline.periods[0]) == pytest.approx(1.75)


def test_children_tile_parents_exactly():
    timeline = compute_timeline(VIMSHOTTARI, 45.0, BIRTH, levels=3)
    _assert_tiles(timeline.periods)
    maha = timeline.periods[1]
    assert [c.ruler for c in maha.children][0] == maha.ruler
    assert len(maha.children) == 9


def test_horizon_never_below_a_century():
    timeline = compute_timeline(VIMSHOTTARI, 45.0, BIRTH, levels=1, horizon_years=40)
    assert sum(_years(p) for p in timeline.periods) >= 100.0 - 1e-6


def test_levels_outside_system_depth_raise():
    with pytest.raises(ConfigurationError):
        compute_timeline(YOGINI, 45.0, BIRTH, levels=3)
    with pytest.raises(ConfigurationError):
        compute_timeline(VIMSHOTTARI, 45.0, BIRTH, levels=0)


def test_active_chain_and_now_flag():
    now = BIRTH + timedelta(days=3650)
    timeline = compute_timeline(VIMSHOTTARI, 45.0, BIRTH, now=now, levels=3)
    chain = timeline.active_chain(now)
    assert [p.level for p in chain] == [1, 2, 3]
    assert all(p.is_active for p in chain)
    assert sum(1 for p in iter_periods(timeline.periods) if p.is_active) == 3
    assert find_period(timeline.periods, now, level=2) == chain[1]


def test_without_now_nothing_is_active():
    timeline = compute_timeline(VIMSHOTTARI, 45.0, BIRTH, levels=2)
    assert not any(p.is_active for p in iter_periods(timeline.periods))


def test_yogini_mapping():
    assert yogini_index(0) == 3  # Ashwini -> Bhramari
    assert yogini_index(4) == 7  # Mrigashira -> Sankata
    assert yogini_index(5) == 0  # Ardra -> Mangala
    timeline = compute_timeline(YOGINI, 0.0, BIRTH, levels=1)
    assert timeline.birth_ruler == "Bhramari"
    assert timeline.periods[0].lord == "Mars"
    assert YOGINI.total == 36


def test_ashtottari_groups_from_ardra():
    assert ashtottari_group(5)[0] == "Sun"
    assert ashtottari_group(9)[0] == "Moon"
    assert ashtottari_group(4)[0] == "Venus"
    assert ASHTOTTARI.total == 108
    timeline = compute_timeline(ASHTOTTARI, 5 * NAKSHATRA_SPAN + 0.01, BIRTH, levels=1)
    assert timeline.birth_ruler == "Sun"
    assert timeline.balance == pytest.approx(1.0, abs=1e-3)


def test_chara_sequence_directions():
    assert chara_sequence(0)[:3] == [0, 1, 2]       # movable forward
    assert chara_sequence(1)[:3] == [1, 0, 11]      # fixed backward
    assert chara_sequence(2)[:5] == [2, 3, 1, 4, 0]  # dual alternates
    assert sorted(chara_sequence(2)) == list(range(12))


def test_chara_years_from_lord_distance():
    assert chara_years(0, {"Mars": 3}) == 4
    assert chara_years(0, {}) == 1
    assert chara_years(0, {"Mars": 0}) == 1


def test_chara_system_uses_ascendant(positions):
    system = chara_system(positions)
    assert system.anchor == "Ascendant"
    timeline = compute_dasha("chara", positions, 95.0, BIRTH, levels=2)
    assert timeline.birth_ruler == "Cancer"
    assert timeline.details["sign_years"]["Cancer"] >= 1
    _assert_tiles(timeline.periods)


def test_missing_anchor_raises(positions):
    without_moon = {b: p for b, p in positions.items() if b != "Moon"}
    with pytest.raises(MissingBodiesError):
        compute_dasha("vimshottari", without_moon, 95.0, BIRTH)
    with pytest.raises(MissingBodiesError):
        compute_dasha("chara", positions, None, BIRTH)


def test_levels_clamped_on_request(positions):
    timeline = compute_dasha("yogini", positions, 95.0, BIRTH, levels=3, clamp_levels=True)
    assert timeline.levels == 2
    with pytest.raises(ConfigurationError):
        compute_dasha("yogini", positions, 95.0, BIRTH, levels=3)


def test_unknown_system(positions):
    with pytest.raises(ConfigurationError):
        compute_dasha("kalachakra", positions, 95.0, BIRTH)


def test_ashtottari_applicability():
    # lagna Cancer, lord Moon in Taurus; Rahu in Scorpio is 7th from Taurus
    positions = make_positions({"Moon": 45.0, "Rahu": 220.0})
    info = ashtottari_applicability(positions, 95.0)
    assert info["applicable"] is True
    assert info["lagna_lord"] == "Moon"
    assert ashtottari_applicability(positions, None)["applicable"] is None
