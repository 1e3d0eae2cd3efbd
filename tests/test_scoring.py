from dataclasses import replace

import pytest

from scorecard.errors import UnknownEmployeeError
from scorecard.filters import ScoringSettings
from scorecard.models import Employee, KpiDefinition, PeriodRecord
from scorecard.scoring import (
    bonus_for,
    compute_bonus,
    compute_score,
    estimate_bonus,
    performance_tag,
    weighted_score,
    weights_balanced,
)

KPIS = (
    KpiDefinition(id="rev", team="Sales", weight=0.6),
    KpiDefinition(id="nps", team="Sales", weight=0.4),
)


def test_weighted_score():
    assert weighted_score({"rev": 0.9, "nps": 0.5}, KPIS) == pytest.approx(0.74)


def test_unknown_kpis_are_excluded_from_denominator():
    assert weighted_score({"rev": 0.9, "other": 5.0}, KPIS) == pytest.approx(0.9)


def test_zero_total_weight_scores_zero():
    assert weighted_score({"other": 1.0}, KPIS) == 0.0
    assert weighted_score({}, KPIS) == 0.0


def test_scaling_weights_keeps_score():
    scaled = tuple(replace(k, weight=k.weight * 3) for k in KPIS)
    ach = {"rev": 0.82, "nps": 1.1}
    assert weighted_score(ach, scaled) == pytest.approx(weighted_score(ach, KPIS))


def test_first_kpi_definition_wins():
    dup = KPIS + (KpiDefinition(id="rev", team="Sales", weight=10.0),)
    assert weighted_score({"rev": 0.9, "nps": 0.5}, dup) == pytest.approx(0.74)


@pytest.mark.parametrize("achievement, expected", [(1.2, 12000.0), (0.8, 8000.0), (2.0, 15000.0)])
def test_bonus_is_capped(achievement, expected):
    assert estimate_bonus(50000, 0.2, achievement) == pytest.approx(expected)


def test_negative_achievement_is_not_floored():
    assert compute_bonus(10000, 0.1, -0.5) == pytest.approx(-500.0)


def test_bonus_cap_from_settings():
    assert estimate_bonus(50000, 0.2, 2.0, ScoringSettings(bonus_cap=2.0)) == pytest.approx(20000.0)


@pytest.mark.parametrize(
    "score, tag",
    [(0.9, "Great"), (0.95, "Great"), (0.8999, "Average"), (0.7, "Average"), (0.6999, "Needs attention"), (0.0, "Needs attention")],
)
def test_performance_tag_boundaries(score, tag):
    assert performance_tag(score) == tag


def test_recorded_bonus_wins_including_zero():
    emp = Employee(
        id="E1",
        team="Sales",
        base_salary=50000,
        bonus_target_pct=0.2,
        history=(
            PeriodRecord(period="Q3 '25", score=1.0, bonus_paid=0.0),
            PeriodRecord(period="Q2 '25", score=0.5, bonus_paid=None),
        ),
    )
    assert bonus_for(emp, "Q3 '25") == 0.0
    assert bonus_for(emp, "Q2 '25") == pytest.approx(5000.0)
    assert bonus_for(emp, "Q1 '25") == 0.0


def test_weights_balanced():
    assert weights_balanced(KPIS)
    assert not weights_balanced(KPIS[:1])


def test_compute_score(graph):
    assert compute_score(graph, "E1", "Q3 '25") == pytest.approx(0.74)
    assert compute_score(graph, "E1", "Q4 '24") == 0.0
    with pytest.raises(UnknownEmployeeError):
        compute_score(graph, "nobody", "Q3 '25")
