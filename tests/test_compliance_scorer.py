"""Tests for the weighted compliance scorer.

Covers:
- Perfect-score default when nothing is scorable
- Severity x level weighting, rounding and risk rating
- L2 score is absent (None) when no L2 control was evaluated
- L1-only runs drop L2 controls entirely
- ERROR / SKIPPED results never count
- Category and section breakdowns, including the Unknown category
- Unknown severity / level values weigh nothing but still count
- Result is independent of input order
"""

import logging
import random

import pytest

from azure_governance_engine.config import ScoringConfig
from azure_governance_engine.scoring import calculate_compliance_score, risk_rating_for

from conftest import make_result


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

def test_empty_input_is_perfect_score():
    score = calculate_compliance_score([])
    assert score.overall_score == 100.0
    assert score.l1_score == 100.0
    assert score.l2_score is None
    assert score.scores_by_category == {}
    assert score.scores_by_section == {}
    assert score.total_checks == 0
    assert score.risk_rating == "Excellent"


def test_only_unscorable_statuses_is_perfect_score():
    findings = [
        make_result(status="ERROR"),
        make_result(status="SKIPPED"),
        make_result(status="NotApplicable"),
    ]
    score = calculate_compliance_score(findings)
    assert score.overall_score == 100.0
    assert score.total_checks == 0


def test_all_pass_scores_100():
    findings = [make_result(severity=s, status="PASS") for s in ("Critical", "High", "Medium", "Low")]
    score = calculate_compliance_score(findings)
    assert score.overall_score == 100.0
    assert score.passed_checks == 4
    assert score.failed_checks == 0


def test_all_fail_scores_0():
    findings = [make_result(severity=s, status="FAIL") for s in ("Critical", "High", "Medium", "Low")]
    score = calculate_compliance_score(findings)
    assert score.overall_score == 0.0
    assert score.l1_score == 0.0
    assert score.risk_rating == "Critical"


# ---------------------------------------------------------------------------
# Weighting
# ---------------------------------------------------------------------------

def test_critical_fail_and_low_pass():
    findings = [
        make_result("6.1", category="Network", severity="Critical", status="FAIL"),
        make_result("3.1", category="Storage", severity="Low", status="PASS"),
    ]
    score = calculate_compliance_score(findings)
    # 1 / (10 + 1)
    assert score.overall_score == 9.09
    assert score.scores_by_category == {"Network": 0.0, "Storage": 100.0}
    assert score.scores_by_section == {"3": 100.0, "6": 0.0}
    assert score.total_checks == 2
    assert score.passed_checks == 1
    assert score.failed_checks == 1


def test_l2_multiplier_applies_to_overall():
    findings = [
        make_result("6.1", severity="High", cis_level="L1", status="PASS"),
        make_result("6.4", severity="High", cis_level="L2", status="FAIL"),
    ]
    score = calculate_compliance_score(findings)
    # 7 / (7 + 7 * 0.8)
    assert score.overall_score == 55.56
    assert score.l1_score == 100.0
    assert score.l2_score == 0.0


def test_injected_weights_are_used():
    config = ScoringConfig(
        severity_weights={"High": 1, "Low": 3},
        level_multipliers={"L1": 1.0, "L2": 1.0},
    )
    findings = [
        make_result(severity="High", status="FAIL"),
        make_result(severity="Low", status="PASS"),
    ]
    score = calculate_compliance_score(findings, config=config)
    assert score.overall_score == 75.0


def test_case_insensitive_values():
    findings = [
        make_result(severity="CRITICAL", cis_level="l1", status="pass"),
        make_result(severity="low", cis_level="L2", status="Fail"),
    ]
    score = calculate_compliance_score(findings)
    assert score.total_checks == 2
    # 10 / (10 + 0.8)
    assert score.overall_score == 92.59
    assert score.l2_score == 0.0


# ---------------------------------------------------------------------------
# Levels
# ---------------------------------------------------------------------------

def test_l2_score_is_none_without_l2_controls():
    score = calculate_compliance_score([make_result(cis_level="L1", status="FAIL")])
    assert score.l2_score is None


def test_l2_score_100_when_all_l2_pass():
    score = calculate_compliance_score([make_result(cis_level="L2", status="PASS")])
    assert score.l2_score == 100.0
    # No L1 controls evaluated
    assert score.l1_score == 100.0


def test_l1_only_excludes_l2_everywhere():
    findings = [
        make_result("6.1", category="Networking", cis_level="L1", status="PASS"),
        make_result("6.4", category="Networking", cis_level="L2", status="FAIL"),
        make_result("3.9", category="Storage", cis_level="L2", status="FAIL"),
    ]
    score = calculate_compliance_score(findings, include_level2=False)
    assert score.overall_score == 100.0
    assert score.l2_score is None
    assert score.total_checks == 1
    assert score.scores_by_category == {"Networking": 100.0}
    assert score.scores_by_section == {"6": 100.0}


# ---------------------------------------------------------------------------
# Breakdowns
# ---------------------------------------------------------------------------

def test_blank_category_groups_as_unknown():
    findings = [
        make_result(category="", status="FAIL"),
        make_result(category="   ", status="PASS"),
    ]
    score = calculate_compliance_score(findings)
    assert list(score.scores_by_category) == ["Unknown"]
    assert score.scores_by_category["Unknown"] == 50.0


def test_sections_sort_numerically():
    findings = [
        make_result("10.1", status="PASS"),
        make_result("2.3", status="PASS"),
        make_result("AZ-NET.1", status="FAIL"),
        make_result("", status="PASS"),
    ]
    score = calculate_compliance_score(findings)
    assert list(score.scores_by_section) == ["2", "10", "AZ-NET", "Unknown"]
    assert score.scores_by_section["AZ-NET"] == 0.0


def test_error_and_skipped_do_not_affect_score():
    base = [make_result(severity="High", status="PASS"), make_result(severity="Low", status="FAIL")]
    noisy = base + [
        make_result(severity="Critical", status="ERROR"),
        make_result(severity="Critical", status="SKIPPED"),
    ]
    assert calculate_compliance_score(noisy).to_dict() == calculate_compliance_score(base).to_dict()


# ---------------------------------------------------------------------------
# Unknown values
# ---------------------------------------------------------------------------

def test_unknown_severity_weighs_zero_but_counts(caplog):
    findings = [
        make_result(severity="High", status="PASS"),
        make_result(severity="Informational", status="FAIL"),
        make_result(severity="Informational", status="FAIL"),
    ]
    with caplog.at_level(logging.WARNING, logger="azure_governance_engine.scoring"):
        score = calculate_compliance_score(findings)
    assert score.overall_score == 100.0
    assert score.total_checks == 3
    assert score.failed_checks == 2
    warnings = [r for r in caplog.records if "Unknown severity" in r.getMessage()]
    assert len(warnings) == 1


def test_unknown_level_weighs_zero():
    findings = [
        make_result(cis_level="L3", status="FAIL"),
        make_result(cis_level="L1", status="PASS"),
    ]
    score = calculate_compliance_score(findings)
    assert score.overall_score == 100.0
    assert score.total_checks == 2


def test_only_zero_weight_findings_is_perfect_score():
    score = calculate_compliance_score([make_result(severity="Info", status="FAIL")])
    assert score.overall_score == 100.0
    assert score.total_checks == 1


# ---------------------------------------------------------------------------
# Determinism
# ---------------------------------------------------------------------------

def test_order_independent():
    severities = ["Critical", "High", "Medium", "Low"]
    findings = [
        make_result(
            f"{i % 9 + 1}.{i}",
            category=f"cat{i % 4}",
            severity=severities[i % 4],
            cis_level="L2" if i % 3 == 0 else "L1",
            status="PASS" if i % 5 else "FAIL",
        )
        for i in range(60)
    ]
    expected = calculate_compliance_score(findings).to_dict()
    shuffled = list(findings)
    random.Random(7).shuffle(shuffled)
    assert calculate_compliance_score(shuffled).to_dict() == expected


@pytest.mark.parametrize("value, rating", [
    (100.0, "Excellent"),
    (90.0, "Excellent"),
    (89.99, "Good"),
    (65.0, "Moderate"),
    (50.0, "Concerning"),
    (35.0, "Poor"),
    (9.09, "Critical"),
])
def test_risk_rating(value, rating):
    assert risk_rating_for(value) == rating
