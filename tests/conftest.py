from datetime import datetime

import pytest

from release_intelligence.schemas import (
    CoverageMetrics,
    FeatureTestMapping,
    QualityVector,
    ReleaseConfidenceInput,
    RiskClassification,
    RiskCoverage,
    ValidationStats,
)
from review_workflow import RecordStore, RejectionTracker

GOOD_DRAFT = """// Checkout flow edge cases and error handling
describe('Checkout', () => {
  // signed-in shopper with a seeded cart
  beforeEach(() => {
    cy.login();
  });

  // happy path for a valid order
  it('should place an order with valid payment details', () => {
    cy.get('[data-testid=pay-button]').click();
    cy.get('[data-testid=status]').should('contain', 'Order placed');
    cy.get('[data-testid=items]').should('have.length', 2);
    cy.get('[data-testid=total]').should('contain', '$');
  });

  // invalid card is rejected with an error
  it('should show an error for an invalid card number', () => {
    cy.get('[data-testid=card]').type('abcd');
    cy.get('[data-testid=error]').should('contain', 'Invalid card');
    cy.get('[data-testid=pay-button]').should('be.disabled');
    cy.url().should('include', '/checkout');
  });
});
"""


def make_classification(name: str, level: str = "medium", score: int = 50) -> RiskClassification:
    return RiskClassification(feature_name=name, risk_level=level, risk_score=score)


def make_mapping(name: str, level: str, tested: bool, score: int = 50) -> FeatureTestMapping:
    return FeatureTestMapping(
        feature_name=name,
        risk_classification=make_classification(name, level, score),
        test_files=[f"{name.lower()}.cy.ts"] if tested else [],
        is_tested=tested,
    )


def make_coverage(risk_weighted: int) -> CoverageMetrics:
    empty = RiskCoverage(total_features=0, tested_features=0, coverage_percentage=0.0)
    return CoverageMetrics(
        total_features=0,
        tested_features=0,
        coverage_by_risk={level: empty for level in ("critical", "high", "medium", "low")},
        overall_coverage=0.0,
        risk_weighted_coverage=risk_weighted,
    )


def make_vector(overall: int) -> QualityVector:
    return QualityVector(
        syntax_score=overall,
        coverage_score=overall,
        assertion_score=overall,
        maintainability_score=overall,
        best_practices_score=overall,
        overall_score=overall,
    )


def make_input(passed, coverage, qualities, approved=0, validations=0, total=100) -> ReleaseConfidenceInput:
    return ReleaseConfidenceInput(
        test_results={"total_tests": total, "passed_tests": passed, "failed_tests": total - passed},
        coverage_metrics=make_coverage(coverage),
        quality_metrics=[make_vector(q) for q in qualities],
        validation_stats=ValidationStats(total_validations=validations, approved_tests=approved),
    )


@pytest.fixture
def good_draft():
    return GOOD_DRAFT


@pytest.fixture
def fixed_now():
    return datetime(2025, 3, 15, 12, 0, 0)


@pytest.fixture
def rejection_store(tmp_path):
    return RecordStore(path=tmp_path / "rejection-tracking.json")


@pytest.fixture
def approved_store(tmp_path):
    return RecordStore(path=tmp_path / "approved-tests.json")


@pytest.fixture
def tracker(rejection_store, fixed_now):
    return RejectionTracker(rejection_store, today=lambda: fixed_now.date())
