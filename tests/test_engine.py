from datetime import datetime

from release_intelligence.engine import QualityPipelineEngine, approved_test_files, build_feature_mappings
from release_intelligence.schemas import (
    ApprovedTestRecord,
    FeatureRecord,
    TestResults as RunResults,
    ValidationDecision,
    ValidationStats,
)
from review_workflow import ValidationWorkflow


def approved(test_name, feature_name):
    return ApprovedTestRecord(test_name=test_name, feature_name=feature_name, timestamp=datetime(2025, 3, 1))


class TestMappings:

    def test_feature_names_match_case_insensitively(self):
        files = approved_test_files([approved("checkout-happy", "Checkout"), approved("orphan", None)])
        assert files == {"checkout": ["checkout-happy"]}

    def test_untested_feature(self):
        engine = QualityPipelineEngine()
        classifications = engine.classify([FeatureRecord(id="1", name="CHECKOUT"), FeatureRecord(id="2", name="FAQ")])
        mappings = build_feature_mappings(classifications, {"checkout": ["checkout-happy"]})
        assert [(m.feature_name, m.is_tested) for m in mappings] == [("CHECKOUT", True), ("FAQ", False)]


class TestRun:

    def test_run_end_to_end(self, good_draft):
        features = [
            FeatureRecord(id="checkout", name="Checkout", risk_level="critical"),
            FeatureRecord(id="cart", name="Cart", risk_level="high"),
            FeatureRecord(id="profile", name="Profile"),
            FeatureRecord(id="faq", name="FAQ", risk_level="low"),
        ]
        approved_tests = [approved(name, name) for name in ("Checkout", "Cart", "Profile", "FAQ")]
        result = QualityPipelineEngine().run(
            build_id="build-42",
            features=features,
            test_sources={"Checkout": good_draft},
            approved_tests=approved_tests,
            test_results=RunResults(total_tests=10, passed_tests=10),
            calculated_at=datetime(2025, 3, 15),
        )
        assert result["build_id"] == "build-42"
        assert result["coverage"]["riskWeightedCoverage"] == 100
        assert result["confidence"]["overallScore"] == 100
        assert result["gates"]["overallPassed"] is True
        assert "### Quality Gates: PASSED" in result["pr_comment"]

    def test_run_blocks_untested_critical(self, good_draft):
        result = QualityPipelineEngine().run(
            build_id="build-43",
            features=[FeatureRecord(id="checkout", name="Checkout")],
            test_sources={"Checkout": good_draft},
            approved_tests=[],
            test_results=RunResults(total_tests=10, passed_tests=10),
        )
        assert result["confidence"]["recommendation"] == "blocked"
        assert result["gates"]["blockers"] == ["Risk coverage (0/100) below threshold (80/100)"]


class TestValidationHistory:

    def run_checkout(self, engine, good_draft, **kwargs):
        return engine.run(
            build_id="build-44",
            features=[FeatureRecord(id="checkout", name="Checkout", risk_level="critical")],
            test_sources={"Checkout": good_draft},
            approved_tests=[approved("Checkout", "Checkout")],
            test_results=RunResults(total_tests=10, passed_tests=10),
            **kwargs,
        )

    def test_stored_decisions_drive_human_validation(self, tracker, approved_store, good_draft):
        workflow = ValidationWorkflow(rejection_tracker=tracker, approved_store=approved_store)
        workflow.record_decision(ValidationDecision(test_name="Checkout", approved=True), feature_name="Checkout")
        for index in range(9):
            workflow.record_decision(
                ValidationDecision(test_name=f"draft-{index}", approved=False, rejection_reason="poor-selectors")
            )

        engine = QualityPipelineEngine(validation_history=workflow.history_stats)
        human = self.run_checkout(engine, good_draft)["confidence"]["components"]["humanValidationRate"]
        assert human["score"] == 10
        assert human["status"] == "poor"

    def test_explicit_stats_win_over_history(self, tracker, approved_store, good_draft):
        workflow = ValidationWorkflow(rejection_tracker=tracker, approved_store=approved_store)
        workflow.record_decision(ValidationDecision(test_name="x", approved=False))

        engine = QualityPipelineEngine(validation_history=workflow.history_stats)
        result = self.run_checkout(
            engine, good_draft, validation_stats=ValidationStats(total_validations=4, approved_tests=3)
        )
        assert result["confidence"]["components"]["humanValidationRate"]["score"] == 75

    def test_without_history_counts_as_full(self, good_draft):
        result = self.run_checkout(QualityPipelineEngine(), good_draft)
        assert result["confidence"]["components"]["humanValidationRate"]["score"] == 100
