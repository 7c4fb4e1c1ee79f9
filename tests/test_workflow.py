import pytest

from conftest import make_vector
from release_intelligence.config import WorkflowConfig
from release_intelligence.schemas import GeneratedTest, ValidationDecision
from review_workflow import RecordStore, ValidationWorkflow


class FailingStore(RecordStore):
    def append(self, record):
        raise OSError("disk full")


@pytest.fixture
def workflow(tracker, approved_store):
    return ValidationWorkflow(WorkflowConfig(auto_approve_threshold=85), tracker, approved_store)


def draft(name="Checkout"):
    return GeneratedTest(test_code="describe('Checkout', () => {});", test_name=name)


class TestAutoValidation:

    def test_threshold_is_inclusive(self, workflow):
        decision = workflow.validate_test(draft(), make_vector(85))
        assert decision.approved
        assert decision.reviewed_by == "auto-validator"

    def test_below_threshold_is_pending(self, workflow):
        decision = workflow.validate_test(draft(), make_vector(84))
        assert not decision.approved
        assert decision.rejection_reason == "other"
        assert decision.reviewer_comments == "Pending manual review"

    def test_batch(self, workflow):
        decisions = workflow.validate_batch([(draft("a"), make_vector(90)), (draft("b"), make_vector(10))])
        assert [d.approved for d in decisions] == [True, False]
        assert workflow.validation_stats().total_validations == 0


class TestRecording:

    def test_stats_follow_recorded_decisions(self, workflow, tracker):
        workflow.record_decision(workflow.validate_test(draft("a"), make_vector(95)), feature_name="Checkout")
        workflow.record_decision(
            ValidationDecision(test_name="b", approved=True), feature_name="Cart", risk_level="high", quality_score=80
        )
        workflow.record_decision(
            ValidationDecision(test_name="c", approved=False, rejection_reason="poor-selectors", reviewer_comments="css")
        )
        stats = workflow.validation_stats()
        assert (stats.total_validations, stats.approved_tests, stats.rejected_tests, stats.auto_approved_tests) == (
            3,
            2,
            1,
            1,
        )
        assert [r.test_name for r in workflow.approved_tests()] == ["a", "b"]
        assert workflow.approved_tests()[1].risk_level == "high"
        assert [r.test_name for r in tracker.get_all_rejections()] == ["c"]
        assert len(workflow.decisions) == 3

    def test_failed_write_does_not_count(self, tracker, tmp_path):
        workflow = ValidationWorkflow(WorkflowConfig(), tracker, FailingStore(path=tmp_path / "approved.json"))
        with pytest.raises(OSError):
            workflow.record_decision(ValidationDecision(test_name="a", approved=True))
        assert workflow.validation_stats().total_validations == 0
        assert workflow.decisions == []

    def test_summary_line(self, workflow):
        workflow.record_decision(ValidationDecision(test_name="a", approved=False))
        assert "1 reviewed, 0 approved (0 auto), 1 rejected" in workflow.session_summary()


class TestHistoryStats:

    def test_counts_span_sessions(self, tracker, approved_store):
        first = ValidationWorkflow(WorkflowConfig(), tracker, approved_store)
        first.record_decision(first.validate_test(draft("a"), make_vector(95)))
        first.record_decision(ValidationDecision(test_name="b", approved=False, rejection_reason="syntax-errors"))

        second = ValidationWorkflow(WorkflowConfig(), tracker, approved_store)
        second.record_decision(ValidationDecision(test_name="c", approved=True))

        assert second.validation_stats().total_validations == 1
        stats = second.history_stats()
        assert (stats.total_validations, stats.approved_tests, stats.rejected_tests, stats.auto_approved_tests) == (
            3,
            2,
            1,
            1,
        )

    def test_empty_stores(self, workflow):
        assert workflow.history_stats().total_validations == 0

    def test_malformed_rows_are_not_counted(self, workflow, approved_store, rejection_store):
        approved_store.save([{"testName": "ok", "timestamp": "2025-03-01T10:00:00"}, {"bogus": True}])
        rejection_store.save([{"testName": "bad"}])
        stats = workflow.history_stats()
        assert (stats.total_validations, stats.approved_tests, stats.rejected_tests) == (1, 1, 0)
