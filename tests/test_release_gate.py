import pytest

from conftest import make_input
from release_intelligence.config import GateThresholds
from release_intelligence.release_confidence import ReleaseConfidenceScorer
from release_intelligence.release_gate import PRValidationGate


@pytest.fixture
def gate():
    return PRValidationGate()


def confidence_for(passed, coverage, qualities):
    return ReleaseConfidenceScorer().calculate(make_input(passed, coverage, qualities))


class TestValidate:

    def test_all_gates_pass(self, gate):
        result = gate.validate(confidence_for(100, 100, [100]))
        assert result.overall_passed
        assert result.blockers == []
        assert result.warnings == []
        assert [g.gate_name for g in result.gates] == [
            "Test Pass Rate",
            "Risk Coverage",
            "Test Quality",
            "Overall Confidence",
        ]

    def test_low_quality_only_warns(self, gate):
        result = gate.validate(confidence_for(100, 100, [65]))
        assert result.overall_passed
        assert result.blockers == []
        assert result.warnings == ["Test quality (65/100) below threshold (70/100)"]

    def test_low_pass_rate_blocks(self, gate):
        result = gate.validate(confidence_for(70, 100, [100]))
        assert not result.overall_passed
        assert result.blockers == ["Test pass rate (70%) below threshold (80%)"]

    def test_threshold_is_inclusive(self, gate):
        result = gate.validate(confidence_for(80, 80, [70]))
        assert all(g.passed for g in result.gates[:3])

    def test_custom_thresholds(self):
        gate = PRValidationGate(GateThresholds(min_test_pass_rate=100))
        result = gate.validate(confidence_for(90, 100, [100]))
        assert not result.overall_passed


class TestComment:

    def test_comment_layout(self, gate):
        result = gate.validate(confidence_for(70, 100, [65]))
        comment = PRValidationGate.generate_pr_comment(result)
        assert "### Quality Gates: FAILED" in comment
        assert "| Gate | Status | Score | Threshold |" in comment
        assert "| Test Pass Rate | Fail | 70 | 80 |" in comment
        assert "### Blockers" in comment
        assert "### Warnings" in comment
        assert "### Component Breakdown" in comment

    def test_passing_comment_has_no_blockers(self, gate):
        comment = PRValidationGate.generate_pr_comment(gate.validate(confidence_for(100, 100, [100])))
        assert "### Quality Gates: PASSED" in comment
        assert "### Blockers" not in comment
