import pytest

from release_intelligence.quality_scorer import QualityScorer


@pytest.fixture
def scorer():
    return QualityScorer()


class TestScoreBounds:

    @pytest.mark.parametrize(
        "source",
        ["", "   ", "describe(", "it('x')", "cy.wait(500)\n" * 40, "let a = 1;\nvar b = 2;\n"],
    )
    def test_every_subscore_in_range(self, scorer, source):
        metrics = scorer.score(source)
        for value in (
            metrics.syntax_score,
            metrics.coverage_score,
            metrics.assertion_score,
            metrics.maintainability_score,
            metrics.best_practices_score,
            metrics.overall_score,
        ):
            assert 0 <= value <= 100

    def test_same_input_same_output(self, scorer, good_draft):
        assert scorer.score(good_draft) == scorer.score(good_draft)


class TestChecks:

    def test_clean_draft_scores_full_marks(self, scorer, good_draft):
        metrics = scorer.score(good_draft)
        assert metrics.overall_score == 100
        assert metrics.issues == ()

    def test_empty_source(self, scorer):
        metrics = scorer.score("")
        assert metrics.syntax_score == 40
        assert metrics.coverage_score == 50
        assert metrics.assertion_score == 40
        assert metrics.maintainability_score == 90
        assert metrics.best_practices_score == 100
        assert metrics.overall_score == 59

    def test_missing_suite_is_an_error(self, scorer):
        metrics = scorer.score("it('does a thing', () => { cy.get('a').should('exist'); });")
        messages = [issue.message for issue in metrics.issues if issue.severity == "error"]
        assert "Missing describe block" in messages
        assert metrics.syntax_score <= 70

    def test_issue_order_follows_checks(self, scorer):
        categories = [issue.category for issue in scorer.score("").issues]
        order = ["syntax", "coverage", "assertions", "maintainability", "best-practices"]
        ranks = [order.index(category) for category in categories]
        assert ranks == sorted(ranks)

    def test_hard_wait_is_flagged(self, scorer, good_draft):
        metrics = scorer.score(good_draft.replace("cy.login();", "cy.wait(500);"))
        assert metrics.best_practices_score == 85
        assert any("Hard waits" in issue.message for issue in metrics.issues)

    def test_timeout_values_are_not_magic_numbers(self, scorer, good_draft):
        source = good_draft.replace("cy.login();", "cy.get('[data-testid=cart]', { timeout: 10000 });")
        metrics = scorer.score(source)
        assert not any("Magic numbers" in issue.message for issue in metrics.issues)

    def test_short_description_is_flagged(self, scorer, good_draft):
        source = good_draft.replace("should place an order with valid payment details", "pays")
        metrics = scorer.score(source)
        assert metrics.maintainability_score == 95

    def test_shared_state_before_suite(self, scorer, good_draft):
        metrics = scorer.score("let order;\n" + good_draft)
        assert any("Shared state" in issue.message for issue in metrics.issues)


class TestReport:

    def test_clean_report(self, scorer, good_draft):
        report = scorer.generate_report(scorer.score(good_draft))
        assert "Overall Score: 100/100" in report
        assert "No issues found!" in report

    def test_issues_grouped_by_severity(self, scorer):
        report = scorer.generate_report(scorer.score(""))
        assert report.index("Errors:") < report.index("Warnings:") < report.index("Info:")
