"""
Static quality scoring for generated end-to-end test drafts.

The scorer only pattern-matches the source text; it never parses or executes
it. Each of the five checks starts from 100 and applies fixed deductions, and
every deduction records exactly one Issue so the reviewer sees why points were
lost. False positives and negatives are expected from this heuristic.
"""

import re
from typing import Dict, List, Optional

from . import config
from .schemas import Issue, QualityVector
from .utils import round_half_up

SUITE_TOKEN = "describe("
CASE_TOKEN = "it("

EDGE_CASE_RE = re.compile(r"edge|boundary|limit|empty|null|undefined|invalid", re.IGNORECASE)
ERROR_HANDLING_RE = re.compile(r"error|fail|reject|catch|should\.not", re.IGNORECASE)
SETUP_HOOK_RE = re.compile(r"beforeEach|before\(")

ASSERTION_RE = re.compile(r"\.should\(|\.expect\(")
WEAK_ASSERTION_RE = re.compile(r"should\('exist'\)|should\('be\.visible'\)")
STRONG_ASSERTION_RE = re.compile(r"should\('equal'|should\('contain'|should\('have\.length'")

# timeout/wait arguments are expected to carry large numbers
TIMING_LITERAL_RE = re.compile(r"(?:timeout|wait)\s*[:(=]?\s*\d+", re.IGNORECASE)
MAGIC_NUMBER_RE = re.compile(r"\d{3,}")
ABSOLUTE_URL_RE = re.compile(r"https?://")
DESCRIPTION_RE = re.compile(r"it\(['\"]([^'\"]+)['\"]")
MIN_DESCRIPTION_LENGTH = 20

FRAGILE_SELECTOR_RE = re.compile(r"\.(class|id)\(|#|\.(?!should|and|then)")
HARD_WAIT_RE = re.compile(r"cy\.wait\(\d+\)")
CUSTOM_COMMAND_RE = re.compile(r"cy\.(login|addToCart|logout)")
SHARED_STATE_RE = re.compile(r"let |var ")
ELEMENT_LOOKUP_TOKEN = "cy.get"
REPETITIVE_LOOKUP_COUNT = 10


def _clamp(score: int) -> int:
    return max(0, min(100, score))


class QualityScorer:
    """Scores generated test source into a five-dimensional QualityVector."""

    def __init__(self, weights: Optional[Dict[str, float]] = None) -> None:
        self.weights = dict(weights or config.DEFAULT_QUALITY_WEIGHTS)

    def score(self, source_text: str) -> QualityVector:
        """
        Score a test draft.

        The Issue list keeps check order: syntax, coverage, assertions,
        maintainability, best practices.
        """
        code = source_text or ""
        issues: List[Issue] = []

        syntax = self._check_syntax(code, issues)
        coverage = self._check_coverage(code, issues)
        assertions = self._check_assertions(code, issues)
        maintainability = self._check_maintainability(code, issues)
        best_practices = self._check_best_practices(code, issues)

        overall = round_half_up(
            syntax * self.weights["syntax"]
            + coverage * self.weights["coverage"]
            + assertions * self.weights["assertions"]
            + maintainability * self.weights["maintainability"]
            + best_practices * self.weights["best_practices"]
        )

        return QualityVector(
            syntax_score=syntax,
            coverage_score=coverage,
            assertion_score=assertions,
            maintainability_score=maintainability,
            best_practices_score=best_practices,
            overall_score=_clamp(overall),
            issues=tuple(issues),
        )

    def _check_syntax(self, code: str, issues: List[Issue]) -> int:
        score = 100

        if SUITE_TOKEN not in code:
            issues.append(Issue(severity="error", category="syntax", message="Missing describe block"))
            score -= 30

        if CASE_TOKEN not in code:
            issues.append(Issue(severity="error", category="syntax", message="Missing it/test block"))
            score -= 30

        if "'" in code and '"' in code:
            issues.append(Issue(severity="warning", category="syntax", message="Inconsistent quote usage"))
            score -= 5

        code_lines = [
            line.strip()
            for line in code.split("\n")
            if line.strip() and not line.strip().startswith("//")
        ]
        terminated = [line for line in code_lines if line.endswith((";", "{", "}"))]
        if len(terminated) < len(code_lines) * 0.5:
            issues.append(
                Issue(severity="info", category="syntax", message="Missing semicolons in some statements")
            )
            score -= 5

        return _clamp(score)

    def _check_coverage(self, code: str, issues: List[Issue]) -> int:
        score = 100

        if code.count(CASE_TOKEN) < 2:
            issues.append(
                Issue(
                    severity="warning",
                    category="coverage",
                    message="Only one test case found. Consider adding more scenarios.",
                )
            )
            score -= 20

        if not EDGE_CASE_RE.search(code):
            issues.append(Issue(severity="warning", category="coverage", message="No edge case testing detected"))
            score -= 15

        if not ERROR_HANDLING_RE.search(code):
            issues.append(Issue(severity="info", category="coverage", message="No error handling scenarios found"))
            score -= 10

        if not SETUP_HOOK_RE.search(code):
            issues.append(Issue(severity="info", category="coverage", message="No setup hooks (beforeEach) found"))
            score -= 5

        return _clamp(score)

    def _check_assertions(self, code: str, issues: List[Issue]) -> int:
        score = 100
        assertions = len(ASSERTION_RE.findall(code))
        cases = code.count(CASE_TOKEN)

        if assertions == 0:
            issues.append(Issue(severity="error", category="assertions", message="No assertions found in test"))
            score -= 50
        elif assertions < cases:
            issues.append(
                Issue(
                    severity="warning",
                    category="assertions",
                    message="Some test cases may be missing assertions",
                )
            )
            score -= 20

        if WEAK_ASSERTION_RE.search(code) and not STRONG_ASSERTION_RE.search(code):
            issues.append(
                Issue(
                    severity="warning",
                    category="assertions",
                    message="Only weak assertions found. Consider adding more specific assertions.",
                )
            )
            score -= 15

        if assertions / max(cases, 1) < 2:
            issues.append(
                Issue(
                    severity="info",
                    category="assertions",
                    message="Consider adding more assertions per test case",
                )
            )
            score -= 10

        return _clamp(score)

    def _check_maintainability(self, code: str, issues: List[Issue]) -> int:
        score = 100

        comment_lines = code.count("//")
        total_lines = len(code.split("\n"))
        if comment_lines / total_lines < 0.1:
            issues.append(
                Issue(
                    severity="info",
                    category="maintainability",
                    message="Consider adding more comments for clarity",
                )
            )
            score -= 10

        if MAGIC_NUMBER_RE.search(TIMING_LITERAL_RE.sub("", code)):
            issues.append(
                Issue(
                    severity="warning",
                    category="maintainability",
                    message="Magic numbers detected. Consider using constants.",
                )
            )
            score -= 15

        if ABSOLUTE_URL_RE.search(code):
            issues.append(
                Issue(
                    severity="warning",
                    category="maintainability",
                    message="Hardcoded URLs found. Use baseUrl or environment variables.",
                )
            )
            score -= 15

        descriptions = DESCRIPTION_RE.findall(code)
        if any(len(text) < MIN_DESCRIPTION_LENGTH for text in descriptions):
            issues.append(
                Issue(
                    severity="info",
                    category="maintainability",
                    message="Some test descriptions are too short",
                )
            )
            score -= 5

        return _clamp(score)

    def _check_best_practices(self, code: str, issues: List[Issue]) -> int:
        score = 100

        if "data-testid" not in code and FRAGILE_SELECTOR_RE.search(code):
            issues.append(
                Issue(
                    severity="warning",
                    category="best-practices",
                    message="Using fragile selectors. Prefer data-testid attributes.",
                )
            )
            score -= 20

        if HARD_WAIT_RE.search(code):
            issues.append(
                Issue(
                    severity="warning",
                    category="best-practices",
                    message="Hard waits detected. Use implicit waits or assertions instead.",
                )
            )
            score -= 15

        lookups = code.count(ELEMENT_LOOKUP_TOKEN)
        if lookups >= REPETITIVE_LOOKUP_COUNT and not CUSTOM_COMMAND_RE.search(code):
            issues.append(
                Issue(
                    severity="info",
                    category="best-practices",
                    message="Consider using custom commands for repetitive actions",
                )
            )
            score -= 10

        preamble = code.split("describe")[0]
        if SHARED_STATE_RE.search(preamble):
            issues.append(
                Issue(
                    severity="warning",
                    category="best-practices",
                    message="Shared state detected. Ensure proper test isolation.",
                )
            )
            score -= 15

        return _clamp(score)

    def generate_report(self, metrics: QualityVector) -> str:
        """Render the plain-text quality report shown before human review."""
        lines = [
            "Test Quality Report",
            "===================",
            f"Overall Score: {metrics.overall_score}/100",
            "",
            "Detailed Scores:",
            f"- Syntax: {metrics.syntax_score}/100",
            f"- Coverage: {metrics.coverage_score}/100",
            f"- Assertions: {metrics.assertion_score}/100",
            f"- Maintainability: {metrics.maintainability_score}/100",
            f"- Best Practices: {metrics.best_practices_score}/100",
            "",
        ]

        if not metrics.issues:
            lines.append("No issues found!")
            return "\n".join(lines) + "\n"

        lines.append(f"Issues Found ({len(metrics.issues)}):")
        for severity, heading in (("error", "Errors"), ("warning", "Warnings"), ("info", "Info")):
            grouped = [issue for issue in metrics.issues if issue.severity == severity]
            if not grouped:
                continue
            lines.append("")
            lines.append(f"{heading}:")
            lines.extend(f"  - {issue.message}" for issue in grouped)

        return "\n".join(lines) + "\n"
