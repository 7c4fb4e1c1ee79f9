"""
Order tests for execution using risk, recency, failure history and duration.
Every strategy renumbers execution_order 1..N after a stable sort.
"""

from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from . import config
from .schemas import TestInfo, TestPriority
from .utils import round_half_up

_SECONDS_PER_DAY = 60 * 60 * 24


def _days_since(modified: Optional[datetime], now: datetime) -> float:
    if modified is None:
        return float(config.STALE_DAYS)
    if modified.tzinfo is not None and now.tzinfo is None:
        now = now.astimezone()
    elif modified.tzinfo is None and now.tzinfo is not None:
        modified = modified.astimezone()
    return (now - modified).total_seconds() / _SECONDS_PER_DAY


def _recency_score(days: float) -> float:
    return max(0.0, 100 - days * 5)


def _execution_time_score(execution_time: Optional[float]) -> float:
    if not execution_time:
        return 50.0
    return max(0.0, 100 - (execution_time / config.BASELINE_EXECUTION_MS) * 50)


def _renumber(priorities: List[TestPriority]) -> List[TestPriority]:
    return [
        item.model_copy(update={"execution_order": index})
        for index, item in enumerate(priorities, start=1)
    ]


class TestPrioritizer:
    """Builds ranked execution plans from the same TestInfo input."""

    __test__ = False  # not a pytest test class

    def __init__(self, now: Optional[Callable[[], datetime]] = None) -> None:
        self._now = now or (lambda: datetime.now(timezone.utc))

    def prioritize(self, tests: List[TestInfo], strategy: str = "smart") -> List[TestPriority]:
        strategies: Dict[str, Callable[[List[TestInfo]], List[TestPriority]]] = {
            "risk": self.prioritize_by_risk,
            "changes": self.prioritize_by_changes,
            "failure-rate": self.prioritize_by_failure_rate,
            "smart": self.smart_prioritize,
        }
        try:
            return strategies[strategy](tests)
        except KeyError:
            raise ValueError(
                f"Unknown prioritization strategy {strategy!r}; expected one of {sorted(strategies)}"
            ) from None

    def prioritize_by_risk(self, tests: List[TestInfo]) -> List[TestPriority]:
        ranked = [
            TestPriority(
                test_name=test.name,
                priority=config.PRIORITY_RISK_WEIGHTS[test.risk_classification.risk_level],
                risk_level=test.risk_classification.risk_level,
                execution_order=index,
                reason=f"Risk level: {test.risk_classification.risk_level}",
                file_path=test.file_path,
            )
            for index, test in enumerate(tests, start=1)
        ]
        ranked.sort(key=lambda item: item.priority, reverse=True)
        return _renumber(ranked)

    def prioritize_by_changes(self, tests: List[TestInfo]) -> List[TestPriority]:
        now = self._now()
        ranked = []
        for index, test in enumerate(tests, start=1):
            days = _days_since(test.last_modified, now)
            reason = (
                f"Modified {round_half_up(days)} days ago"
                if test.last_modified is not None
                else "No modification date recorded"
            )
            ranked.append(
                TestPriority(
                    test_name=test.name,
                    priority=round_half_up(_recency_score(days)),
                    risk_level=test.risk_classification.risk_level,
                    execution_order=index,
                    reason=reason,
                    file_path=test.file_path,
                )
            )
        ranked.sort(key=lambda item: item.priority, reverse=True)
        return _renumber(ranked)

    def prioritize_by_failure_rate(self, tests: List[TestInfo]) -> List[TestPriority]:
        ranked = []
        for index, test in enumerate(tests, start=1):
            failure_rate = test.failure_rate or 0.0
            ranked.append(
                TestPriority(
                    test_name=test.name,
                    priority=round_half_up(failure_rate * 100),
                    risk_level=test.risk_classification.risk_level,
                    execution_order=index,
                    reason=f"Failure rate: {failure_rate * 100:.1f}%",
                    file_path=test.file_path,
                )
            )
        ranked.sort(key=lambda item: item.priority, reverse=True)
        return _renumber(ranked)

    def smart_prioritize(self, tests: List[TestInfo]) -> List[TestPriority]:
        """
        Blend risk (40%), recency (30%), failure rate (20%) and speed (10%).

        Ties on the blended priority put the more severe risk level first.
        """
        now = self._now()
        weights = config.SMART_PRIORITY_WEIGHTS
        ranked = []
        for index, test in enumerate(tests, start=1):
            level = test.risk_classification.risk_level
            risk_score = config.PRIORITY_RISK_WEIGHTS[level]
            days = _days_since(test.last_modified, now)
            failure_rate = test.failure_rate or 0.0

            priority = round_half_up(
                risk_score * weights["risk"]
                + _recency_score(days) * weights["recency"]
                + failure_rate * 100 * weights["failure"]
                + _execution_time_score(test.execution_time) * weights["execution_time"]
            )

            reasons = []
            if risk_score >= 75:
                reasons.append(f"{level} risk")
            if days < 7:
                reasons.append("recently modified")
            if failure_rate > 0.1:
                reasons.append("high failure rate")

            ranked.append(
                TestPriority(
                    test_name=test.name,
                    priority=priority,
                    risk_level=level,
                    execution_order=index,
                    reason=", ".join(reasons) or "standard priority",
                    file_path=test.file_path,
                )
            )

        ranked.sort(key=lambda item: (-item.priority, config.RISK_ORDER[item.risk_level]))
        return _renumber(ranked)

    @staticmethod
    def filter_for_ci(tests: List[TestInfo], context: str) -> List[TestInfo]:
        """
        Narrow the candidate set for a CI context before prioritizing.

        - pr: critical and high only.
        - merge: critical, high and medium.
        - nightly / release (or anything unrecognized): every test.
        """
        levels = config.CI_CONTEXT_LEVELS.get(context, config.RISK_LEVELS)
        return [test for test in tests if test.risk_classification.risk_level in levels]

    @staticmethod
    def generate_execution_plan(priorities: List[TestPriority]) -> str:
        lines = ["Test Execution Plan", "===================", f"Total Tests: {len(priorities)}", ""]

        # level, heading, how many entries to list (None lists all, 0 lists none)
        sections = (
            ("critical", "Critical Priority", None),
            ("high", "High Priority", 5),
            ("medium", "Medium Priority", 3),
            ("low", "Low Priority", 0),
        )
        for level, heading, limit in sections:
            members = [item for item in priorities if item.risk_level == level]
            if not members:
                continue
            lines.append(f"{heading} ({len(members)} tests):")
            shown = members if limit is None else members[:limit]
            lines.extend(f"  {item.execution_order}. {item.test_name} - {item.reason}" for item in shown)
            if limit and len(members) > limit:
                lines.append(f"  ... and {len(members) - limit} more")
            lines.append("")

        return "\n".join(lines) + "\n"

    @staticmethod
    def export_spec_pattern(priorities: List[TestPriority], top_n: Optional[int] = None) -> str:
        """Comma-joined test names, suitable for a runner's --spec argument."""
        selected = priorities[:top_n] if top_n else priorities
        return ",".join(item.test_name for item in selected)
