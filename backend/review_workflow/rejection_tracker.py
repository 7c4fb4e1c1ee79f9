"""
Track human rejection decisions and derive rejection statistics.

The log is append-only; statistics are recomputed from the full history on
every call and never written back.
"""

import json
import logging
from collections import Counter
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Callable, Dict, List, Optional

from pydantic import ValidationError

from release_intelligence import config
from release_intelligence.schemas import (
    REJECTION_REASONS,
    RejectionPattern,
    RejectionRecord,
    RejectionStats,
    TrendDataPoint,
    ValidationDecision,
)
from release_intelligence.utils import percentage

from .store import REJECTION_LOG_NAME, RecordStore

logger = logging.getLogger(__name__)

MAX_PATTERN_EXAMPLES = 3
MAX_INSIGHT_EXAMPLES = 2
MAX_INSIGHTS = 3


def local_date(moment: datetime) -> date:
    """Calendar date of a timestamp in local time; naive timestamps are already local."""
    if moment.tzinfo is not None:
        return moment.astimezone().date()
    return moment.date()


def _sort_key(moment: datetime) -> float:
    return moment.timestamp()


def format_reason_name(reason: str) -> str:
    return " ".join(word.capitalize() for word in reason.split("-"))


class RejectionTracker:
    """Append-only rejection log plus on-demand statistics."""

    def __init__(
        self,
        store: Optional[RecordStore] = None,
        today: Optional[Callable[[], date]] = None,
    ) -> None:
        self.store = store or RecordStore(name=REJECTION_LOG_NAME)
        self._today = today or date.today

    def track_rejection(self, decision: ValidationDecision) -> Optional[RejectionRecord]:
        """Persist a rejection; approvals are ignored and return None."""
        if decision.approved:
            return None

        record = RejectionRecord(
            test_name=decision.test_name,
            reason=decision.rejection_reason or "other",
            comments=decision.reviewer_comments or "",
            timestamp=decision.reviewed_at,
            reviewer=decision.reviewed_by,
        )
        self.store.append(record.model_dump(mode="json", by_alias=True))
        logger.info("Recorded rejection of %s (%s)", record.test_name, record.reason)
        return record

    def get_all_rejections(self) -> List[RejectionRecord]:
        """Return every readable record, newest first; malformed entries are skipped."""
        records: List[RejectionRecord] = []
        for index, raw in enumerate(self.store.read()):
            try:
                records.append(RejectionRecord.model_validate(raw))
            except ValidationError as exc:
                logger.warning("Skipping malformed rejection record %s in %s: %s", index, self.store.path, exc)
        records.sort(key=lambda record: _sort_key(record.timestamp), reverse=True)
        return records

    def calculate_stats(
        self,
        decisions: List[ValidationDecision],
        historical_records: Optional[List[RejectionRecord]] = None,
    ) -> RejectionStats:
        """
        Combine the current session's decisions with the rejection history.

        Session decisions drive the totals, the rate and the trend series;
        the history drives the per-reason counts and common patterns.
        """
        records = historical_records if historical_records is not None else self.get_all_rejections()

        total_rejections = sum(1 for decision in decisions if not decision.approved)
        rejection_rate = percentage(total_rejections, len(decisions))

        rejections_by_reason: Dict[str, int] = {reason: 0 for reason in REJECTION_REASONS}
        for record in records:
            rejections_by_reason[record.reason] += 1

        common_patterns = [
            RejectionPattern(
                reason=reason,
                count=count,
                percentage=percentage(count, len(records)),
                examples=[r.comments for r in records if r.reason == reason and r.comments][
                    :MAX_PATTERN_EXAMPLES
                ],
            )
            for reason, count in rejections_by_reason.items()
            if count > 0
        ]
        common_patterns.sort(key=lambda pattern: pattern.count, reverse=True)

        return RejectionStats(
            total_rejections=total_rejections,
            rejections_by_reason=rejections_by_reason,
            rejection_rate=rejection_rate,
            common_patterns=common_patterns,
            trend_data=self.calculate_trend_data(decisions),
        )

    def calculate_trend_data(self, decisions: List[ValidationDecision]) -> List[TrendDataPoint]:
        """One point per calendar day for the last TREND_DAYS days, oldest first."""
        today = self._today()
        by_day: Dict[date, Counter] = {}
        for decision in decisions:
            bucket = by_day.setdefault(local_date(decision.reviewed_at), Counter())
            bucket["approved" if decision.approved else "rejected"] += 1

        trend: List[TrendDataPoint] = []
        for offset in range(config.TREND_DAYS - 1, -1, -1):
            day = today - timedelta(days=offset)
            counts = by_day.get(day, Counter())
            rejected = counts["rejected"]
            approved = counts["approved"]
            trend.append(
                TrendDataPoint(
                    date=day.isoformat(),
                    rejection_count=rejected,
                    approval_count=approved,
                    rejection_rate=percentage(rejected, rejected + approved),
                )
            )
        return trend

    def generate_report(
        self,
        decisions: List[ValidationDecision],
        historical_records: Optional[List[RejectionRecord]] = None,
        generated_at: Optional[datetime] = None,
    ) -> str:
        """Render the Markdown rejection report."""
        stats = self.calculate_stats(decisions, historical_records)
        lines = [
            "# AI Test Rejection Report",
            f"Generated: {(generated_at or datetime.now()).isoformat()}",
            "",
            "## Summary",
            f"- **Total Rejections**: {stats.total_rejections}",
            f"- **Rejection Rate**: {stats.rejection_rate:.2f}%",
            "",
            "## Rejections by Reason",
            "",
        ]

        for pattern in stats.common_patterns:
            lines.append(
                f"### {format_reason_name(pattern.reason)} "
                f"({pattern.count} rejections, {pattern.percentage:.1f}%)"
            )
            lines.append("")
            if pattern.examples:
                lines.append("**Example Comments:**")
                lines.extend(f'{idx}. "{example}"' for idx, example in enumerate(pattern.examples, start=1))
                lines.append("")

        recent = stats.trend_data[-config.REPORT_TREND_DAYS:]
        lines.extend(
            [
                f"## Trend Analysis (Last {config.REPORT_TREND_DAYS} Days)",
                "",
                "| Date | Rejections | Approvals | Rejection Rate |",
                "|------|------------|-----------|----------------|",
            ]
        )
        lines.extend(
            f"| {point.date} | {point.rejection_count} | {point.approval_count} | {point.rejection_rate:.1f}% |"
            for point in recent
        )
        lines.extend(["", "## Recommendations", ""])

        if stats.common_patterns:
            top = stats.common_patterns[0]
            lines.append(
                f"1. **Focus on {format_reason_name(top.reason)}**: This is the most common rejection "
                f"reason ({top.percentage:.1f}%). Consider improving AI prompts to address this issue."
            )
            lines.append("")

        if stats.rejection_rate > 50:
            lines.extend(
                [
                    f"2. **High Rejection Rate**: The current rejection rate is {stats.rejection_rate:.1f}%. Consider:",
                    "   - Refining AI prompts with more specific requirements",
                    "   - Adding more context to test generation requests",
                    "   - Reviewing and updating quality thresholds",
                    "",
                ]
            )

        recent_rate = sum(point.rejection_rate for point in recent) / len(recent) if recent else 0.0
        if recent_rate < stats.rejection_rate:
            lines.append(
                f"3. **Improving Trend**: Recent rejection rate ({recent_rate:.1f}%) is lower than "
                "overall average."
            )
            lines.append("")

        return "\n".join(lines) + "\n"

    def get_ai_improvement_insights(self, records: Optional[List[RejectionRecord]] = None) -> List[str]:
        """Advisory text for the top rejection reasons, with a couple of example comments each."""
        history = records if records is not None else self.get_all_rejections()
        counts = Counter(record.reason for record in history)

        insights = []
        for reason, count in counts.most_common(MAX_INSIGHTS):
            examples = [r.comments for r in history if r.reason == reason][:MAX_INSIGHT_EXAMPLES]
            insights.append(
                f'Focus on reducing "{format_reason_name(reason)}" rejections ({count} occurrences). '
                f"Examples: {'; '.join(examples)}"
            )
        return insights

    def export_to_json(self, output_path: Path) -> int:
        """Write the full history to output_path and return the record count."""
        records = self.get_all_rejections()
        payload = {
            "exportedAt": datetime.now().isoformat(),
            "totalRecords": len(records),
            "records": [record.model_dump(mode="json", by_alias=True) for record in records],
        }
        output = Path(output_path)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        return len(records)
