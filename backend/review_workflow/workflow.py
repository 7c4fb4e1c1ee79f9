"""
Non-interactive validation workflow for generated test drafts.

Drafts scoring at or above the auto-approve threshold are approved by the
auto-validator; everything else is returned as pending manual review. A
decision only counts towards the session once it has been written to its
record store.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from pydantic import ValidationError

from release_intelligence.config import WorkflowConfig
from release_intelligence.schemas import (
    ApprovedTestRecord,
    GeneratedTest,
    QualityVector,
    ValidationDecision,
    ValidationStats,
)

from .rejection_tracker import RejectionTracker
from .store import APPROVED_LOG_NAME, REJECTION_LOG_NAME, RecordStore

logger = logging.getLogger(__name__)

AUTO_VALIDATOR = "auto-validator"
PENDING_REVIEW_COMMENT = "Pending manual review"


class ValidationWorkflow:
    """Holds one review session: its decisions and the stores they land in."""

    def __init__(
        self,
        workflow_config: Optional[WorkflowConfig] = None,
        rejection_tracker: Optional[RejectionTracker] = None,
        approved_store: Optional[RecordStore] = None,
    ) -> None:
        self.config = workflow_config or WorkflowConfig()
        store_dir = Path(self.config.store_dir)
        self.rejection_tracker = rejection_tracker or RejectionTracker(
            RecordStore(store_dir / REJECTION_LOG_NAME)
        )
        self.approved_store = approved_store or RecordStore(store_dir / APPROVED_LOG_NAME)
        self._decisions: List[ValidationDecision] = []
        self._approved = 0
        self._rejected = 0
        self._auto_approved = 0

    def validate_test(self, test: GeneratedTest, metrics: QualityVector) -> ValidationDecision:
        """Decide on one draft without recording it."""
        if metrics.overall_score >= self.config.auto_approve_threshold:
            return ValidationDecision(
                test_name=test.test_name,
                approved=True,
                reviewer_comments=f"Auto-approved with quality score {metrics.overall_score}/100",
                reviewed_by=AUTO_VALIDATOR,
            )
        return ValidationDecision(
            test_name=test.test_name,
            approved=False,
            rejection_reason="other",
            reviewer_comments=PENDING_REVIEW_COMMENT,
            reviewed_by=self.config.reviewer,
        )

    def validate_batch(
        self, drafts: Iterable[Tuple[GeneratedTest, QualityVector]]
    ) -> List[ValidationDecision]:
        return [self.validate_test(test, metrics) for test, metrics in drafts]

    def record_decision(
        self,
        decision: ValidationDecision,
        feature_name: Optional[str] = None,
        risk_level: Optional[str] = None,
        quality_score: Optional[int] = None,
    ) -> None:
        """
        Persist a decision, then count it in the session.

        Approvals go to the approved-tests store, rejections to the rejection
        log. A failed write propagates and leaves the session counters
        untouched.
        """
        if decision.approved:
            record = ApprovedTestRecord(
                test_name=decision.test_name,
                feature_name=feature_name,
                risk_level=risk_level,
                quality_score=quality_score,
                timestamp=decision.reviewed_at,
                reviewer=decision.reviewed_by,
            )
            self.approved_store.append(record.model_dump(mode="json", by_alias=True))
            self._approved += 1
            if decision.reviewed_by == AUTO_VALIDATOR:
                self._auto_approved += 1
        else:
            self.rejection_tracker.track_rejection(decision)
            self._rejected += 1

        self._decisions.append(decision)
        logger.info(
            "Recorded %s for %s",
            "approval" if decision.approved else "rejection",
            decision.test_name,
        )

    @property
    def decisions(self) -> List[ValidationDecision]:
        return list(self._decisions)

    def validation_stats(self) -> ValidationStats:
        return ValidationStats(
            total_validations=len(self._decisions),
            approved_tests=self._approved,
            rejected_tests=self._rejected,
            auto_approved_tests=self._auto_approved,
        )

    def approved_tests(self) -> List[ApprovedTestRecord]:
        records = []
        for raw in self.approved_store.read():
            try:
                records.append(ApprovedTestRecord.model_validate(raw))
            except ValidationError as exc:
                logger.warning("Skipping malformed approved-test record: %s", exc)
        return records

    def history_stats(self) -> ValidationStats:
        """
        Validation counts across every stored decision, not just this session.

        Approvals come from the approved-tests store and rejections from the
        rejection log; malformed rows in either are left out of the counts.
        """
        approved = self.approved_tests()
        rejected = self.rejection_tracker.get_all_rejections()
        return ValidationStats(
            total_validations=len(approved) + len(rejected),
            approved_tests=len(approved),
            rejected_tests=len(rejected),
            auto_approved_tests=sum(1 for record in approved if record.reviewer == AUTO_VALIDATOR),
        )

    def session_summary(self) -> str:
        stats = self.validation_stats()
        return (
            f"Validation session {datetime.now().isoformat()}: "
            f"{stats.total_validations} reviewed, {stats.approved_tests} approved "
            f"({stats.auto_approved_tests} auto), {stats.rejected_tests} rejected"
        )
