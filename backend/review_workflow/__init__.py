"""
Human review of generated test drafts: record stores, rejection tracking and
the validation session.
"""

from .rejection_tracker import RejectionTracker, format_reason_name  # noqa: F401
from .store import APPROVED_LOG_NAME, REJECTION_LOG_NAME, RecordStore  # noqa: F401
from .workflow import ValidationWorkflow  # noqa: F401
