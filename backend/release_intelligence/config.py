"""
Configuration for the release intelligence pipeline.
Centralizes tunable policies so non-developers can adjust thresholds safely.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------
# Risk levels and ordinal tables (safe, immutable primitives)
# ---------------------------------------------------------------------

RISK_LEVELS = ("critical", "high", "medium", "low")
RISK_ORDER: Dict[str, int] = {"critical": 0, "high": 1, "medium": 2, "low": 3}

DEFAULT_RISK_LEVEL: str = "medium"

IMPACT_SCORES: Dict[str, int] = {"critical": 100, "high": 75, "medium": 50, "low": 25}
COMPLEXITY_SCORES: Dict[str, int] = {"high": 100, "medium": 60, "low": 30}
FREQUENCY_SCORES: Dict[str, int] = {"high": 100, "medium": 60, "low": 30}

RISK_FACTOR_WEIGHTS: Dict[str, float] = {
    "business_impact": 0.4,
    "technical_complexity": 0.35,
    "change_frequency": 0.25,
}

# score >= breakpoint -> level, checked in order
RISK_LEVEL_BREAKPOINTS = ((85, "critical"), (65, "high"), (40, "medium"))

# ---------------------------------------------------------------------
# Quality scoring
# ---------------------------------------------------------------------

DEFAULT_QUALITY_WEIGHTS: Dict[str, float] = {
    "syntax": 0.20,
    "coverage": 0.25,
    "assertions": 0.25,
    "maintainability": 0.15,
    "best_practices": 0.15,
}

# ---------------------------------------------------------------------
# Coverage
# ---------------------------------------------------------------------

COVERAGE_RISK_WEIGHTS: Dict[str, float] = {
    "critical": 0.4,
    "high": 0.3,
    "medium": 0.2,
    "low": 0.1,
}

GAP_PRIORITY_ORDER: Dict[str, int] = {"urgent": 0, "high": 1, "medium": 2, "low": 3}

GAP_RECOMMENDATIONS: Dict[str, str] = {
    "critical": "URGENT: Create comprehensive test suite immediately. This feature is mission-critical.",
    "high": "HIGH PRIORITY: Add test coverage as soon as possible. Important for system stability.",
    "medium": "MEDIUM PRIORITY: Add test coverage in the next sprint.",
    "low": "LOW PRIORITY: Consider adding basic test coverage when time permits.",
}

# ---------------------------------------------------------------------
# Prioritization
# ---------------------------------------------------------------------

PRIORITY_RISK_WEIGHTS: Dict[str, int] = {"critical": 100, "high": 75, "medium": 50, "low": 25}
SMART_PRIORITY_WEIGHTS: Dict[str, float] = {
    "risk": 0.4,
    "recency": 0.3,
    "failure": 0.2,
    "execution_time": 0.1,
}
STALE_DAYS: int = 999
BASELINE_EXECUTION_MS: int = 5000

CI_CONTEXT_LEVELS: Dict[str, tuple] = {
    "pr": ("critical", "high"),
    "merge": ("critical", "high", "medium"),
    "nightly": RISK_LEVELS,
    "release": RISK_LEVELS,
}

# ---------------------------------------------------------------------
# Release confidence and gates
# ---------------------------------------------------------------------

DEFAULT_CONFIDENCE_WEIGHTS: Dict[str, float] = {
    "test_pass_rate": 0.4,
    "risk_coverage": 0.3,
    "test_quality": 0.2,
    "human_validation_rate": 0.1,
}

STATUS_BREAKPOINTS = ((90, "excellent"), (75, "good"), (60, "fair"))
RECOMMENDATION_BREAKPOINTS = (
    (85, "ready-to-release"),
    (70, "proceed-with-caution"),
    (60, "not-recommended"),
)
BLOCKING_MIN_PASS_RATE: int = 80
BLOCKING_MIN_RISK_COVERAGE: int = 70

MIN_TEST_PASS_RATE: int = 80
MIN_RISK_COVERAGE: int = 80
MIN_TEST_QUALITY: int = 70
MIN_CONFIDENCE_SCORE: int = 75

# ---------------------------------------------------------------------
# Review workflow
# ---------------------------------------------------------------------

AUTO_APPROVE_THRESHOLD: int = int(os.getenv("AUTO_APPROVE_THRESHOLD", "85"))
REVIEW_STORE_DIR: str = os.getenv("REVIEW_STORE_DIR", "reports")
TREND_DAYS: int = 30
REPORT_TREND_DAYS: int = 7


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


class RiskConfigError(ValueError):
    """Raised when a risk configuration entry cannot be used."""


# ---------------------------------------------------------------------
# Risk configuration (what feature names map to which risk)
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class FeatureRiskConfig:
    """One ordered pattern entry; the first entry whose pattern matches wins."""

    name: str
    pattern: str
    risk_level: str
    business_impact: str = "medium"
    technical_complexity: str = "medium"
    change_frequency: str = "medium"


DEFAULT_FEATURE_RISKS: List[FeatureRiskConfig] = [
    FeatureRiskConfig("Checkout", r"checkout|payment|billing", "critical", "critical", "high", "medium"),
    FeatureRiskConfig("Authentication", r"login|auth|register|sign.?up", "critical", "critical", "high", "low"),
    FeatureRiskConfig("Shopping Cart", r"cart|basket", "high", "high", "medium", "high"),
    FeatureRiskConfig("User Profile", r"profile|account|settings", "medium", "medium", "medium", "medium"),
    FeatureRiskConfig("Product Catalog", r"product|catalog|search", "medium", "medium", "low", "high"),
    FeatureRiskConfig("Static Content", r"about|help|faq|footer", "low", "low", "low", "low"),
]


def invalid_entry_fields(entry: FeatureRiskConfig) -> List[str]:
    """Field names of an entry whose values fall outside the level and score tables."""
    invalid = []
    if entry.risk_level not in RISK_LEVELS:
        invalid.append("risk_level")
    if entry.business_impact not in IMPACT_SCORES:
        invalid.append("business_impact")
    if entry.technical_complexity not in COMPLEXITY_SCORES:
        invalid.append("technical_complexity")
    if entry.change_frequency not in FREQUENCY_SCORES:
        invalid.append("change_frequency")
    return invalid


@dataclass(frozen=True)
class RiskConfig:
    """Ordered feature patterns plus the fallback level used when nothing matches."""

    features: List[FeatureRiskConfig] = field(
        default_factory=lambda: list(DEFAULT_FEATURE_RISKS)
    )
    default_risk_level: str = DEFAULT_RISK_LEVEL
    strict_patterns: bool = False


@dataclass(frozen=True)
class GateThresholds:
    """Container for PR gate thresholds."""

    min_test_pass_rate: int = MIN_TEST_PASS_RATE
    min_risk_coverage: int = MIN_RISK_COVERAGE
    min_test_quality: int = MIN_TEST_QUALITY
    min_confidence_score: int = MIN_CONFIDENCE_SCORE


@dataclass(frozen=True)
class WorkflowConfig:
    auto_approve_threshold: int = AUTO_APPROVE_THRESHOLD
    reviewer: str = "human-reviewer"
    store_dir: str = REVIEW_STORE_DIR


def load_risk_config(path: Optional[str] = None) -> RiskConfig:
    """
    Load a RiskConfig from JSON, falling back to the built-in defaults.

    The file holds ``{"defaultRiskLevel": "...", "features": [{"name", "pattern",
    "riskLevel", "businessImpact", "technicalComplexity", "changeFrequency"}]}``.
    Entries missing a name or pattern, or holding an unknown risk level or
    factor value, are skipped unless strict mode is on.
    """
    config_path = path or os.getenv("RISK_CONFIG_PATH")
    strict = _env_flag("RISK_CONFIG_STRICT")
    if not config_path:
        return RiskConfig(strict_patterns=strict)

    raw = json.loads(Path(config_path).read_text(encoding="utf-8"))
    default_level = str(raw.get("defaultRiskLevel") or DEFAULT_RISK_LEVEL).lower()
    if default_level not in RISK_LEVELS:
        raise RiskConfigError(f"Unknown default risk level: {default_level}")

    features: List[FeatureRiskConfig] = []
    for index, entry in enumerate(raw.get("features") or []):
        name = entry.get("name")
        pattern = entry.get("pattern")
        if not name or not pattern:
            if strict:
                raise RiskConfigError(f"Invalid risk config entry at index {index}: {entry}")
            logger.warning("Skipping invalid risk config entry at index %s: %s", index, entry)
            continue
        feature = FeatureRiskConfig(
            name=name,
            pattern=pattern,
            risk_level=str(entry.get("riskLevel") or default_level).lower(),
            business_impact=str(entry.get("businessImpact") or "medium").lower(),
            technical_complexity=str(entry.get("technicalComplexity") or "medium").lower(),
            change_frequency=str(entry.get("changeFrequency") or "medium").lower(),
        )
        invalid = invalid_entry_fields(feature)
        if invalid:
            if strict:
                raise RiskConfigError(
                    f"Invalid values for {', '.join(invalid)} in risk config entry at index {index}: {entry}"
                )
            logger.warning(
                "Skipping risk config entry at index %s: invalid %s (%s)", index, ", ".join(invalid), entry
            )
            continue
        features.append(feature)

    return RiskConfig(
        features=features,
        default_risk_level=default_level,
        strict_patterns=strict,
    )


# ---------------------------------------------------------------------
# Public exports
# ---------------------------------------------------------------------

__all__ = [
    "RISK_LEVELS",
    "RISK_ORDER",
    "DEFAULT_RISK_LEVEL",
    "IMPACT_SCORES",
    "COMPLEXITY_SCORES",
    "FREQUENCY_SCORES",
    "RISK_FACTOR_WEIGHTS",
    "RISK_LEVEL_BREAKPOINTS",
    "DEFAULT_QUALITY_WEIGHTS",
    "COVERAGE_RISK_WEIGHTS",
    "GAP_PRIORITY_ORDER",
    "GAP_RECOMMENDATIONS",
    "PRIORITY_RISK_WEIGHTS",
    "SMART_PRIORITY_WEIGHTS",
    "STALE_DAYS",
    "BASELINE_EXECUTION_MS",
    "CI_CONTEXT_LEVELS",
    "DEFAULT_CONFIDENCE_WEIGHTS",
    "STATUS_BREAKPOINTS",
    "RECOMMENDATION_BREAKPOINTS",
    "BLOCKING_MIN_PASS_RATE",
    "BLOCKING_MIN_RISK_COVERAGE",
    "MIN_TEST_PASS_RATE",
    "MIN_RISK_COVERAGE",
    "MIN_TEST_QUALITY",
    "MIN_CONFIDENCE_SCORE",
    "AUTO_APPROVE_THRESHOLD",
    "REVIEW_STORE_DIR",
    "TREND_DAYS",
    "REPORT_TREND_DAYS",
    "RiskConfigError",
    "FeatureRiskConfig",
    "DEFAULT_FEATURE_RISKS",
    "RiskConfig",
    "GateThresholds",
    "WorkflowConfig",
    "invalid_entry_fields",
    "load_risk_config",
]
