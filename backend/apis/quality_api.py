from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field

from draft_generation import DraftGenerationError, TestDraftGenerator
from release_intelligence.config import WorkflowConfig, load_risk_config
from release_intelligence.coverage_analyzer import CoverageAnalyzer
from release_intelligence.prioritizer import TestPrioritizer
from release_intelligence.quality_scorer import QualityScorer
from release_intelligence.release_confidence import ReleaseConfidenceScorer
from release_intelligence.release_gate import PRValidationGate
from release_intelligence.risk_classifier import RiskClassifier
from release_intelligence.schemas import (
    CIContext,
    ContractModel,
    FeatureRecord,
    FeatureTestMapping,
    GeneratedTest,
    ReleaseConfidenceInput,
    RiskContext,
    RiskLevel,
    TestInfo,
    ValidationDecision,
)
from review_workflow import APPROVED_LOG_NAME, REJECTION_LOG_NAME, RecordStore, RejectionTracker, ValidationWorkflow

router = APIRouter()


class ScoreRequest(ContractModel):
    source: str
    test_name: Optional[str] = None


class ClassifyRequest(ContractModel):
    features: List[str]
    context: Optional[RiskContext] = None


class CoverageRequest(ContractModel):
    mappings: List[FeatureTestMapping]


class PrioritizeRequest(ContractModel):
    tests: List[TestInfo]
    strategy: str = "smart"
    ci_context: Optional[CIContext] = None
    top_n: Optional[int] = Field(default=None, ge=1)


class StatsRequest(ContractModel):
    decisions: List[ValidationDecision] = Field(default_factory=list)


class DecisionRequest(ContractModel):
    decision: ValidationDecision
    feature_name: Optional[str] = None
    risk_level: Optional[RiskLevel] = None
    quality_score: Optional[int] = None


class GenerateRequest(ContractModel):
    feature: FeatureRecord
    user_story: Optional[str] = None


def get_risk_classifier() -> RiskClassifier:
    return RiskClassifier(load_risk_config())


def get_rejection_tracker() -> RejectionTracker:
    return RejectionTracker(RecordStore(name=REJECTION_LOG_NAME))


def get_workflow(tracker: RejectionTracker = Depends(get_rejection_tracker)) -> ValidationWorkflow:
    return ValidationWorkflow(WorkflowConfig(), tracker, RecordStore(name=APPROVED_LOG_NAME))


def get_draft_generator() -> TestDraftGenerator:
    try:
        return TestDraftGenerator()
    except (DraftGenerationError, ValueError) as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc


@router.post("/score")
def score_draft(req: ScoreRequest):
    scorer = QualityScorer()
    metrics = scorer.score(req.source)
    return {
        "testName": req.test_name,
        "metrics": metrics.model_dump(mode="json", by_alias=True),
        "report": scorer.generate_report(metrics),
    }


@router.post("/classify")
def classify_features(req: ClassifyRequest, classifier: RiskClassifier = Depends(get_risk_classifier)):
    if not req.features:
        raise HTTPException(status_code=400, detail="features must not be empty")
    classifications = [classifier.classify(name, req.context) for name in req.features]
    return {
        "classifications": [item.model_dump(mode="json", by_alias=True) for item in classifications],
        "matrix": classifier.generate_risk_matrix(classifications),
    }


@router.post("/coverage")
def analyze_coverage(req: CoverageRequest):
    analyzer = CoverageAnalyzer()
    metrics = analyzer.analyze(req.mappings)
    return {
        "metrics": metrics.model_dump(mode="json", by_alias=True),
        "heatmap": analyzer.generate_heatmap_data(req.mappings).model_dump(mode="json", by_alias=True),
        "report": analyzer.generate_report(metrics),
    }


@router.post("/prioritize")
def prioritize_tests(req: PrioritizeRequest):
    prioritizer = TestPrioritizer()
    tests = prioritizer.filter_for_ci(req.tests, req.ci_context) if req.ci_context else req.tests
    try:
        priorities = prioritizer.prioritize(tests, req.strategy)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {
        "priorities": [item.model_dump(mode="json", by_alias=True) for item in priorities],
        "plan": prioritizer.generate_execution_plan(priorities),
        "specPattern": prioritizer.export_spec_pattern(priorities, req.top_n),
    }


@router.post("/confidence")
def release_confidence(req: ReleaseConfidenceInput):
    scorer = ReleaseConfidenceScorer()
    confidence = scorer.calculate(req)
    return {
        "confidence": confidence.model_dump(mode="json", by_alias=True),
        "report": scorer.generate_report(confidence),
    }


@router.post("/gates/validate")
def validate_gates(req: ReleaseConfidenceInput):
    confidence = ReleaseConfidenceScorer().calculate(req)
    gate = PRValidationGate()
    result = gate.validate(confidence)
    return {
        "result": result.model_dump(mode="json", by_alias=True),
        "comment": gate.generate_pr_comment(result),
    }


@router.post("/drafts")
def generate_draft(req: GenerateRequest, generator: TestDraftGenerator = Depends(get_draft_generator)):
    try:
        draft: GeneratedTest = generator.generate(req.feature, req.user_story)
    except DraftGenerationError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    metrics = QualityScorer().score(draft.test_code)
    draft = draft.model_copy(update={"quality_score": metrics.overall_score})
    return {
        "draft": draft.model_dump(mode="json", by_alias=True),
        "metrics": metrics.model_dump(mode="json", by_alias=True),
    }


@router.post("/decisions")
def record_decision(req: DecisionRequest, workflow: ValidationWorkflow = Depends(get_workflow)):
    workflow.record_decision(
        req.decision,
        feature_name=req.feature_name,
        risk_level=req.risk_level,
        quality_score=req.quality_score,
    )
    return {"status": "recorded", "stats": workflow.history_stats().model_dump(by_alias=True)}


@router.get("/decisions/stats")
def decision_stats(workflow: ValidationWorkflow = Depends(get_workflow)):
    return workflow.history_stats().model_dump(by_alias=True)


@router.get("/rejections")
def list_rejections(tracker: RejectionTracker = Depends(get_rejection_tracker)):
    records = tracker.get_all_rejections()
    return {
        "totalRecords": len(records),
        "records": [record.model_dump(mode="json", by_alias=True) for record in records],
    }


@router.post("/rejections/stats")
def rejection_stats(req: StatsRequest, tracker: RejectionTracker = Depends(get_rejection_tracker)):
    return tracker.calculate_stats(req.decisions).model_dump(mode="json", by_alias=True)


@router.post("/rejections/report")
def rejection_report(req: StatsRequest, tracker: RejectionTracker = Depends(get_rejection_tracker)):
    return {"report": tracker.generate_report(req.decisions)}


@router.get("/rejections/insights")
def rejection_insights(tracker: RejectionTracker = Depends(get_rejection_tracker)):
    return {"insights": tracker.get_ai_improvement_insights()}
