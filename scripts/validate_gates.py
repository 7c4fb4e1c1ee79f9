import argparse
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "backend"))

from release_intelligence.release_confidence import ReleaseConfidenceScorer  # noqa: E402
from release_intelligence.release_gate import PRValidationGate  # noqa: E402
from release_intelligence.schemas import ReleaseConfidenceInput  # noqa: E402


def _load_env(repo_root: Path) -> None:
    backend_env = repo_root / "backend" / ".env"
    root_env = repo_root / ".env"
    if backend_env.exists():
        load_dotenv(backend_env)
    if root_env.exists():
        load_dotenv(root_env)


def _parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Score release confidence and evaluate the pull-request quality gates."
    )
    parser.add_argument(
        "input",
        help="JSON file with testResults, coverageMetrics, qualityMetrics and validationStats",
    )
    parser.add_argument("--comment-out", help="Also write the Markdown PR comment to this file")
    parser.add_argument("--json", action="store_true", help="Print the gate result as JSON instead of Markdown")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    _load_env(REPO_ROOT)
    args = _parse_args(argv)

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Input file not found: {input_path}", file=sys.stderr)
        return 2

    try:
        payload = json.loads(input_path.read_text(encoding="utf-8"))
        confidence_input = ReleaseConfidenceInput.model_validate(payload)
    except (ValueError, ValidationError) as exc:
        print(f"Invalid gate input in {input_path}: {exc}", file=sys.stderr)
        return 2

    confidence = ReleaseConfidenceScorer().calculate(confidence_input)
    gate = PRValidationGate()
    result = gate.validate(confidence)
    comment = gate.generate_pr_comment(result)

    if args.comment_out:
        out_path = Path(args.comment_out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(comment, encoding="utf-8")

    if args.json:
        print(json.dumps(result.model_dump(mode="json", by_alias=True), indent=2))
    else:
        print(comment)

    return 0 if result.overall_passed else 1


if __name__ == "__main__":
    raise SystemExit(main())
