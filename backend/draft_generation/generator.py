"""
Build risk-aware prompts and turn provider responses into GeneratedTest drafts.
"""

import logging
import re
from pathlib import Path
from typing import List, Optional

from release_intelligence.schemas import FeatureRecord, GeneratedTest

from .providers import DraftProvider, get_provider

logger = logging.getLogger(__name__)

DEFAULT_TEST_NAME = "Generated Test"

RISK_ALIGNMENT = {"critical": 100, "high": 80, "medium": 60, "low": 40}
DEFAULT_RISK_ALIGNMENT = 50

RISK_GUIDANCE = {
    "critical": (
        "**CRITICAL RISK**: This feature is mission-critical. The test MUST include:\n"
        "- Comprehensive positive and negative test cases\n"
        "- Boundary value testing\n"
        "- Error handling validation\n"
        "- Data integrity checks\n"
        "- Security considerations\n"
        "- Rollback/recovery scenarios"
    ),
    "high": (
        "**HIGH RISK**: This feature is important. The test should include:\n"
        "- Multiple test scenarios covering main workflows\n"
        "- Error handling\n"
        "- Data validation\n"
        "- Edge cases"
    ),
    "medium": (
        "**MEDIUM RISK**: This feature is standard. The test should include:\n"
        "- Happy path testing\n"
        "- Basic error handling\n"
        "- Common edge cases"
    ),
    "low": (
        "**LOW RISK**: This feature is low priority. The test should include:\n"
        "- Basic happy path testing\n"
        "- Simple validation"
    ),
}

_REQUIREMENTS = [
    "Use TypeScript syntax",
    'Use data-testid selectors (e.g., [data-testid="element-name"])',
    "Include proper assertions using Cypress best practices",
    "Add meaningful test descriptions",
    "Handle async operations properly",
    "Include edge cases and error scenarios",
    "Use custom commands if appropriate (cy.login, cy.addToCart)",
    "Add comments explaining complex logic",
    "Ensure the test is maintainable and readable",
]

_TYPESCRIPT_BLOCK = re.compile(r"```typescript\n(.*?)\n```", re.DOTALL)
_GENERIC_BLOCK = re.compile(r"```\n(.*?)\n```", re.DOTALL)
_DESCRIBE_NAME = re.compile(r"""describe\(['"]([^'"]+)['"]""")
_NON_SLUG = re.compile(r"[^a-z0-9]+")


def risk_alignment(risk_level: str) -> int:
    return RISK_ALIGNMENT.get(risk_level, DEFAULT_RISK_ALIGNMENT)


def extract_test_code(response: str) -> str:
    """Prefer a typescript fence, then any fence, then the whole response."""
    for pattern in (_TYPESCRIPT_BLOCK, _GENERIC_BLOCK):
        match = pattern.search(response)
        if match and match.group(1).strip():
            return match.group(1).strip()
    return response.strip()


def extract_test_name(test_code: str) -> str:
    match = _DESCRIBE_NAME.search(test_code)
    return match.group(1) if match else DEFAULT_TEST_NAME


def sanitize_file_name(name: str) -> str:
    return _NON_SLUG.sub("-", name.lower()).strip("-")


class TestDraftGenerator:
    __test__ = False

    def __init__(self, provider: Optional[DraftProvider] = None) -> None:
        self.provider = provider or get_provider()

    def build_prompt(self, feature: FeatureRecord, user_story: Optional[str] = None) -> str:
        guidance = RISK_GUIDANCE.get(feature.risk_level, RISK_GUIDANCE["medium"])
        lines: List[str] = [
            "You are an expert QA automation engineer specializing in Cypress testing.",
            "",
            "Generate a comprehensive Cypress test for the following feature:",
            "",
            f"**Feature Name**: {feature.name}",
            f"**Description**: {feature.description}",
        ]
        if user_story:
            lines.append(f"**User Story**: {user_story}")
        lines.extend([f"**Risk Level**: {feature.risk_level.upper()}", "", guidance, ""])
        if feature.selectors:
            lines.append(f"**Available Selectors**: {', '.join(feature.selectors)}")
        if feature.api_endpoints:
            lines.append(f"**API Endpoints**: {', '.join(feature.api_endpoints)}")
        lines.extend(["", "**Requirements**:"])
        lines.extend(f"{idx}. {item}" for idx, item in enumerate(_REQUIREMENTS, start=1))
        lines.extend(
            [
                "",
                "**Output Format**:",
                "Provide ONLY the TypeScript test code wrapped in a ```typescript code block.",
            ]
        )
        return "\n".join(lines)

    def generate(self, feature: FeatureRecord, user_story: Optional[str] = None) -> GeneratedTest:
        """Draft one test; provider failures propagate as DraftGenerationError."""
        response = self.provider.generate(self.build_prompt(feature, user_story))
        test_code = extract_test_code(response)
        test = GeneratedTest(
            test_code=test_code,
            test_name=extract_test_name(test_code),
            description=feature.description,
            risk_alignment=risk_alignment(feature.risk_level),
        )
        logger.info("Generated draft '%s' for feature %s", test.test_name, feature.name)
        return test

    @staticmethod
    def save_test(test: GeneratedTest, output_dir: Path) -> Path:
        """Write the draft with a provenance header and return its path."""
        out_dir = Path(output_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        file_path = out_dir / f"{sanitize_file_name(test.test_name) or 'generated-test'}.cy.ts"
        header = "\n".join(
            [
                "// AI-Generated Test",
                f"// Generated: {test.generated_at.isoformat()}",
                f"// Description: {test.description}",
                f"// Quality Score: {test.quality_score}",
                f"// Risk Alignment: {test.risk_alignment}",
            ]
        )
        file_path.write_text(f"{header}\n\n{test.test_code}\n", encoding="utf-8")
        return file_path
