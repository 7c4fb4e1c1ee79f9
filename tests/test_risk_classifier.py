import json
import logging

import pytest

from release_intelligence import config as risk_settings
from release_intelligence.config import FeatureRiskConfig, RiskConfig, RiskConfigError, load_risk_config
from release_intelligence.risk_classifier import RiskClassifier, calculate_risk_score, risk_level_for_score
from release_intelligence.schemas import RiskContext


@pytest.fixture
def classifier():
    return RiskClassifier()


class TestScoreBreakpoints:

    @pytest.mark.parametrize(
        "score,level",
        [(100, "critical"), (85, "critical"), (84, "high"), (65, "high"), (64, "medium"), (40, "medium"), (39, "low"), (0, "low")],
    )
    def test_level_for_score(self, score, level):
        assert risk_level_for_score(score) == level

    def test_weighted_factor_score(self):
        assert calculate_risk_score("critical", "high", "medium") == 90
        assert calculate_risk_score("critical", "high", "low") == 83
        assert calculate_risk_score("medium", "medium", "medium") == 56


class TestClassify:

    def test_first_matching_pattern_wins(self, classifier):
        result = classifier.classify("Checkout Payment")
        assert result.risk_level == "critical"
        assert result.risk_score == 90
        assert classifier.find_matching_config("Checkout Payment").name == "Checkout"

    def test_patterns_are_case_insensitive(self, classifier):
        assert classifier.classify("USER LOGIN").risk_level == "critical"

    def test_unmatched_without_context_uses_default(self):
        classifier = RiskClassifier(RiskConfig(default_risk_level="low"))
        result = classifier.classify("Newsletter")
        assert result.risk_level == "low"
        assert result.risk_score == 56

    def test_unmatched_with_context_uses_score(self, classifier):
        context = RiskContext(business_impact="critical", technical_complexity="high", change_frequency="high")
        result = classifier.classify("Newsletter", context)
        assert result.risk_score == 100
        assert result.risk_level == "critical"

    def test_context_level_used_when_nothing_matches(self, classifier):
        assert classifier.classify("Newsletter", RiskContext(risk_level="high")).risk_level == "high"

    def test_matched_entry_beats_context_level(self, classifier):
        assert classifier.classify("Cart", RiskContext(risk_level="low")).risk_level == "high"

    def test_three_weighted_factors(self, classifier):
        factors = classifier.classify("Cart").risk_factors
        assert [f.factor for f in factors] == ["Business Impact", "Technical Complexity", "Change Frequency"]
        assert sum(f.weight for f in factors) == pytest.approx(1.0)


class TestInvalidPatterns:

    def test_invalid_regex_is_skipped(self, caplog):
        config = RiskConfig(
            features=[
                FeatureRiskConfig("Broken", "([", "critical"),
                FeatureRiskConfig("Search", "search", "low"),
            ]
        )
        with caplog.at_level(logging.WARNING):
            classifier = RiskClassifier(config)
        assert "Broken" in caplog.text
        assert classifier.classify("Search page").risk_level == "low"

    def test_strict_mode_raises(self):
        config = RiskConfig(features=[FeatureRiskConfig("Broken", "([", "critical")], strict_patterns=True)
        with pytest.raises(RiskConfigError):
            RiskClassifier(config)

    def test_unknown_factor_value_only_skips_its_entry(self, caplog):
        config = RiskConfig(
            features=[
                FeatureRiskConfig("Checkout", "checkout", "critical", "critical", "critical", "medium"),
                FeatureRiskConfig("Static Content", "faq", "low", "low", "low", "low"),
            ]
        )
        with caplog.at_level(logging.WARNING):
            classifier = RiskClassifier(config)
        assert "technical_complexity" in caplog.text

        faq, checkout = classifier.classify_features(["FAQ", "Checkout"])
        assert faq.risk_level == "low"
        assert checkout.risk_level == "medium"
        assert checkout.technical_complexity == "medium"

    def test_unknown_factor_value_raises_in_strict_mode(self):
        config = RiskConfig(
            features=[FeatureRiskConfig("Checkout", "checkout", "critical", "severe")],
            strict_patterns=True,
        )
        with pytest.raises(RiskConfigError, match="business_impact"):
            RiskClassifier(config)


class TestLoadRiskConfig:

    def test_defaults_without_path(self, monkeypatch):
        monkeypatch.delenv("RISK_CONFIG_PATH", raising=False)
        assert load_risk_config().features[0].name == "Checkout"

    def test_reads_camel_case_json(self, tmp_path, monkeypatch):
        monkeypatch.delenv("RISK_CONFIG_STRICT", raising=False)
        path = tmp_path / "risk.json"
        path.write_text(
            json.dumps(
                {
                    "defaultRiskLevel": "low",
                    "features": [
                        {"name": "Orders", "pattern": "order", "riskLevel": "high", "businessImpact": "high"},
                        {"pattern": "missing-name"},
                    ],
                }
            )
        )
        config = load_risk_config(str(path))
        assert config.default_risk_level == "low"
        assert [entry.name for entry in config.features] == ["Orders"]
        assert config.features[0].business_impact == "high"

    def test_strict_env_rejects_bad_entry(self, tmp_path, monkeypatch):
        monkeypatch.setenv("RISK_CONFIG_STRICT", "true")
        path = tmp_path / "risk.json"
        path.write_text(json.dumps({"features": [{"pattern": "x"}]}))
        with pytest.raises(RiskConfigError):
            load_risk_config(str(path))

    def test_unknown_factor_value_skips_entry(self, tmp_path, monkeypatch):
        monkeypatch.delenv("RISK_CONFIG_STRICT", raising=False)
        path = tmp_path / "risk.json"
        path.write_text(
            json.dumps(
                {
                    "features": [
                        {"name": "Checkout", "pattern": "checkout", "riskLevel": "critical", "technicalComplexity": "critical"},
                        {"name": "FAQ", "pattern": "faq", "riskLevel": "low", "businessImpact": "low"},
                    ]
                }
            )
        )
        config = load_risk_config(str(path))
        assert [entry.name for entry in config.features] == ["FAQ"]

        classifications = RiskClassifier(config).classify_features(["FAQ", "Checkout"])
        assert [item.risk_level for item in classifications] == ["low", "medium"]

    def test_strict_env_rejects_unknown_factor_value(self, tmp_path, monkeypatch):
        monkeypatch.setenv("RISK_CONFIG_STRICT", "1")
        path = tmp_path / "risk.json"
        path.write_text(
            json.dumps({"features": [{"name": "Cart", "pattern": "cart", "changeFrequency": "daily"}]})
        )
        with pytest.raises(RiskConfigError, match="change_frequency"):
            load_risk_config(str(path))


class TestConfigExports:

    def test_every_public_constant_is_exported(self):
        constants = {name for name in vars(risk_settings) if name.isupper() and not name.startswith("_")}
        assert constants <= set(risk_settings.__all__)

    def test_exports_resolve(self):
        for name in risk_settings.__all__:
            assert hasattr(risk_settings, name)


class TestMatrix:

    def test_groups_by_level(self, classifier):
        classifications = classifier.classify_features(["Checkout", "Cart", "FAQ"])
        matrix = classifier.generate_risk_matrix(classifications)
        assert "Critical (1):" in matrix
        assert "  - Checkout (Score: 90)" in matrix
        assert "Medium (0):" in matrix
        assert len(RiskClassifier.features_by_risk_level(classifications, "low")) == 1
