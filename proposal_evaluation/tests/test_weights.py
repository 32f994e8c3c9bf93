"""Tests for scoring weight configuration."""

import json

import pytest
import yaml

from proposal_evaluation.scorer import DEFAULT_WEIGHTS, CompletenessWeights, ScoringWeights, load_weights
from proposal_evaluation.scorer.weights import save_weights


class TestScoringWeights:
    def test_defaults(self):
        assert DEFAULT_WEIGHTS.coverage == 0.7
        assert DEFAULT_WEIGHTS.price == 0.3
        assert DEFAULT_WEIGHTS.knockout_missing_ratio == 0.5
        assert DEFAULT_WEIGHTS.min_text_length == 50
        assert DEFAULT_WEIGHTS.completeness.fee_line_items == 0.22

    def test_weights_must_sum_to_one(self):
        with pytest.raises(ValueError, match="sum to 1.0"):
            ScoringWeights(coverage=0.6, price=0.3)

    def test_weight_out_of_range(self):
        with pytest.raises(ValueError):
            ScoringWeights(coverage=1.2, price=-0.2)

    def test_completeness_must_sum_to_one(self):
        with pytest.raises(ValueError, match="sum to 1.0"):
            CompletenessWeights(price=0.5)


class TestLoadWeights:
    def test_no_path_returns_defaults(self):
        assert load_weights(None) is DEFAULT_WEIGHTS

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_weights(str(tmp_path / "nope.json"))

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "weights.toml"
        path.write_text("coverage = 1")

        with pytest.raises(ValueError, match="Unsupported file format"):
            load_weights(str(path))

    def test_load_json(self, tmp_path):
        path = tmp_path / "weights.json"
        path.write_text(json.dumps({"coverage": 0.5, "price": 0.5, "version": "exp-1"}))

        weights = load_weights(str(path))

        assert weights.coverage == 0.5
        assert weights.version == "exp-1"
        assert weights.completeness == DEFAULT_WEIGHTS.completeness

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "weights.yaml"
        path.write_text(yaml.dump({"coverage": 0.8, "price": 0.2, "knockout_missing_ratio": 0.4}))

        weights = load_weights(str(path))

        assert weights.coverage == 0.8
        assert weights.knockout_missing_ratio == 0.4

    def test_empty_yaml_is_defaults(self, tmp_path):
        path = tmp_path / "weights.yml"
        path.write_text("")

        assert load_weights(str(path)) == DEFAULT_WEIGHTS

    def test_save_then_load(self, tmp_path):
        weights = ScoringWeights(coverage=0.6, price=0.4, version="2.0")
        path = tmp_path / "weights.yaml"

        save_weights(weights, str(path))

        assert load_weights(str(path)) == weights
