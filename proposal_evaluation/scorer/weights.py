"""Scoring weight configuration system.

The defaults reproduce the production scoring rules; alternative weights can
be loaded from a JSON or YAML file for experimentation.
"""

import json
import yaml
from pathlib import Path
from typing import Optional
from pydantic import BaseModel, field_validator


class CompletenessWeights(BaseModel):
    """Weight of each presence indicator in data completeness.

    All weights must sum to 1.0 so completeness stays within [0, 1].
    """

    price: float = 0.18
    timeline: float = 0.08
    scope_text: float = 0.20
    terms: float = 0.08
    fee_line_items: float = 0.22
    selected_services: float = 0.12
    milestones: float = 0.12

    @field_validator('price', 'timeline', 'scope_text', 'terms',
                     'fee_line_items', 'selected_services', 'milestones')
    @classmethod
    def weight_range(cls, v: float) -> float:
        """Ensure weights are between 0 and 1."""
        if not 0 <= v <= 1:
            raise ValueError(f"Weight must be between 0 and 1, got {v}")
        return v

    def model_post_init(self, __context) -> None:
        """Validate that weights sum to 1.0."""
        total = sum(self.model_dump().values())
        if abs(total - 1.0) > 0.001:
            raise ValueError(f"Completeness weights must sum to 1.0, got {total:.3f}")


class ScoringWeights(BaseModel):
    """Weights for the COMPARE final score and the knockout threshold.

    coverage + price must sum to 1.0. A SINGLE evaluation uses coverage alone.
    """

    coverage: float = 0.7
    price: float = 0.3
    knockout_missing_ratio: float = 0.5
    min_text_length: int = 50
    completeness: CompletenessWeights = CompletenessWeights()
    version: str = "1.0"

    @field_validator('coverage', 'price', 'knockout_missing_ratio')
    @classmethod
    def weight_range(cls, v: float) -> float:
        """Ensure weights are between 0 and 1."""
        if not 0 <= v <= 1:
            raise ValueError(f"Weight must be between 0 and 1, got {v}")
        return v

    def model_post_init(self, __context) -> None:
        """Validate that weights sum to 1.0."""
        total = self.coverage + self.price
        if abs(total - 1.0) > 0.001:
            raise ValueError(
                f"Weights must sum to 1.0, got {total:.3f}. "
                f"(C:{self.coverage}, P:{self.price})"
            )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return self.model_dump()


DEFAULT_WEIGHTS = ScoringWeights()


def load_weights(filepath: Optional[str] = None) -> ScoringWeights:
    """Load scoring weights from file or return defaults.

    Supports JSON and YAML formats.

    Args:
        filepath: Optional path to weights configuration file

    Returns:
        ScoringWeights instance

    Raises:
        FileNotFoundError: If filepath provided but doesn't exist
        ValueError: If weights are invalid
    """

    if not filepath:
        return DEFAULT_WEIGHTS

    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Weights file not found: {filepath}")

    if path.suffix == '.json':
        with open(path, 'r') as f:
            data = json.load(f)
    elif path.suffix in ['.yaml', '.yml']:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
    else:
        raise ValueError(f"Unsupported file format: {path.suffix}. Use .json, .yaml, or .yml")

    return ScoringWeights(**(data or {}))


def save_weights(weights: ScoringWeights, filepath: str) -> None:
    """Save scoring weights to file.

    Args:
        weights: ScoringWeights instance to save
        filepath: Path to save to (extension determines format)
    """

    path = Path(filepath)
    data = weights.to_dict()

    if path.suffix == '.json':
        with open(path, 'w') as f:
            json.dump(data, f, indent=2)
    elif path.suffix in ['.yaml', '.yml']:
        with open(path, 'w') as f:
            yaml.dump(data, f, default_flow_style=False)
    else:
        raise ValueError(f"Unsupported file format: {path.suffix}")
