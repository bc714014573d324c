"""Active model metadata."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

UNKNOWN_MODEL_FAMILY = "unknown"


class ModelInfo(BaseModel):
    """Maximum input size and family of the model a prompt is built for.

    ``family`` is informational (logging and heuristics only); no
    correctness-critical branch depends on it.
    """

    model_id: str = UNKNOWN_MODEL_FAMILY
    family: str = UNKNOWN_MODEL_FAMILY
    max_input_tokens: int = Field(gt=0)

    model_config = ConfigDict(frozen=True)

    @property
    def is_unknown(self) -> bool:
        return self.family == UNKNOWN_MODEL_FAMILY
