"""Model metadata providers."""

from __future__ import annotations

from promptfit.models.model_info import UNKNOWN_MODEL_FAMILY, ModelInfo


class StaticModelInfoProvider:
    """Serves fixed model metadata.

    Implements the ModelInfoProvider protocol via structural subtyping.
    Useful when the caller already knows the context window of the model
    it will call.
    """

    __slots__ = ("_info",)

    def __init__(
        self,
        max_input_tokens: int,
        family: str = UNKNOWN_MODEL_FAMILY,
        model_id: str | None = None,
    ) -> None:
        self._info = ModelInfo(
            model_id=model_id or family,
            family=family,
            max_input_tokens=max_input_tokens,
        )

    def get_model_info(self) -> ModelInfo:
        return self._info

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(family={self._info.family!r}, "
            f"max_input_tokens={self._info.max_input_tokens})"
        )
