"""Protocols for resolving the active model's metadata."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from promptfit.models.model_info import ModelInfo


@runtime_checkable
class ModelInfoProvider(Protocol):
    """Resolves the maximum input size and family of the active model."""

    def get_model_info(self) -> ModelInfo:
        """Return metadata for the currently selected model.

        Implementations may raise when no model can be resolved; callers
        degrade to conservative defaults in that case.
        """
        ...


@runtime_checkable
class AsyncModelInfoProvider(Protocol):
    """Async variant of :class:`ModelInfoProvider`."""

    async def aget_model_info(self) -> ModelInfo:
        """Asynchronously return metadata for the currently selected model."""
        ...
