"""Token counting utilities."""

from .counter import TiktokenCounter, get_default_counter
from .model_info import StaticModelInfoProvider
from .session import TokenSession

__all__ = [
    "StaticModelInfoProvider",
    "TiktokenCounter",
    "TokenSession",
    "get_default_counter",
]
