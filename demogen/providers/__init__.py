from demogen.providers.base import (
    ComponentProvider,
    ComponentVariant,
    GenerationResult,
    NarrativeContent,
    NarrativeProvider,
    Usage,
)
from demogen.providers.offline import OFFLINE_PROVIDER, OfflineProvider
from demogen.providers.registry import ProviderRegistry

__all__ = [
    "ComponentProvider",
    "ComponentVariant",
    "GenerationResult",
    "NarrativeContent",
    "NarrativeProvider",
    "OFFLINE_PROVIDER",
    "OfflineProvider",
    "ProviderRegistry",
    "Usage",
]
