from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional
import httpx
from demogen.core.config import Settings
from demogen.providers.azure_openai import AzureOpenAIProvider
from demogen.providers.base import ComponentProvider, NarrativeProvider
from demogen.providers.offline import OfflineProvider
from demogen.providers.v0 import V0Provider


@dataclass
class ProviderRegistry:
    """Narrative and component providers selected from configuration.

    A provider that is disabled or missing credentials is replaced by the
    offline provider, so callers never branch on configuration themselves.
    """
    narrative: NarrativeProvider
    component: ComponentProvider
    offline: OfflineProvider = field(default_factory=OfflineProvider)

    @property
    def narrative_enabled(self) -> bool:
        return not isinstance(self.narrative, OfflineProvider)

    @property
    def component_enabled(self) -> bool:
        return not isinstance(self.component, OfflineProvider)

    @staticmethod
    def offline_only() -> "ProviderRegistry":
        return ProviderRegistry(narrative=OfflineProvider(), component=OfflineProvider())

    @staticmethod
    def from_settings(
        settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "ProviderRegistry":
        narrative: NarrativeProvider = OfflineProvider()
        component: ComponentProvider = OfflineProvider()
        if settings.azure_openai_configured:
            narrative = AzureOpenAIProvider(
                endpoint=settings.azure_openai_endpoint,
                api_key=settings.azure_openai_api_key,
                deployment=settings.azure_openai_deployment,
                api_version=settings.azure_openai_api_version,
                max_tokens=settings.azure_openai_max_tokens,
                temperature=settings.azure_openai_temperature,
                prompt_cost_per_1k=settings.azure_openai_prompt_cost_per_1k,
                completion_cost_per_1k=settings.azure_openai_completion_cost_per_1k,
                timeout=settings.provider_timeout_seconds,
                transport=transport,
            )
        if settings.v0_configured:
            component = V0Provider(
                api_key=settings.v0_api_key,
                base_url=settings.v0_base_url,
                model=settings.v0_model,
                max_tokens=settings.v0_max_tokens,
                cost_per_request=settings.v0_cost_per_request,
                timeout=settings.provider_timeout_seconds,
                transport=transport,
            )
        return ProviderRegistry(narrative=narrative, component=component)
