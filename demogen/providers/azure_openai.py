from __future__ import annotations
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional
import httpx
from demogen.core.errors import ProviderError
from demogen.providers.base import NarrativeContent, Usage, extract_json_block
from demogen.providers.prompts import DEFAULT_CATEGORY, SYSTEM_PROMPT, enhancement_prompt
from demogen.providers.wire import ChatCompletion, EnhancementReply, parse_wire
from demogen.schemas.demos import UseCaseInput

log = logging.getLogger(__name__)


@dataclass
class AzureOpenAIProvider:
    """Narrative enhancement through an Azure OpenAI chat-completions deployment."""
    endpoint: str
    api_key: str
    deployment: str
    api_version: str = "2024-06-01"
    max_tokens: int = 2000
    temperature: float = 0.7
    prompt_cost_per_1k: float = 0.03
    completion_cost_per_1k: float = 0.06
    timeout: float = 60.0
    transport: Optional[httpx.AsyncBaseTransport] = None
    name: str = "azure-openai"

    def _headers(self) -> dict:
        return {"api-key": self.api_key, "Content-Type": "application/json"}

    def _url(self) -> str:
        return (
            f"{self.endpoint.rstrip('/')}/openai/deployments/{self.deployment}"
            f"/chat/completions?api-version={self.api_version}"
        )

    def cost_of(self, usage: Dict[str, Any]) -> float:
        prompt = usage.get("prompt_tokens", 0) / 1000 * self.prompt_cost_per_1k
        completion = usage.get("completion_tokens", 0) / 1000 * self.completion_cost_per_1k
        return prompt + completion

    async def _chat(self, prompt: str) -> Dict[str, Any]:
        payload = {
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                r = await client.post(self._url(), headers=self._headers(), json=payload)
                r.raise_for_status()
                return r.json()
        except httpx.TimeoutException as e:
            raise ProviderError(self.name, f"request timed out after {self.timeout}s") from e
        except httpx.HTTPStatusError as e:
            raise ProviderError(self.name, f"HTTP {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise ProviderError(self.name, f"request failed: {e}") from e

    async def enhance_use_case(self, use_case: UseCaseInput) -> NarrativeContent:
        body = parse_wire(ChatCompletion, await self._chat(enhancement_prompt(use_case)), self.name, "completion response")
        if not body.choices:
            raise ProviderError(self.name, "completion response contained no choices")
        try:
            parsed = json.loads(extract_json_block(body.content_at(0)))
        except json.JSONDecodeError as e:
            raise ProviderError(self.name, "invalid response format for use case enhancement") from e
        if not isinstance(parsed, dict):
            raise ProviderError(self.name, "enhancement response is not a JSON object")
        reply = parse_wire(EnhancementReply, parsed, self.name, "enhancement response")

        raw_usage = body.token_usage()
        usage = Usage(
            provider=self.name,
            prompt_tokens=raw_usage.prompt_tokens,
            completion_tokens=raw_usage.completion_tokens,
            cost=self.cost_of(raw_usage.model_dump()),
        )
        log.info("Azure OpenAI enhancement completed: %d tokens, $%.4f",
                 usage.prompt_tokens + usage.completion_tokens, usage.cost)

        return NarrativeContent(
            title=use_case.title,
            category=reply.inferred_category or use_case.category or DEFAULT_CATEGORY,
            description=reply.enhanced_description
            or use_case.description
            or f"{use_case.title} demonstrating {', '.join(use_case.capabilities)}",
            capabilities=reply.enhanced_capabilities or list(use_case.capabilities),
            user_journey=reply.journey_titles(),
            success_metrics=reply.success_metrics or [],
            executive_summary=reply.executive_summary or "",
            business_value=reply.business_value or [],
            sample_data=reply.sample_data or {},
            confidence=0.8 if reply.confidence is None else reply.confidence,
            provider=self.name,
            usage=usage,
        )
