from __future__ import annotations
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import httpx
from demogen.core.errors import ProviderError
from demogen.providers.base import ComponentVariant, GenerationResult, Usage, flatten_extracts
from demogen.providers.wire import ChatCompletion, parse_wire
from demogen.schemas.demos import UseCaseInput

log = logging.getLogger(__name__)


@dataclass
class V0Provider:
    """React component generation through the v0 model API (OpenAI-compatible)."""
    api_key: str
    base_url: str = "https://api.v0.dev/v1"
    model: str = "v0-1.5-md"
    max_tokens: int = 4000
    cost_per_request: float = 0.15
    timeout: float = 60.0
    transport: Optional[httpx.AsyncBaseTransport] = None
    name: str = "v0"

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def _complete(self, prompt: str) -> Dict[str, Any]:
        url = f"{self.base_url.rstrip('/')}/chat/completions"
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_completion_tokens": self.max_tokens,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                r = await client.post(url, headers=self._headers(), json=payload)
                r.raise_for_status()
                return r.json()
        except httpx.TimeoutException as e:
            raise ProviderError(self.name, f"generation timeout after {self.timeout}s") from e
        except httpx.HTTPStatusError as e:
            raise ProviderError(self.name, f"HTTP {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise ProviderError(self.name, f"request failed: {e}") from e

    async def generate_components(self, prompt: str, use_case: UseCaseInput) -> GenerationResult:
        body = parse_wire(ChatCompletion, await self._complete(prompt), self.name, "completion response")

        component_id = body.id or f"v0_{uuid.uuid4().hex[:12]}"
        variants = []
        for i in range(len(body.choices)):
            code = body.content_at(i)
            variant_id = component_id if i == 0 else f"{component_id}_{i}"
            if code.strip():
                variants.append(ComponentVariant(id=variant_id, code=code))
            else:
                variants.append(ComponentVariant(
                    id=variant_id, code="", status="error",
                    error_message="No usable code returned by v0",
                ))
        if not variants:
            raise ProviderError(self.name, "completion response contained no choices")

        raw_usage = body.token_usage()
        usage = Usage(
            provider=self.name,
            prompt_tokens=raw_usage.prompt_tokens,
            completion_tokens=raw_usage.completion_tokens,
            cost=self.cost_per_request,
        )
        log.info("v0 returned %d variant(s) for %s", len(variants), use_case.title)

        extracts = flatten_extracts(variants)
        return GenerationResult(
            variants=variants,
            use_case=use_case.title,
            generated_at=datetime.now(timezone.utc).isoformat(),
            provider=self.name,
            html=extracts["html"],
            css=extracts["css"],
            javascript=extracts["javascript"],
            usage=usage,
        )
