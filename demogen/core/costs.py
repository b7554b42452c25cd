from __future__ import annotations
import threading
from dataclasses import dataclass, field
from typing import Dict
from demogen.providers.base import Usage


@dataclass
class ProviderTotals:
    requests: int = 0
    prompt_tokens: int = 0
    completion_tokens: int = 0
    cost: float = 0.0

    def to_dict(self) -> dict:
        return {
            "requests": self.requests,
            "promptTokens": self.prompt_tokens,
            "completionTokens": self.completion_tokens,
            "cost": round(self.cost, 6),
        }


@dataclass
class CostLedger:
    """Process-wide usage totals per provider. Totals only ever grow."""
    totals: Dict[str, ProviderTotals] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def record(self, usage: Usage) -> None:
        with self._lock:
            t = self.totals.setdefault(usage.provider, ProviderTotals())
            t.requests += 1
            t.prompt_tokens += max(usage.prompt_tokens, 0)
            t.completion_tokens += max(usage.completion_tokens, 0)
            t.cost += max(usage.cost, 0.0)

    def snapshot(self) -> dict:
        with self._lock:
            providers = {name: t.to_dict() for name, t in self.totals.items()}
            total = round(sum(t.cost for t in self.totals.values()), 6)
        return {"providers": providers, "totalCost": total, "currency": "USD"}
