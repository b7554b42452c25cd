"""Deterministic offline provider.

Used when a real provider is disabled by configuration or when a real call fails
and fallback is enabled. No network, no clock-dependent content.
"""
from __future__ import annotations
import hashlib
import json
from datetime import datetime, timezone
from demogen.providers.base import ComponentVariant, GenerationResult, NarrativeContent, Usage, flatten_extracts
from demogen.providers.prompts import basic_narrative
from demogen.schemas.demos import UseCaseInput

OFFLINE_PROVIDER = "offline"


def _digest(text: str) -> str:
    return hashlib.sha1(text.encode("utf-8")).hexdigest()[:12]


def _sample_data(use_case: UseCaseInput) -> dict:
    seed = int(_digest(use_case.title), 16)
    users = [
        {"id": f"USR-{1000 + i}", "name": name, "segment": segment}
        for i, (name, segment) in enumerate([
            ("Sarah Chen", "Private Banking"),
            ("Marcus Reid", "Retail"),
            ("Priya Natarajan", "Wealth Management"),
        ])
    ]
    transactions = [
        {"id": f"TX-{seed % 9000 + 1000 + i}", "amount": round(250 + (seed >> i) % 50000 / 10, 2), "status": status}
        for i, status in enumerate(["approved", "in_review", "flagged"])
    ]
    metrics = [
        {"name": cap, "value": f"{85 + (seed >> (i * 3)) % 14}%"}
        for i, cap in enumerate(use_case.capabilities)
    ]
    return {"users": users, "transactions": transactions, "metrics": metrics}


def _component_code(narrative: NarrativeContent) -> str:
    title = narrative.title.replace("`", "'")
    cards = json.dumps(narrative.capabilities)
    return f"""import React, {{ useState }} from 'react';

const CAPABILITIES = {cards};

export default function DemoApp() {{
  const [processing, setProcessing] = useState(false);
  const [completed, setCompleted] = useState([]);

  const runDemo = () => {{
    setProcessing(true);
    setCompleted(CAPABILITIES);
    setProcessing(false);
  }};

  return (
    <div className="min-h-screen bg-gray-50 p-8">
      <div className="max-w-6xl mx-auto">
        <header className="bg-gradient-to-r from-blue-600 to-indigo-600 text-white p-8 rounded-lg mb-8">
          <h1 className="text-3xl font-bold mb-2">{title}</h1>
          <p className="text-blue-100">{narrative.category}</p>
        </header>
        <div className="grid grid-cols-1 md:grid-cols-2 gap-4 mb-8">
          {{CAPABILITIES.map((cap) => (
            <div key={{cap}} className="bg-white p-4 rounded-lg shadow border-l-4 border-blue-500">
              <h3 className="font-semibold text-gray-800">{{cap}}</h3>
              <p className="text-sm text-gray-600">
                {{completed.includes(cap) ? 'Completed' : 'Ready'}}
              </p>
            </div>
          ))}}
        </div>
        <button
          onClick={{runDemo}}
          disabled={{processing}}
          className="bg-blue-600 text-white px-6 py-3 rounded-lg hover:bg-blue-700 disabled:opacity-50"
        >
          {{processing ? 'Processing...' : 'Run Demo'}}
        </button>
      </div>
    </div>
  );
}}
"""


class OfflineProvider:
    name = OFFLINE_PROVIDER

    async def enhance_use_case(self, use_case: UseCaseInput) -> NarrativeContent:
        narrative = basic_narrative(use_case)
        narrative.executive_summary = (
            f"{use_case.title} shows how {', '.join(use_case.capabilities)} "
            f"can streamline work for {use_case.target_audience or 'Financial Services teams'}."
        )
        narrative.business_value = [f"Faster outcomes through {cap.lower()}" for cap in use_case.capabilities]
        narrative.sample_data = _sample_data(use_case)
        narrative.confidence = 0.5
        narrative.provider = self.name
        narrative.usage = Usage(provider=self.name)
        return narrative

    async def generate_components(self, prompt: str, use_case: UseCaseInput) -> GenerationResult:
        narrative = basic_narrative(use_case)
        variant = ComponentVariant(id=f"offline_{_digest(prompt)}", code=_component_code(narrative))
        extracts = flatten_extracts([variant])
        return GenerationResult(
            variants=[variant],
            use_case=use_case.title,
            generated_at=datetime.now(timezone.utc).isoformat(),
            provider=self.name,
            html=extracts["html"],
            css=extracts["css"],
            javascript=extracts["javascript"],
            usage=Usage(provider=self.name),
        )
