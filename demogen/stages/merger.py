"""Combine narrative output and component output into one demo payload."""
from __future__ import annotations
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional
from demogen.core.errors import ContentMergeError
from demogen.providers.base import GenerationResult, NarrativeContent, Usage, assess_complexity

PAYLOAD_VERSION = "1.0.0"


@dataclass(frozen=True)
class EnhancedDemoPayload:
    component_id: str
    component_source: str
    narrative: Dict[str, Any]
    synthetic_data: Dict[str, Any]
    demo_script: str
    metadata: Dict[str, Any]
    costs: Dict[str, float]
    usage: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "componentId": self.component_id,
            "aiEnhancedContent": self.narrative,
            "syntheticData": self.synthetic_data,
            "demoScript": self.demo_script,
            "metadata": self.metadata,
            "costs": self.costs,
        }


def _usage_of(*usages: Optional[Usage]) -> List[Usage]:
    return [u for u in usages if u is not None]


def merge(narrative: NarrativeContent, component_result: GenerationResult) -> EnhancedDemoPayload:
    """Pure merge of both stage outputs.

    The first successful variant wins, in the provider's order. When no variant
    succeeded, the first variant's error message is raised as a merge failure.
    The payload carries no wall-clock values, so equal inputs give equal output.
    """
    if not component_result.variants:
        raise ContentMergeError("component generation returned no variants")
    chosen = next((v for v in component_result.variants if v.status == "success" and v.code), None)
    if chosen is None:
        first = component_result.variants[0]
        raise ContentMergeError(first.error_message or f"variant {first.id} failed", {"variantId": first.id})

    usages = _usage_of(narrative.usage, component_result.usage)
    costs = {
        "azureOpenAI": round(narrative.usage.cost if narrative.usage else 0.0, 6),
        "v0": round(component_result.usage.cost if component_result.usage else 0.0, 6),
    }
    costs["total"] = round(costs["azureOpenAI"] + costs["v0"], 6)

    narrative_dict = asdict(narrative)
    narrative_dict.pop("usage", None)

    metadata = {
        "generatedBy": {"narrative": narrative.provider, "component": component_result.provider},
        "version": PAYLOAD_VERSION,
        "category": narrative.category,
        "complexity": assess_complexity(chosen.code),
        "framework": chosen.framework,
        "styling": chosen.styling,
        "variantCount": len(component_result.variants),
    }
    return EnhancedDemoPayload(
        component_id=chosen.id,
        component_source=chosen.code,
        narrative=narrative_dict,
        synthetic_data=dict(narrative.sample_data) if isinstance(narrative.sample_data, dict) else {},
        demo_script=narrative.executive_summary,
        metadata=metadata,
        costs=costs,
        usage=[asdict(u) for u in usages],
    )
