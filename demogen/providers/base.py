"""Dataclasses and capability interfaces for generation providers."""
from __future__ import annotations
import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Protocol
from demogen.schemas.demos import UseCaseInput


@dataclass(frozen=True)
class Usage:
    """Billable usage of one provider call."""
    provider: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    cost: float = 0.0


@dataclass
class NarrativeContent:
    """Structured narrative produced by the enhancement provider."""
    title: str
    category: str
    description: str
    capabilities: List[str]
    user_journey: List[str] = field(default_factory=list)
    success_metrics: List[Dict[str, Any]] = field(default_factory=list)
    executive_summary: str = ""
    business_value: List[str] = field(default_factory=list)
    sample_data: Dict[str, Any] = field(default_factory=dict)
    confidence: float = 0.0
    provider: str = ""
    usage: Optional[Usage] = None

    def tagged(self, provider: str) -> "NarrativeContent":
        return replace(self, provider=provider)


@dataclass
class ComponentVariant:
    id: str
    code: str
    framework: str = "react"
    styling: str = "tailwindcss"
    status: str = "success"  # "success" or "error"
    error_message: Optional[str] = None


@dataclass
class GenerationResult:
    """Output of a component provider: ordered variants plus flattened extracts."""
    variants: List[ComponentVariant]
    use_case: str
    generated_at: str
    provider: str
    html: str = ""
    css: str = ""
    javascript: str = ""
    usage: Optional[Usage] = None

    def tagged(self, provider: str) -> "GenerationResult":
        return replace(self, provider=provider)


class NarrativeProvider(Protocol):
    name: str

    async def enhance_use_case(self, use_case: UseCaseInput) -> NarrativeContent:
        ...


class ComponentProvider(Protocol):
    name: str

    async def generate_components(self, prompt: str, use_case: UseCaseInput) -> GenerationResult:
        ...


def assess_complexity(code: str) -> str:
    """Rough complexity bucket of generated component code."""
    lines = len(code.split("\n"))
    score = 2 if lines > 200 else 1 if lines > 100 else 0
    if re.search(r"chart|graph|plot", code, re.IGNORECASE):
        score += 1
    if re.search(r"animate|transition|motion", code, re.IGNORECASE):
        score += 1
    if re.search(r"useState|useEffect|useReducer", code):
        score += 1
    if score >= 4:
        return "complex"
    if score >= 2:
        return "moderate"
    return "simple"


TAILWIND_CSS = "@tailwind base;\n@tailwind components;\n@tailwind utilities;\n"


def flatten_extracts(variants: List[ComponentVariant]) -> Dict[str, str]:
    """Build standalone HTML/CSS/script extracts from the successful variants."""
    ok = [v for v in variants if v.status == "success" and v.code]
    if not ok:
        return {"html": "", "css": "", "javascript": ""}
    javascript = "\n\n".join(v.code for v in ok)
    html = (
        "<!DOCTYPE html>\n"
        "<html lang=\"en\">\n"
        "<head>\n"
        "  <meta charset=\"UTF-8\">\n"
        "  <meta name=\"viewport\" content=\"width=device-width, initial-scale=1.0\">\n"
        "  <title>AI-Generated Demo</title>\n"
        "  <script src=\"https://unpkg.com/react@18/umd/react.development.js\"></script>\n"
        "  <script src=\"https://unpkg.com/react-dom@18/umd/react-dom.development.js\"></script>\n"
        "  <script src=\"https://unpkg.com/@babel/standalone/babel.min.js\"></script>\n"
        "  <script src=\"https://cdn.tailwindcss.com\"></script>\n"
        "</head>\n"
        "<body>\n"
        "  <div id=\"root\"></div>\n"
        "  <script type=\"text/babel\">\n"
        f"{ok[0].code}\n"
        "  </script>\n"
        "</body>\n"
        "</html>\n"
    )
    return {"html": html, "css": TAILWIND_CSS, "javascript": javascript}


def extract_json_block(content: str) -> str:
    """Strip a surrounding ```json fence from a model response, if present."""
    match = re.search(r"```(?:json)?\s*\n([\s\S]*?)\n```", content)
    return match.group(1) if match else content.strip()
