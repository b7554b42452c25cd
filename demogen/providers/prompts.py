"""Prompt builders.

Prompts are pure functions of the use case so that the same (possibly enhanced)
use case always yields the same component-generation prompt.
"""
from __future__ import annotations
from typing import Optional
from demogen.providers.base import NarrativeContent
from demogen.schemas.demos import UseCaseInput

DEFAULT_CATEGORY = "Content Generation"

SYSTEM_PROMPT = (
    "You are an expert assistant that designs professional, compelling demo applications "
    "for Financial Services. Answer in JSON when a JSON format is requested."
)

SELF_CONTAINED_RULES = """
Demo requirements:
- Use ONLY synthetic data; no file uploads, external APIs or API keys.
- Pre-populate every form, table and chart with realistic sample data.
- Every button and interaction must work and show the use case end-to-end.
- Export a single default React component styled with Tailwind CSS."""


def basic_narrative(use_case: UseCaseInput) -> NarrativeContent:
    """Narrative built from the raw input when no enhancement is available."""
    return NarrativeContent(
        title=use_case.title,
        category=use_case.category or DEFAULT_CATEGORY,
        description=use_case.description
        or f"{use_case.title} demonstrating {', '.join(use_case.capabilities)}",
        capabilities=list(use_case.capabilities),
        user_journey=[f"Step {i + 1}: {cap}" for i, cap in enumerate(use_case.capabilities)],
    )


def enhancement_prompt(use_case: UseCaseInput) -> str:
    return f"""
Enhance this Financial Services AI use case with professional details.

Input:
- Title: {use_case.title}
- Key Capabilities: {', '.join(use_case.capabilities)}
- Description: {use_case.description or 'Not provided'}
- Category: {use_case.category or 'Not specified'}
- Target Audience: {use_case.target_audience or 'Financial Services professionals'}
- Industry Vertical: {use_case.industry_vertical or 'Financial Services'}

Respond with a JSON object:
{{
  "enhancedDescription": "2-3 sentences on the business value",
  "inferredCategory": "Content Generation | Process Automation | Personalized Experience",
  "enhancedCapabilities": ["..."],
  "userJourney": ["Step title", "..."],
  "successMetrics": [{{"name": "...", "value": "...", "improvement": "...", "category": "efficiency | cost | quality | satisfaction"}}],
  "executiveSummary": "One paragraph for an executive audience",
  "businessValue": ["Quantified benefit", "..."],
  "sampleData": {{"users": [], "transactions": [], "metrics": []}},
  "confidence": 0.95
}}
"""


def _style_hint(use_case: Optional[UseCaseInput]) -> str:
    if use_case is None or use_case.ui_style_preferences is None:
        return ""
    prefs = use_case.ui_style_preferences
    parts = []
    if prefs.color_scheme:
        parts.append(f"{prefs.color_scheme} color scheme")
    if prefs.layout_style:
        parts.append(f"{prefs.layout_style} layout")
    if prefs.component_library:
        parts.append(f"{prefs.component_library} components")
    return f"\nStyle preferences: {', '.join(parts)}." if parts else ""


def component_prompt(narrative: NarrativeContent, use_case: Optional[UseCaseInput] = None) -> str:
    """Component-generation prompt, chosen by the narrative's category."""
    capabilities = ", ".join(narrative.capabilities)
    if narrative.category == "Process Automation":
        body = f"""
Create a React dashboard for "{narrative.title}" - a Financial Services process automation demo.

Business context: {narrative.description}
Automation capabilities: {capabilities}

Include a process overview with workflow status, a task queue with priorities,
an analytics panel with success rates and cost savings, and a monitoring panel
with alerts and an audit trail."""
    elif narrative.category == "Personalized Experience":
        body = f"""
Create a React application for "{narrative.title}" - a Financial Services personalization demo.

Personalization focus: {narrative.description}
AI capabilities: {capabilities}

Include a pre-loaded customer profile, personalized recommendations with the
reasoning behind them, an insights dashboard with goal tracking and an action
center with next steps."""
    elif narrative.category == "Content Generation":
        body = f"""
Create a professional React application for "{narrative.title}" - a Financial Services content generation demo.

Business context: {narrative.description}
Key capabilities: {capabilities}

Build a multi-step interface: a pre-filled input section, a processing view
with progress indicators, a results dashboard with confidence scores, and
export options."""
    else:
        body = f"""
Create a React demo application for "{narrative.title}".

Description: {narrative.description}
Capabilities: {capabilities}"""
    return body + _style_hint(use_case) + "\n" + SELF_CONTAINED_RULES
