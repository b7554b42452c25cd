from __future__ import annotations
import uuid
from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Literal, Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel
from demogen.core.workflow import DemoStatus, progress_for

SAFE_TEXT = r"^[a-zA-Z0-9\s\-_.,!?()]+$"
SAFE_TEXT_OR_EMPTY = r"^[a-zA-Z0-9\s\-_.,!?()]*$"

Category = Literal["Content Generation", "Process Automation", "Personalized Experience"]
IndustryVertical = Literal["fintech", "healthcare", "ecommerce", "education", "manufacturing", "other"]
Capability = Annotated[str, StringConstraints(min_length=2, max_length=100, pattern=SAFE_TEXT)]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_demo_id() -> str:
    return f"demo_{uuid.uuid4().hex}"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UIStylePreferences(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True, extra="forbid")

    color_scheme: Optional[Literal["light", "dark", "auto"]] = None
    component_library: Optional[Literal["shadcn", "mui", "chakra", "tailwind"]] = None
    layout_style: Optional[Literal["dashboard", "landing", "app", "portal"]] = None


class UseCaseInput(BaseModel):
    """A use case as submitted by the caller. Frozen once validated."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str = Field(
        ...,
        min_length=3,
        max_length=200,
        pattern=SAFE_TEXT,
        validation_alias=AliasChoices("useCaseTitle", "title"),
        examples=["AI-Powered Customer Support"],
    )
    capabilities: List[Capability] = Field(
        ...,
        min_length=1,
        max_length=10,
        validation_alias=AliasChoices("keyCapabilities", "capabilities"),
        examples=[["Natural language processing", "Automated routing"]],
    )
    description: Optional[str] = Field(None, max_length=500)
    category: Optional[Category] = None
    target_audience: Optional[str] = Field(
        None,
        max_length=100,
        pattern=SAFE_TEXT_OR_EMPTY,
        validation_alias=AliasChoices("targetAudience", "target_audience"),
    )
    industry_vertical: Optional[IndustryVertical] = Field(
        None, validation_alias=AliasChoices("industryVertical", "industry_vertical")
    )
    ui_style_preferences: Optional[UIStylePreferences] = Field(
        None, validation_alias=AliasChoices("uiStylePreferences", "ui_style_preferences")
    )


class AIEnhancementOptions(CamelModel):
    enhance_description: bool = True
    generate_synthetic_data: bool = True
    create_user_journey: bool = True
    suggest_improvements: bool = True
    confidence_threshold: float = Field(0.8, ge=0, le=1)


class GenerationPreferences(CamelModel):
    use_v0: bool = Field(True, alias="useV0")
    use_azure_openai: bool = Field(True, alias="useAzureOpenAI")
    fallback_to_basic: bool = True
    max_generation_time: int = Field(60000, ge=30000, le=300000)
    run_async: bool = False


class GenerationOptions(BaseModel):
    """Orchestrator options resolved from request toggles."""
    use_ai_enhancement: bool = True
    use_component_generation: bool = True
    fallback_on_error: bool = True
    run_async: bool = False
    provider_timeout_seconds: Optional[float] = None
    confidence_threshold: float = 0.8
    generate_synthetic_data: bool = True
    create_user_journey: bool = True
    suggest_improvements: bool = True

    @classmethod
    def from_request(
        cls,
        preferences: Optional[GenerationPreferences],
        enhancement: Optional[AIEnhancementOptions],
    ) -> "GenerationOptions":
        preferences = preferences or GenerationPreferences()
        enhancement = enhancement or AIEnhancementOptions()
        return cls(
            use_ai_enhancement=preferences.use_azure_openai and enhancement.enhance_description,
            use_component_generation=preferences.use_v0,
            fallback_on_error=preferences.fallback_to_basic,
            run_async=preferences.run_async,
            provider_timeout_seconds=preferences.max_generation_time / 1000,
            confidence_threshold=enhancement.confidence_threshold,
            generate_synthetic_data=enhancement.generate_synthetic_data,
            create_user_journey=enhancement.create_user_journey,
            suggest_improvements=enhancement.suggest_improvements,
        )

    @classmethod
    def legacy(cls) -> "GenerationOptions":
        return cls(use_ai_enhancement=False, use_component_generation=True, provider_timeout_seconds=30)


class EnhancedDemoRequest(UseCaseInput):
    ai_enhancement_options: Optional[AIEnhancementOptions] = Field(
        None, validation_alias=AliasChoices("aiEnhancementOptions", "ai_enhancement_options")
    )
    generation_preferences: Optional[GenerationPreferences] = Field(
        None, validation_alias=AliasChoices("generationPreferences", "generation_preferences")
    )

    def use_case(self) -> UseCaseInput:
        return UseCaseInput.model_validate(self.model_dump(include=set(UseCaseInput.model_fields)))

    def options(self) -> GenerationOptions:
        return GenerationOptions.from_request(self.generation_preferences, self.ai_enhancement_options)


class DemoError(CamelModel):
    code: str
    message: str
    step: Optional[str] = None


class CostRecord(CamelModel):
    azure_openai: float = Field(0.0, alias="azureOpenAI")
    v0: float = 0.0
    total: float = 0.0
    currency: str = "USD"
    prompt_tokens: int = 0
    completion_tokens: int = 0
    requests: int = 0


class PromptLog(CamelModel):
    provider: str
    prompt_hash: str
    prompt_length: int
    duration_ms: int
    error: Optional[str] = None


class Demo(CamelModel):
    """The record that tracks one generation request end-to-end."""
    demo_id: str = Field(default_factory=new_demo_id)
    title: str
    capabilities: List[str]
    input: Dict[str, Any]
    status: DemoStatus = DemoStatus.PENDING
    component_source: Optional[str] = None
    sample_data: Optional[Dict[str, Any]] = None
    ai_preview: Optional[Dict[str, Any]] = None
    demo: Optional[Dict[str, Any]] = None
    dependencies: Optional[Dict[str, Any]] = None
    deployment: Optional[Dict[str, Any]] = None
    provenance: Dict[str, str] = Field(default_factory=dict)
    costs: CostRecord = Field(default_factory=CostRecord)
    prompt_logs: List[PromptLog] = Field(default_factory=list)
    error: Optional[DemoError] = None
    created_by: str = "anonymous"
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def use_case(self) -> UseCaseInput:
        return UseCaseInput.model_validate(self.input)

    def to_response(self) -> Dict[str, Any]:
        progress = progress_for(self.status)
        data = self.model_dump(mode="json", by_alias=True)
        data["progress"] = {
            "percentage": progress.percentage,
            "currentStep": progress.current_step,
            "steps": progress.steps,
        }
        return data


class DemoStatusResponse(CamelModel):
    demo_id: str
    status: DemoStatus
    progress: Dict[str, Any]
    error: Optional[DemoError] = None
