from __future__ import annotations
from typing import Any, Dict, List, Optional, Union
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator
from demogen.core.errors import ProviderError

# Models for the chat-completions bodies returned by Azure OpenAI and v0.


class ChatMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")
    role: Optional[str] = None
    content: Optional[str] = None


class ChatChoice(BaseModel):
    model_config = ConfigDict(extra="ignore")
    index: Optional[int] = None
    message: Optional[ChatMessage] = None


class ChatUsage(BaseModel):
    model_config = ConfigDict(extra="ignore")
    prompt_tokens: int = 0
    completion_tokens: int = 0

    @field_validator("prompt_tokens", "completion_tokens", mode="before")
    @classmethod
    def _none_is_zero(cls, v):
        return 0 if v is None else v


class ChatCompletion(BaseModel):
    model_config = ConfigDict(extra="ignore")
    id: Optional[str] = None
    choices: List[Optional[ChatChoice]]
    usage: Optional[ChatUsage] = None

    def content_at(self, i: int) -> str:
        choice = self.choices[i]
        message = choice.message if choice else None
        return (message.content if message else None) or ""

    def token_usage(self) -> ChatUsage:
        return self.usage or ChatUsage()


class JourneyStep(BaseModel):
    model_config = ConfigDict(extra="allow")
    title: Optional[str] = None


class EnhancementReply(BaseModel):
    """The JSON object the enhancement prompt asks the model to return."""
    model_config = ConfigDict(extra="ignore")

    enhanced_description: Optional[str] = Field(default=None, alias="enhancedDescription")
    inferred_category: Optional[str] = Field(default=None, alias="inferredCategory")
    enhanced_capabilities: Optional[List[str]] = Field(default=None, alias="enhancedCapabilities")
    user_journey: Optional[List[Union[str, JourneyStep]]] = Field(
        default=None, validation_alias=AliasChoices("userJourney", "detailedUserJourney"),
    )
    success_metrics: Optional[List[Dict[str, Any]]] = Field(default=None, alias="successMetrics")
    executive_summary: Optional[str] = Field(default=None, alias="executiveSummary")
    business_value: Optional[List[str]] = Field(default=None, alias="businessValue")
    sample_data: Optional[Dict[str, Any]] = Field(default=None, alias="sampleData")
    confidence: Optional[float] = Field(default=None, ge=0, le=1)

    def journey_titles(self) -> List[str]:
        return [
            (s.title or str(s.model_dump(exclude_none=True))) if isinstance(s, JourneyStep) else s
            for s in self.user_journey or []
        ]


def parse_wire(model, data: Any, provider: str, what: str):
    """Validate a decoded provider body, turning schema errors into ProviderError."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        loc = ".".join(str(p) for p in first.get("loc", ()))
        raise ProviderError(provider, f"malformed {what}: {loc or 'body'} {first.get('msg', '')}".rstrip()) from e
