from fastapi import Header, Request
from demogen.core.engine import PipelineOrchestrator


def get_orchestrator(request: Request) -> PipelineOrchestrator:
    return request.app.state.orchestrator


def get_caller_id(x_caller_id: str | None = Header(default=None, max_length=100)) -> str:
    return x_caller_id or "anonymous"
