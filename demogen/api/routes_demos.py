from __future__ import annotations
import logging
from fastapi import APIRouter, Depends, Request
from demogen.api.deps import get_caller_id, get_orchestrator
from demogen.core.engine import PipelineOrchestrator
from demogen.core.ratelimit import rate_limiter
from demogen.schemas.demos import EnhancedDemoRequest, GenerationOptions, UseCaseInput

log = logging.getLogger(__name__)

router = APIRouter()


@router.post("/generate-demo-enhanced")
@rate_limiter.general()
@rate_limiter.generation()
async def generate_demo_enhanced(
    req: EnhancedDemoRequest,
    request: Request,
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
    caller_id: str = Depends(get_caller_id),
):
    demo = await orchestrator.generate(req.use_case(), req.options(), created_by=caller_id)
    return {"success": True, "requestId": request.state.request_id, "data": demo.to_response()}


@router.post("/generate-demo")
@rate_limiter.general()
@rate_limiter.generation()
async def generate_demo(
    req: UseCaseInput,
    request: Request,
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
    caller_id: str = Depends(get_caller_id),
):
    """Component generation only, no narrative enhancement."""
    demo = await orchestrator.generate(req, GenerationOptions.legacy(), created_by=caller_id)
    payload = demo.demo or {}
    return {
        "success": True,
        "requestId": request.state.request_id,
        "data": {
            "demoId": demo.demo_id,
            "status": demo.status.value,
            "componentSource": demo.component_source,
            "metadata": payload.get("metadata"),
            "generatedBy": demo.provenance,
            "error": demo.error.model_dump(by_alias=True) if demo.error else None,
        },
    }


@router.post("/preview-ai-enhancements")
@rate_limiter.general()
@rate_limiter.generation()
async def preview_ai_enhancements(
    req: UseCaseInput,
    request: Request,
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
):
    preview = await orchestrator.preview(req)
    return {"success": True, "requestId": request.state.request_id, "data": preview}


@router.get("/demo-status/{demo_id}")
@rate_limiter.general()
async def demo_status(demo_id: str, request: Request, orchestrator: PipelineOrchestrator = Depends(get_orchestrator)):
    status = await orchestrator.status(demo_id)
    return {
        "success": True,
        "requestId": request.state.request_id,
        "data": status.model_dump(mode="json", by_alias=True),
    }


@router.get("/demos/{demo_id}")
@rate_limiter.general()
async def get_demo(demo_id: str, request: Request, orchestrator: PipelineOrchestrator = Depends(get_orchestrator)):
    demo = await orchestrator.get(demo_id)
    return {"success": True, "requestId": request.state.request_id, "data": demo.to_response()}


@router.get("/service-stats")
@rate_limiter.general()
async def service_stats(request: Request, orchestrator: PipelineOrchestrator = Depends(get_orchestrator)):
    return {"success": True, "requestId": request.state.request_id, "data": orchestrator.service_stats()}
