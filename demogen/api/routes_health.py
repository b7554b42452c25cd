from fastapi import APIRouter, Depends, Request
from demogen import __version__
from demogen.api.deps import get_orchestrator
from demogen.core.engine import PipelineOrchestrator
from demogen.core.ratelimit import rate_limiter
from demogen.schemas.demos import utcnow

router = APIRouter()


def _configured(flag: bool) -> str:
    return "configured" if flag else "not_configured"


@router.get("/health")
@rate_limiter.general()
def health(request: Request, orchestrator: PipelineOrchestrator = Depends(get_orchestrator)):
    settings = orchestrator.settings
    return {
        "status": "healthy",
        "timestamp": utcnow().isoformat(),
        "services": {
            "azureOpenAI": _configured(settings.azure_openai_configured),
            "v0": _configured(settings.v0_configured),
        },
        "target": orchestrator.deployer.validate_target(),
        "version": __version__,
    }
