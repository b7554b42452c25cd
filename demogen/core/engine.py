from __future__ import annotations
import asyncio
import hashlib
import logging
import time
from dataclasses import replace
from typing import Any, Awaitable, Callable, Dict, Optional, Set, Union
import pydantic
from demogen.core.config import Settings
from demogen.core.costs import CostLedger
from demogen.core.errors import (
    ContentMergeError,
    DemoGenError,
    DependencyResolutionError,
    DeploymentError,
    DeploymentPreconditionError,
    InvalidTransitionError,
    NotFoundError,
    ProviderError,
    ValidationError,
)
from demogen.core.workflow import DemoStatus, PipelineStep, can_transition, progress_for
from demogen.providers.base import GenerationResult, NarrativeContent, Usage
from demogen.providers.offline import OFFLINE_PROVIDER
from demogen.providers.prompts import component_prompt
from demogen.providers.registry import ProviderRegistry
from demogen.schemas.demos import (
    CostRecord,
    Demo,
    DemoError,
    DemoStatusResponse,
    GenerationOptions,
    PromptLog,
    UseCaseInput,
    utcnow,
)
from demogen.stages.dependencies import DependencyResolver
from demogen.stages.deployer import DemoDeployer
from demogen.stages.merger import merge
from demogen.store import DemoStore, store_from_settings

log = logging.getLogger(__name__)

ESTIMATED_ENHANCEMENT_COST = 0.08

# Hands a pending demo to whatever runs it out of band (asyncio task, Celery, ...).
Scheduler = Callable[[str, GenerationOptions], Optional[Awaitable[None]]]


class PipelineOrchestrator:
    """Drives one Demo from `pending` to `completed` or `failed`.

    The orchestrator is the only writer of Demo records. Stages hand back
    results; the decision to degrade to the offline provider or to fail the
    demo is taken here.
    """

    def __init__(
        self,
        store: DemoStore,
        providers: ProviderRegistry,
        resolver: DependencyResolver,
        deployer: DemoDeployer,
        settings: Settings,
        ledger: Optional[CostLedger] = None,
        scheduler: Optional[Scheduler] = None,
    ):
        self.store = store
        self.providers = providers
        self.resolver = resolver
        self.deployer = deployer
        self.settings = settings
        self.ledger = ledger or CostLedger()
        self.scheduler = scheduler or self._spawn
        self._tasks: Set[asyncio.Task] = set()

    @staticmethod
    def from_settings(settings: Settings, scheduler: Optional[Scheduler] = None) -> "PipelineOrchestrator":
        if scheduler is None and settings.task_backend == "celery":
            from demogen.tasks.demos import enqueue_demo_pipeline
            scheduler = enqueue_demo_pipeline
        return PipelineOrchestrator(
            store=store_from_settings(settings),
            providers=ProviderRegistry.from_settings(settings),
            resolver=DependencyResolver(
                settings.demo_app_path,
                install_command=settings.install_command,
                timeout=settings.install_timeout_seconds,
            ),
            deployer=DemoDeployer(settings.demo_app_path),
            settings=settings,
            scheduler=scheduler,
        )

    # -- public operations -------------------------------------------------

    async def generate(
        self,
        use_case: Union[UseCaseInput, Dict[str, Any]],
        options: Optional[GenerationOptions] = None,
        created_by: str = "anonymous",
    ) -> Demo:
        use_case = self.validate(use_case)
        options = options or GenerationOptions()
        demo = await self.create(use_case, created_by)
        if options.run_async:
            pending = self.scheduler(demo.demo_id, options)
            if asyncio.iscoroutine(pending):
                await pending
            return demo
        return await self.run(demo.demo_id, options)

    @staticmethod
    def validate(use_case: Union[UseCaseInput, Dict[str, Any]]) -> UseCaseInput:
        if isinstance(use_case, UseCaseInput):
            return use_case
        try:
            return UseCaseInput.model_validate(use_case)
        except pydantic.ValidationError as e:
            raise ValidationError(
                "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()),
                e.errors(include_url=False, include_context=False),
            ) from e

    async def create(self, use_case: UseCaseInput, created_by: str = "anonymous") -> Demo:
        demo = Demo(
            title=use_case.title,
            capabilities=list(use_case.capabilities),
            input=use_case.model_dump(mode="json", exclude_none=True),
            created_by=created_by or "anonymous",
        )
        await self.store.create(demo)
        log.info("Demo created", extra={"demo_id": demo.demo_id, "stage": demo.status.value})
        return demo

    async def get(self, demo_id: str) -> Demo:
        demo = await self.store.get(demo_id)
        if demo is None:
            raise NotFoundError("Demo not found", {"demoId": demo_id})
        return demo

    async def status(self, demo_id: str) -> DemoStatusResponse:
        demo = await self.get(demo_id)
        progress = progress_for(demo.status)
        return DemoStatusResponse(
            demo_id=demo.demo_id,
            status=demo.status,
            progress={
                "percentage": progress.percentage,
                "currentStep": progress.current_step,
                "steps": progress.steps,
            },
            error=demo.error,
        )

    async def preview(self, use_case: Union[UseCaseInput, Dict[str, Any]]) -> Dict[str, Any]:
        """Narrative stage only. Nothing is stored."""
        use_case = self.validate(use_case)
        options = GenerationOptions()
        narrative = await self._enhance(None, use_case, options)
        return {
            "enhancedContent": _narrative_dict(narrative),
            "confidence": narrative.confidence,
            "provider": narrative.provider,
            "meetsConfidenceThreshold": narrative.confidence >= options.confidence_threshold,
            "estimatedCosts": {
                "azureOpenAI": ESTIMATED_ENHANCEMENT_COST,
                "v0": self.settings.v0_cost_per_request,
                "total": round(ESTIMATED_ENHANCEMENT_COST + self.settings.v0_cost_per_request, 2),
                "currency": "USD",
            },
        }

    def service_stats(self) -> Dict[str, Any]:
        return {
            "costs": self.ledger.snapshot(),
            "providers": {
                "narrative": getattr(self.providers.narrative, "name", OFFLINE_PROVIDER),
                "component": getattr(self.providers.component, "name", OFFLINE_PROVIDER),
            },
            "runningTasks": len(self._tasks),
        }

    async def run(self, demo_id: str, options: Optional[GenerationOptions] = None) -> Demo:
        options = options or GenerationOptions()
        demo = await self.get(demo_id)
        if demo.status.is_terminal:
            return demo
        try:
            return await self._run(demo, options)
        except DemoGenError as e:
            log.error("Pipeline failed: %s", e.message, extra={"demo_id": demo.demo_id, "stage": demo.status.value})
            return await self._fail(demo, e, _step_of(demo.status))
        except Exception as e:
            log.exception("Pipeline crashed", extra={"demo_id": demo.demo_id, "stage": demo.status.value})
            return await self._fail(demo, DemoGenError(str(e) or type(e).__name__), _step_of(demo.status))

    async def wait_idle(self) -> None:
        """Wait for every inline background run to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # -- pipeline ------------------------------------------------------------

    async def _run(self, demo: Demo, options: GenerationOptions) -> Demo:
        ctx = {"demo_id": demo.demo_id}
        use_case = demo.use_case()
        await self._set_status(demo, DemoStatus.PROCESSING)

        await self._set_status(demo, DemoStatus.AI_ENHANCING)
        narrative = await self._enhance(demo, use_case, options)
        demo.provenance["narrative"] = narrative.provider
        demo.sample_data = narrative.sample_data or None
        demo.ai_preview = {
            "enhancedDescription": narrative.description,
            "suggestedCategory": narrative.category,
            "inferredCapabilities": narrative.capabilities,
            "userJourney": narrative.user_journey,
            "sampleData": narrative.sample_data,
            "confidence": narrative.confidence,
            "meetsConfidenceThreshold": narrative.confidence >= options.confidence_threshold,
        }
        if narrative.provider != OFFLINE_PROVIDER and not demo.ai_preview["meetsConfidenceThreshold"]:
            log.warning("Narrative confidence %.2f is below threshold %.2f", narrative.confidence,
                        options.confidence_threshold, extra={**ctx, "stage": PipelineStep.AI_ENHANCEMENT.value})

        await self._set_status(demo, DemoStatus.V0_GENERATING)
        prompt = component_prompt(narrative, use_case)
        components = await self._generate_components(demo, prompt, use_case, options)
        demo.provenance["component"] = components.provider

        log.info("Merging content", extra={**ctx, "stage": PipelineStep.CONTENT_MERGING.value})
        try:
            payload = merge(narrative, components)
        except ContentMergeError as e:
            return await self._fail(demo, e, PipelineStep.CONTENT_MERGING)
        demo.demo = payload.to_dict()
        source = payload.component_source

        if self.settings.install_dependencies:
            log.info("Resolving dependencies", extra={**ctx, "stage": PipelineStep.FINALIZATION.value})
            installed = await self.resolver.resolve(source)
            demo.dependencies = installed.to_dict()
            if not installed.ok:
                return await self._fail(
                    demo,
                    DependencyResolutionError(installed.error or "dependency install failed", {"failed": installed.failed}),
                    PipelineStep.FINALIZATION,
                    source=source,
                )

        if self.settings.deploy_enabled:
            log.info("Deploying component", extra={**ctx, "stage": PipelineStep.FINALIZATION.value})
            deployed = await asyncio.to_thread(self.deployer.deploy, demo.title, source)
            demo.deployment = deployed.to_dict()
            if not deployed.success:
                error_cls = DeploymentPreconditionError if deployed.missing_directory else DeploymentError
                return await self._fail(
                    demo,
                    error_cls(deployed.error or "deployment failed"),
                    PipelineStep.FINALIZATION,
                    source=source,
                )

        demo.component_source = source
        await self._set_status(demo, DemoStatus.COMPLETED)
        log.info("Demo completed", extra={**ctx, "stage": DemoStatus.COMPLETED.value})
        return demo

    async def _enhance(self, demo: Optional[Demo], use_case: UseCaseInput, options: GenerationOptions) -> NarrativeContent:
        provider = self.providers.narrative
        enabled = options.use_ai_enhancement and self.providers.narrative_enabled
        narrative = await self._call_with_fallback(
            demo,
            PipelineStep.AI_ENHANCEMENT,
            getattr(provider, "name", OFFLINE_PROVIDER),
            enabled,
            lambda: provider.enhance_use_case(use_case),
            lambda: self.providers.offline.enhance_use_case(use_case),
            options,
        )
        return _apply_enhancement_options(narrative, options)

    async def _generate_components(
        self, demo: Demo, prompt: str, use_case: UseCaseInput, options: GenerationOptions
    ) -> GenerationResult:
        provider = self.providers.component
        enabled = options.use_component_generation and self.providers.component_enabled
        name = getattr(provider, "name", OFFLINE_PROVIDER)
        started = time.monotonic()
        error = None
        try:
            return await self._call_with_fallback(
                demo,
                PipelineStep.V0_GENERATION,
                name,
                enabled,
                lambda: provider.generate_components(prompt, use_case),
                lambda: self.providers.offline.generate_components(prompt, use_case),
                options,
            )
        except ProviderError as e:
            error = e.message
            raise
        finally:
            demo.prompt_logs.append(PromptLog(
                provider=name if enabled else OFFLINE_PROVIDER,
                prompt_hash=hashlib.sha256(prompt.encode("utf-8")).hexdigest()[:16],
                prompt_length=len(prompt),
                duration_ms=int((time.monotonic() - started) * 1000),
                error=error,
            ))

    async def _call_with_fallback(
        self,
        demo: Optional[Demo],
        step: PipelineStep,
        name: str,
        enabled: bool,
        real: Callable[[], Awaitable[Any]],
        offline: Callable[[], Awaitable[Any]],
        options: GenerationOptions,
    ):
        """Real provider when enabled, offline otherwise; offline again on failure if allowed."""
        ctx = {"demo_id": demo.demo_id if demo else "-", "stage": step.value}
        if not enabled:
            log.info("Provider %s disabled, using offline output", name, extra=ctx)
            return (await offline()).tagged(OFFLINE_PROVIDER)

        timeout = options.provider_timeout_seconds or self.settings.provider_timeout_seconds
        try:
            result = await asyncio.wait_for(real(), timeout=timeout)
        except asyncio.TimeoutError:
            failure = ProviderError(name, f"timed out after {timeout}s")
        except ProviderError as e:
            failure = e
        except Exception as e:
            log.exception("Provider %s raised unexpectedly", name, extra=ctx)
            failure = ProviderError(name, str(e) or type(e).__name__)
        else:
            self._record_usage(demo, result.usage)
            log.info("Provider %s succeeded", name, extra=ctx)
            return result.tagged(name)

        if options.fallback_on_error and self.settings.fallback_on_error:
            log.warning("Provider failed, falling back to offline output: %s", failure.message, extra=ctx)
            return (await offline()).tagged(f"{name}-fallback")
        log.error("Provider failed and fallback is off: %s", failure.message, extra=ctx)
        raise failure

    def _record_usage(self, demo: Optional[Demo], usage: Optional[Usage]) -> None:
        if usage is None or usage.provider == OFFLINE_PROVIDER:
            return
        self.ledger.record(usage)
        if demo is None:
            return
        costs: CostRecord = demo.costs
        if usage.provider == "v0":
            costs.v0 = round(costs.v0 + usage.cost, 6)
        else:
            costs.azure_openai = round(costs.azure_openai + usage.cost, 6)
        costs.total = round(costs.azure_openai + costs.v0, 6)
        costs.prompt_tokens += usage.prompt_tokens
        costs.completion_tokens += usage.completion_tokens
        costs.requests += 1

    # -- record keeping ----------------------------------------------------

    async def _set_status(self, demo: Demo, status: DemoStatus) -> None:
        if not can_transition(demo.status, status):
            raise InvalidTransitionError(f"cannot move demo from {demo.status.value} to {status.value}")
        demo.status = status
        demo.updated_at = utcnow()
        await self.store.update(demo)
        log.info("Status changed", extra={"demo_id": demo.demo_id, "stage": status.value})

    async def _fail(
        self, demo: Demo, error: DemoGenError, step: Optional[PipelineStep], source: Optional[str] = None
    ) -> Demo:
        demo.error = DemoError(code=error.code, message=error.message, step=step.value if step else None)
        if source is not None:
            demo.component_source = source
        if not demo.status.is_terminal:
            demo.status = DemoStatus.FAILED
        demo.updated_at = utcnow()
        await self.store.update(demo)
        log.error("Demo failed", extra={"demo_id": demo.demo_id, "stage": DemoStatus.FAILED.value})
        return demo

    def _spawn(self, demo_id: str, options: GenerationOptions) -> None:
        task = asyncio.get_running_loop().create_task(self.run(demo_id, options))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)


def _step_of(status: DemoStatus) -> Optional[PipelineStep]:
    return {
        DemoStatus.PENDING: PipelineStep.INPUT_VALIDATION,
        DemoStatus.PROCESSING: PipelineStep.INPUT_VALIDATION,
        DemoStatus.AI_ENHANCING: PipelineStep.AI_ENHANCEMENT,
        DemoStatus.V0_GENERATING: PipelineStep.V0_GENERATION,
    }.get(status)


def _apply_enhancement_options(narrative: NarrativeContent, options: GenerationOptions) -> NarrativeContent:
    changes: Dict[str, Any] = {}
    if not options.generate_synthetic_data:
        changes["sample_data"] = {}
    if not options.create_user_journey:
        changes["user_journey"] = []
    if not options.suggest_improvements:
        changes["business_value"] = []
    return replace(narrative, **changes) if changes else narrative


def _narrative_dict(narrative: NarrativeContent) -> Dict[str, Any]:
    return {
        "title": narrative.title,
        "description": narrative.description,
        "category": narrative.category,
        "capabilities": narrative.capabilities,
        "userJourney": narrative.user_journey,
        "successMetrics": narrative.success_metrics,
        "executiveSummary": narrative.executive_summary,
        "businessValue": narrative.business_value,
        "sampleData": narrative.sample_data,
        "confidence": narrative.confidence,
    }
