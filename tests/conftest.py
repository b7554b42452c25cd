import json
from pathlib import Path
from typing import List, Sequence, Tuple
import pytest
from demogen.core.config import Settings
from demogen.core.engine import PipelineOrchestrator
from demogen.providers.registry import ProviderRegistry
from demogen.stages.dependencies import DependencyResolver
from demogen.stages.deployer import DemoDeployer
from demogen.store import InMemoryDemoStore

USE_CASE = {
    "useCaseTitle": "Smart Loan Advisor",
    "keyCapabilities": ["Credit scoring", "Document analysis"],
    "targetAudience": "Retail banking teams",
}


class RecordingRunner:
    """Install runner that records calls and answers with a fixed exit code."""

    def __init__(self, exit_code: int = 0, output: str = ""):
        self.exit_code = exit_code
        self.output = output
        self.calls: List[Tuple[List[str], Path]] = []

    async def __call__(self, argv: Sequence[str], cwd: Path, timeout: float):
        self.calls.append((list(argv), cwd))
        return self.exit_code, self.output


def make_project(root: Path, dependencies=None, dirs=("src/app", "src/components")) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    for d in dirs:
        (root / d).mkdir(parents=True, exist_ok=True)
    manifest = {"name": "demo-app", "dependencies": dependencies or {"react": "^18.2.0", "next": "14.2.0"}}
    (root / "package.json").write_text(json.dumps(manifest), encoding="utf-8")
    return root


def make_settings(**overrides) -> Settings:
    values = dict(
        _env_file=None,
        app_env="test",
        azure_openai_enabled=False,
        v0_enabled=False,
        rate_limit_enabled=False,
        store_backend="memory",
        task_backend="inline",
    )
    values.update(overrides)
    return Settings(**values)


def make_orchestrator(project: Path, providers=None, runner=None, settings=None) -> PipelineOrchestrator:
    settings = settings or make_settings(demo_app_path=str(project))
    return PipelineOrchestrator(
        store=InMemoryDemoStore(),
        providers=providers or ProviderRegistry.offline_only(),
        resolver=DependencyResolver(project, runner=runner or RecordingRunner()),
        deployer=DemoDeployer(project),
        settings=settings,
    )


@pytest.fixture
def project(tmp_path) -> Path:
    return make_project(tmp_path / "demo-app")


@pytest.fixture
def runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture
def orchestrator(project, runner) -> PipelineOrchestrator:
    return make_orchestrator(project, runner=runner)
