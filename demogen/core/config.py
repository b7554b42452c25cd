from typing import Literal
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: Literal["dev", "test", "production"] = "dev"
    app_name: str = "demogen"
    api_host: str = "0.0.0.0"
    api_port: int = 3001
    api_base_path: str = "/api/v1"
    log_level: str = "INFO"

    store_backend: Literal["memory", "sql"] = "memory"
    database_url: str = "sqlite:///./demogen.db"

    task_backend: Literal["inline", "celery"] = "inline"
    redis_url: str = "redis://localhost:6379/0"
    celery_queue: str = "demos"

    # Narrative enhancement (Azure OpenAI chat completions)
    azure_openai_enabled: bool = True
    azure_openai_endpoint: str | None = None
    azure_openai_api_key: str | None = None
    azure_openai_deployment: str = "gpt-4"
    azure_openai_api_version: str = "2024-06-01"
    azure_openai_max_tokens: int = 2000
    azure_openai_temperature: float = 0.7
    azure_openai_prompt_cost_per_1k: float = 0.03
    azure_openai_completion_cost_per_1k: float = 0.06

    # Component generation (v0 model API)
    v0_enabled: bool = True
    v0_api_key: str | None = None
    v0_base_url: str = "https://api.v0.dev/v1"
    v0_model: str = "v0-1.5-md"
    v0_max_tokens: int = 4000
    v0_cost_per_request: float = 0.15

    provider_timeout_seconds: float = 60.0
    fallback_on_error: bool = True

    demo_app_path: str = "demo-app"
    install_command: str = "npm install"
    install_timeout_seconds: float = 120.0
    install_dependencies: bool = True
    deploy_enabled: bool = True

    rate_limit_enabled: bool = True
    rate_limit_window_seconds: int = 3600
    rate_limit_max_requests: int = 100
    generation_rate_limit_window_seconds: int = 900
    generation_rate_limit_max_requests: int = 20

    @model_validator(mode="after")
    def _celery_needs_shared_store(self) -> "Settings":
        # Celery workers only see demos the API wrote to the database.
        if self.task_backend == "celery" and self.store_backend != "sql":
            raise ValueError("task_backend=celery requires store_backend=sql")
        return self

    @property
    def general_rate_limit(self) -> str:
        return f"{self.rate_limit_max_requests} per {self.rate_limit_window_seconds} second"

    @property
    def generation_rate_limit(self) -> str:
        return f"{self.generation_rate_limit_max_requests} per {self.generation_rate_limit_window_seconds} second"

    @property
    def azure_openai_configured(self) -> bool:
        return bool(self.azure_openai_enabled and self.azure_openai_endpoint and self.azure_openai_api_key)

    @property
    def v0_configured(self) -> bool:
        return bool(self.v0_enabled and self.v0_api_key)

settings = Settings()
