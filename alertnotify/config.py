"""
alertnotify — Configuration
Alert notification template data service.
"""
from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── App ──────────────────────────────────────────────────────────────────
    app_name: str = "alertnotify"
    app_version: str = "1.0.0"
    app_env: str = "development"
    log_level: str = "INFO"

    # ── Links ────────────────────────────────────────────────────────────────
    # Base URL used for dashboard / panel / silence links when the incoming
    # payload does not carry its own externalURL.
    external_url: str = "http://localhost:3000/"

    # ── Templates ────────────────────────────────────────────────────────────
    # Comma separated list of *.tmpl / *.yaml files with user templates.
    template_paths: str = ""

    # ── Security ──────────────────────────────────────────────────────────────
    api_key: str = ""          # Required for /v1/* endpoints (empty = no auth)
    expose_internal_error_details: bool = False

    @property
    def template_path_list(self) -> list[str]:
        return [p.strip() for p in self.template_paths.split(",") if p.strip()]

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
