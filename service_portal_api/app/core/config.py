"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields so the
demo runs without any setup.  In a production deployment you should
override these via environment variables or a dedicated configuration
service.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Service Portal API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "false").lower() in {"1", "true", "yes"}
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")

    # Secret used to sign anonymous session tokens.  Tokens issued with
    # one secret are rejected after the secret changes.
    secret_key: str = os.getenv("SECRET_KEY", "change_me")
    session_expire_minutes: int = int(os.getenv("SESSION_EXPIRE_MINUTES", str(60 * 24 * 30)))

    # Optional static token guarding the administration views.  When
    # empty the admin endpoints are open to every caller, which matches
    # the behaviour of the public demo panel.
    admin_token: str = os.getenv("ADMIN_TOKEN", "")

    # Identifier of the deployed application.  All records of one
    # deployment share a single collection derived from it.
    app_id: str = os.getenv("APP_ID", "default-app-id")

    # ``sqlite`` persists documents to ``database_url``; ``memory`` keeps
    # them in process and loses them on restart.
    store_backend: str = os.getenv("STORE_BACKEND", "sqlite")

    # Path for the SQLite database.  If a relative path is provided, it
    # will be resolved relative to the project root by the ``db`` module.
    database_url: str = os.getenv("DATABASE_URL", "service_portal.db")

    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8000"))

    @property
    def collection_path(self) -> str:
        """Collection holding both service requests and assets."""
        return f"artifacts/{self.app_id}/public/data/universal_vms"


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Because the dataclass
# computes values at class definition time, environment variables should
# be set before importing this module.
settings = Settings()
