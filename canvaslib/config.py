"""
flowcanvas Configuration Settings

Engine Configuration:
---------------------
This module loads the engine collaborator settings from .env file.
The builder talks to the platform API that fronts the automation engine:
- ENGINE_BACKEND=http    -> HttpEngineClient against API_BASE_URL
- ENGINE_BACKEND=memory  -> InMemoryEngineStore (local development, tests)

See .env.example for the full list of variables.
"""

import os
from pydantic import BaseModel
from dotenv import load_dotenv
from typing import Optional

# Load environment variables from .env file
load_dotenv()


class EngineSettings(BaseModel):
    """Engine collaborator settings"""

    # Which collaborator implementation the container wires up
    backend: str = os.getenv('ENGINE_BACKEND', 'http')  # http | memory

    # Platform API in front of the engine
    api_base_url: str = os.getenv('API_BASE_URL', 'http://localhost:3000')
    api_version: str = os.getenv('API_VERSION', 'v1')
    api_token: Optional[str] = os.getenv('API_TOKEN')
    timeout_seconds: float = float(os.getenv('ENGINE_TIMEOUT_SECONDS', '30'))

    # Engine node defaults
    type_version: int = int(os.getenv('ENGINE_TYPE_VERSION', '1'))

    def api_root(self) -> str:
        """Base URL of the versioned platform API."""
        return f"{self.api_base_url.rstrip('/')}/api/{self.api_version}"


class Settings(BaseModel):
    """Application Settings"""

    # App settings
    app_name: str = os.getenv('APP_NAME', 'flowcanvas')
    service_mode: str = os.getenv('SERVICE_MODE', 'mono')  # mono | micro
    log_level: str = os.getenv('LOG_LEVEL', 'INFO')

    # Engine settings
    engine: EngineSettings = EngineSettings()


# Global settings instance
settings = Settings()

# Convenience access to engine settings
engine_settings = settings.engine
