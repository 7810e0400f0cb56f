# studio/core/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    RUNTIME_URL: str = "http://localhost:8080"
    RUNTIME_AUTH_TOKEN: str = ""
    RUNTIME_TIMEOUT_SECONDS: float = 60.0
    LIMITER_STORAGE_URI: str = "memory://"
    CORS_ORIGINS: list[str] = ["http://localhost:5173", "http://localhost:8000"]

    BLUEPRINT_PROJECT: str = "my-agent"
    BLUEPRINT_VERSION: str = "1.0.0"
    BLUEPRINT_MAX_STEPS: int = 25
    DEFAULT_AGENT_MODEL: str = "llama3"
    DEFAULT_AGENT_INSTRUCTIONS: str = "Output system prompt"
    DEFAULT_NODE_X: float = 250.0
    DEFAULT_NODE_Y: float = 250.0

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
