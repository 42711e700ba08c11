"""Application configuration using Pydantic Settings."""
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Gradient palette the board uses for agent cards
DEFAULT_AGENT_PALETTE = [
    "from-violet-300 to-purple-400",
    "from-sky-300 to-blue-400",
    "from-emerald-300 to-green-400",
    "from-rose-300 to-pink-400",
    "from-amber-300 to-orange-400",
    "from-cyan-300 to-teal-400",
    "from-fuchsia-300 to-purple-400",
    "from-lime-300 to-green-400",
    "from-indigo-300 to-blue-400",
    "from-coral-300 to-red-400",
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PIPELINE_ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # App settings
    app_name: str = "Magic Pipeline Engine"
    debug: bool = False

    # Layout defaults (see LayoutParams for the allowed ranges)
    stage_spacing_px: int = 250
    agent_offset_px: int = 350

    # Synthesis
    agent_palette: list[str] = Field(default=DEFAULT_AGENT_PALETTE, min_length=1)
    default_pipeline_name: str = "Untitled Pipeline"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
