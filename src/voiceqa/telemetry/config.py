"""Library configuration."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from ``VOICEQA_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="VOICEQA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Correlation
    agent_id: str | None = None
    user_agent: str = "server"

    # Signal analysis
    window_size: int = 2048
    gain: float = 1.5
    smoothing: float = 0.7
    overlap_threshold: float = 0.25
    frame_interval: float = 1 / 60  # seconds


settings = Settings()
