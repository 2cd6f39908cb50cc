"""Application configuration."""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Form Coach"
    debug: bool = False
    api_prefix: str = "/api"
    cors_origins: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Keypoint smoothing
    smoothing_alpha: float = 0.07  # EMA weight of the newest sample
    min_keypoint_visibility: float = 0.5  # Only applied when the provider reports visibility

    # Hold countdown (advanced per frame, not wall clock)
    hold_seconds: float = 2.0
    frame_rate: float = 30.0  # Assumed delivery rate used to turn seconds into frames
    enforce_hold: bool = False  # True = step 1 is refused until the countdown reaches zero

    # Sessions (in memory only)
    max_active_sessions: int = 100
    session_idle_timeout: float = 600.0  # Seconds without a request before a session expires; 0 disables

    class Config:
        env_file = ".env"
        env_prefix = "FORMCOACH_"
        extra = "ignore"

    @property
    def hold_frames(self) -> int:
        """Hold countdown length in frames."""
        return max(1, int(round(self.hold_seconds * self.frame_rate)))


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
