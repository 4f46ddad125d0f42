"""Configuration management for the collage backend."""

from __future__ import annotations

import os
from dataclasses import dataclass


def _optional(name: str) -> str | None:
    value = os.getenv(name)
    return value if value else None


@dataclass(frozen=True)
class Config:
    """Backend configuration loaded from environment variables."""

    fal_key: str | None = None
    hf_token: str | None = None
    fal_base_url: str = "https://queue.fal.run"
    hf_base_url: str = "https://api-inference.huggingface.co/models"
    edit_timeout: float = 30.0
    describe_timeout: float = 60.0
    poll_interval: float = 1.0
    request_timeout: float = 30.0
    max_width: int = 1200
    history_limit: int = 20
    history_quota_bytes: int = 5_000_000
    diffusion_cache_size: int = 64
    diffusion_cache_ttl: float = 86400.0
    seed: int | None = None
    cors_origins: str = "*"

    @classmethod
    def load(cls) -> Config:
        """Load configuration from environment variables."""
        seed = _optional("COLLAGE_SEED")
        return cls(
            fal_key=_optional("FAL_KEY"),
            hf_token=_optional("HF_TOKEN"),
            fal_base_url=os.getenv("COLLAGE_FAL_BASE_URL", "https://queue.fal.run"),
            hf_base_url=os.getenv(
                "COLLAGE_HF_BASE_URL", "https://api-inference.huggingface.co/models"
            ),
            edit_timeout=min(90.0, float(os.getenv("COLLAGE_EDIT_TIMEOUT", "30.0"))),
            describe_timeout=min(90.0, float(os.getenv("COLLAGE_DESCRIBE_TIMEOUT", "60.0"))),
            poll_interval=float(os.getenv("COLLAGE_POLL_INTERVAL", "1.0")),
            request_timeout=float(os.getenv("COLLAGE_REQUEST_TIMEOUT", "30.0")),
            max_width=int(os.getenv("COLLAGE_MAX_WIDTH", "1200")),
            history_limit=int(os.getenv("COLLAGE_HISTORY_LIMIT", "20")),
            history_quota_bytes=int(os.getenv("COLLAGE_HISTORY_QUOTA", "5000000")),
            diffusion_cache_size=int(os.getenv("COLLAGE_DIFFUSION_CACHE_SIZE", "64")),
            diffusion_cache_ttl=float(os.getenv("COLLAGE_DIFFUSION_CACHE_TTL", "86400")),
            seed=int(seed) if seed is not None else None,
            cors_origins=os.getenv("COLLAGE_CORS_ORIGINS", "*"),
        )
