"""Configuration settings loaded from environment variables."""

from __future__ import annotations

import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel, Field


load_dotenv()


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    # Traversal Configuration
    root_node_id: str = Field(
        default="1",
        description="Source id of the entry edge (the attribute node's id)",
    )
    max_traversal_steps: int = Field(
        default=1000,
        gt=0,
        description="Max condition nodes visited in one evaluation before aborting",
    )

    # Output
    results_dir: str = Field(
        default="logs",
        description="Directory where batch evaluation results are written",
    )

    model_config = {"extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance loaded from environment."""
    return Settings(
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        root_node_id=os.getenv("ROOT_NODE_ID", "1"),
        max_traversal_steps=int(os.getenv("MAX_TRAVERSAL_STEPS", "1000")),
        results_dir=os.getenv("RESULTS_DIR", "logs"),
    )
