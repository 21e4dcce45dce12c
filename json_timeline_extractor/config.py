"""
Settings for the timeline extractor, managed by pydantic-settings.

Values come from the environment (prefix ``TIMELINE_``) or a local ``.env``.
"""
from __future__ import annotations

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_COLOR_PALETTE = [
    '#1f77b4',
    '#ff7f0e',
    '#2ca02c',
    '#d62728',
    '#9467bd',
    '#8c564b',
    '#e377c2',
    '#7f7f7f',
    '#bcbd22',
    '#17becf',
]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        env_prefix='TIMELINE_',
        extra='ignore',
    )

    # ===== Logging =====
    log_level: str = Field(default='INFO', description='Log level for the package logger')
    log_file: Optional[str] = Field(
        default=None,
        description='Optional log file; enables a size-rotating file handler',
    )

    # ===== Documents =====
    max_file_size: int = Field(
        default=10 * 1024 * 1024,
        description='Largest JSON document (bytes) the loader will read',
    )
    supported_extensions: List[str] = Field(default_factory=lambda: ['.json'])

    # ===== Rule authoring =====
    available_paths_max_depth: int = Field(default=3, ge=0)
    color_palette: List[str] = Field(default_factory=lambda: list(DEFAULT_COLOR_PALETTE))
    rules_file: str = Field(
        default='timeline-config.json',
        description='Workspace file holding the extraction rule set',
    )

    # ===== UI =====
    server_name: str = Field(default='127.0.0.1')
    server_port: int = Field(default=7860)


settings = Settings()
