"""Configuration management for the election engine."""

from .config import (
    GroupConfig,
    ElectionConfig,
    SystemConfig,
    load_config,
    save_config,
)

__all__ = ['GroupConfig', 'ElectionConfig', 'SystemConfig', 'load_config', 'save_config']
