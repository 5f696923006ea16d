"""
ML capabilities: use case templates, simulated training and serving scaffolds.
"""

from .platform import MLPlatform
from .templates import build_use_case, config_with_defaults, get_template, overlay_config

__all__ = [
    "MLPlatform",
    "build_use_case",
    "config_with_defaults",
    "get_template",
    "overlay_config",
]
