"""
Server configuration: YAML settings file validated with pydantic.
"""

from .loader import load_config
from .models import AppConfig, AuthSettings, SignupSettings

__all__ = [
    "load_config",
    "AppConfig",
    "AuthSettings",
    "SignupSettings",
]
