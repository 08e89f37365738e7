# shared/config/__init__.py
"""
Configuration module for shared settings.
Instantiates the default settings objects used across the application.
"""


from .base import DEFAULT_ORGANIZATION_ID, AtticConfig, BaseConfig
from .postgres import PostgresConfig, postgres_config

# Instantiate settings once and export
settings = AtticConfig()

__all__ = [
    "AtticConfig",
    "BaseConfig",
    "DEFAULT_ORGANIZATION_ID",
    "PostgresConfig",
    "postgres_config",
    "settings",
]
