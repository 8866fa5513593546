"""Configuration module for the Home Search API."""

from .api_config import (
    API_CONFIG,
    ApiSettings,
    DatabaseConfig,
    RepliersConfig,
    CacheConfig,
    get_api_settings,
    load_api_config,
)

__all__ = [
    'API_CONFIG',
    'ApiSettings',
    'DatabaseConfig',
    'RepliersConfig',
    'CacheConfig',
    'get_api_settings',
    'load_api_config',
]
