"""
Configuration module - Base settings class for environment configuration.
"""

from common.config.base_settings import BaseAppSettings, parse_duration

__all__ = ["BaseAppSettings", "parse_duration"]
