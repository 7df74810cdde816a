"""Configuration module for shellfleet."""

from shellfleet.config.settings import LimitCheckSettings, Settings

__all__ = ["LimitCheckSettings", "Settings"]
