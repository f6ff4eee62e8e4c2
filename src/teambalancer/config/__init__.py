"""Configuration helpers for engine limits and tuning."""

from .settings import BalancerSettings, get_settings

__all__ = [
    "BalancerSettings",
    "get_settings",
]
