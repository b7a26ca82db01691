"""Agregador de settings do github-relay.

Re-exporta todas as settings e funções de cada módulo.
Organização por domínio para isolamento de mudanças.
"""

from __future__ import annotations

# Base settings
from config.settings.base import (
    BaseSettings,
    Environment,
    StoreBackend,
    StoreSettings,
    get_base_settings,
    get_store_settings,
)

# Delivery gate
from config.settings.delivery import (
    DeliverySettings,
    get_delivery_settings,
)

# Upstream
from config.settings.github import (
    GITHUB_API_BASE_URL,
    GitHubSettings,
    get_github_settings,
)

__all__ = [
    # Constants
    "GITHUB_API_BASE_URL",
    # Base
    "BaseSettings",
    # Delivery
    "DeliverySettings",
    "Environment",
    # GitHub
    "GitHubSettings",
    "StoreBackend",
    "StoreSettings",
    "get_base_settings",
    "get_delivery_settings",
    "get_github_settings",
    "get_store_settings",
]
