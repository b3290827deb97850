"""Shared types for marketplace OAuth adapters."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from erp_api.core.models import MarketplaceType

REQUEST_TIMEOUT = 10


@dataclass(frozen=True)
class MarketplaceAuthInfo:
    """Result of exchanging an authorization code with a marketplace."""
    marketplace_type: MarketplaceType
    access_token: str
    refresh_token: Optional[str] = None
    seller_id: Optional[str] = None
    store_name: Optional[str] = None


class MarketplaceAdapterError(Exception):
    """Marketplace API rejected the exchange or returned an unusable payload."""
    pass
