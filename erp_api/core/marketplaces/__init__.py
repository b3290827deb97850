"""Marketplace OAuth adapters, selected by marketplace type."""
from __future__ import annotations
import logging
from typing import Dict, Mapping, Optional

from erp_api.core.errors import ApiError, UpstreamError, ValidationError
from erp_api.core.models import MarketplaceType
from .base import MarketplaceAdapterError, MarketplaceAuthInfo
from .mercadolivre import MercadoLivreAdapter

logger = logging.getLogger(__name__)


class MarketplaceRegistry:
    """Maps each supported marketplace type to its adapter."""

    def __init__(self, adapters: Optional[Mapping[MarketplaceType, object]] = None):
        self._adapters: Dict[MarketplaceType, object] = dict(adapters or {})

    @classmethod
    def from_config(cls, cfg) -> "MarketplaceRegistry":
        return cls({MarketplaceType.MERCADOLIVRE: MercadoLivreAdapter(cfg)})

    def supports(self, marketplace_type: MarketplaceType) -> bool:
        return marketplace_type in self._adapters

    def exchange_code(self, marketplace_type: MarketplaceType, code: str) -> MarketplaceAuthInfo:
        """Run the adapter for ``marketplace_type``.

        Raises:
            ValidationError: The type has no adapter
            UpstreamError: The marketplace exchange failed
        """
        adapter = self._adapters.get(marketplace_type)
        if adapter is None:
            raise ValidationError("Marketplace type not supported")
        try:
            return adapter.exchange_code(code)
        except ApiError:
            raise
        except Exception as exc:
            logger.warning("%s authorization exchange failed: %s", marketplace_type.value, exc)
            raise UpstreamError("Error getting marketplace info") from exc


__all__ = [
    "MarketplaceAdapterError",
    "MarketplaceAuthInfo",
    "MarketplaceRegistry",
    "MercadoLivreAdapter",
]
