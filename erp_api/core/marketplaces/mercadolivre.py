"""Mercado Livre OAuth adapter (authorization-code grant)."""
from __future__ import annotations
import logging
from typing import Callable, Optional

from authlib.integrations.requests_client import OAuth2Session

from erp_api.core.models import MarketplaceType
from .base import REQUEST_TIMEOUT, MarketplaceAdapterError, MarketplaceAuthInfo

logger = logging.getLogger(__name__)

ML_URL = "https://api.mercadolibre.com"
TOKEN_URL = f"{ML_URL}/oauth/token"


class MercadoLivreAdapter:
    """Exchange a Mercado Livre authorization code for seller tokens.

    Flow:
    1. POST /oauth/token (grant_type=authorization_code, optional PKCE verifier)
    2. GET /users/me with the new access token to read the store nickname
    """

    marketplace_type = MarketplaceType.MERCADOLIVRE

    def __init__(self, cfg, session_factory: Optional[Callable[[], OAuth2Session]] = None):
        self.client_id = cfg.ml_client_id
        self.client_secret = cfg.ml_client_secret
        self.redirect_uri = cfg.ml_redirect_uri
        self.code_verifier = cfg.ml_code_verifier
        self._session_factory = session_factory or self._new_session

    def _new_session(self) -> OAuth2Session:
        return OAuth2Session(
            client_id=self.client_id,
            client_secret=self.client_secret,
            redirect_uri=self.redirect_uri,
            token_endpoint_auth_method="client_secret_post",
        )

    def exchange_code(self, code: str) -> MarketplaceAuthInfo:
        session = self._session_factory()
        extra = {"code_verifier": self.code_verifier} if self.code_verifier else {}
        token = session.fetch_token(TOKEN_URL, grant_type="authorization_code", code=code, **extra)

        access_token = token.get("access_token")
        if not access_token:
            raise MarketplaceAdapterError("Mercado Livre token response has no access_token")

        resp = session.get(f"{ML_URL}/users/me", timeout=REQUEST_TIMEOUT)
        resp.raise_for_status()
        profile = resp.json()

        seller_id = token.get("user_id") or profile.get("id")
        logger.info("Mercado Livre authorization exchanged for seller %s", seller_id)
        return MarketplaceAuthInfo(
            marketplace_type=self.marketplace_type,
            access_token=access_token,
            refresh_token=token.get("refresh_token"),
            seller_id=str(seller_id) if seller_id is not None else None,
            store_name=profile.get("nickname"),
        )
