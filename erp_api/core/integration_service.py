"""Marketplace integration workflows.

The status index partition (``GSI2PK``) is derived from ``status``; every
write that touches ``status`` goes through :meth:`IntegrationService.update_integration`,
which recomputes it.
"""
from __future__ import annotations
import logging
import math
import uuid
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from erp_api.core.dynamodb import (
    ConditionalCheckFailedError,
    IntegrationRef,
    IntegrationRequests,
    decode_cursor,
    encode_cursor,
    integration_key,
    status_index_key,
    status_partition,
    type_index_key,
)
from erp_api.core.errors import NotFoundError, ValidationError, classified
from erp_api.core.models import (
    IntegrationStatus,
    MarketplaceIntegration,
    MarketplaceType,
    Page,
    iso_timestamp,
    utc_now,
)

logger = logging.getLogger(__name__)

INITIAL_STATUS = IntegrationStatus.ACTIVE


def _new_id() -> str:
    return str(uuid.uuid4())


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _present(fields: Mapping[str, Any]) -> Dict[str, Any]:
    """Drop fields whose value is None; enums become their string value."""
    return {key: _plain(value) for key, value in fields.items() if value is not None}


class IntegrationService:
    """Stateless marketplace-integration service built once per application."""

    def __init__(self, store, requests: IntegrationRequests, marketplaces,
                 clock: Callable = utc_now, id_factory: Callable[[], str] = _new_id):
        self.store = store
        self.requests = requests
        self.marketplaces = marketplaces
        self.clock = clock
        self.id_factory = id_factory

    def _integrations(self, request: Dict[str, Any]) -> List[MarketplaceIntegration]:
        items = self.store.query(request).get("Items") or []
        return [MarketplaceIntegration.from_item(item) for item in items]

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------
    def create_integration(self, data: Mapping[str, Any], owner_id: str) -> MarketplaceIntegration:
        """Exchange the authorization code and store the resulting tokens.

        Args:
            data: ``{"marketplaceType": MarketplaceType, "code": str}``
            owner_id: User the integration belongs to

        Raises:
            ValidationError: Marketplace type has no adapter
            UpstreamError: Marketplace exchange failed
        """
        marketplace_type = MarketplaceType(data["marketplaceType"])
        if not self.marketplaces.supports(marketplace_type):
            raise ValidationError("Marketplace type not supported")

        existing = self.get_integration_by_user_and_type(owner_id, marketplace_type)
        if existing is not None:
            logger.warning("User %s already has %s integration %s; creating another",
                           owner_id, marketplace_type.value, existing.id)

        with classified("creating marketplace integration"):
            auth = self.marketplaces.exchange_code(marketplace_type, data["code"])

            integration_id = self.id_factory()
            now = iso_timestamp(self.clock())
            integration = MarketplaceIntegration(
                id=integration_id,
                user_id=owner_id,
                marketplace_type=marketplace_type,
                access_token=auth.access_token,
                refresh_token=auth.refresh_token,
                seller_id=auth.seller_id,
                store_name=auth.store_name,
                status=INITIAL_STATUS,
                created_at=now,
                updated_at=now,
            )
            item = {
                **integration_key(owner_id, marketplace_type, integration_id),
                **type_index_key(owner_id, marketplace_type, integration_id),
                **status_index_key(owner_id, marketplace_type, integration_id, INITIAL_STATUS),
                **integration.to_dict(),
            }
            self.store.put(self.requests.put(item))

        logger.info("Created %s integration %s for user %s", marketplace_type.value, integration_id, owner_id)
        return integration

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------
    def get_integration(self, ref: IntegrationRef) -> Optional[MarketplaceIntegration]:
        with classified("getting marketplace integration"):
            item = self.store.get(self.requests.get_by_ref(ref)).get("Item")
        return MarketplaceIntegration.from_item(item) if item else None

    def list_integrations_by_user(self, user_id: str) -> List[MarketplaceIntegration]:
        with classified("listing marketplace integrations by user"):
            return self._integrations(self.requests.get_by_user(user_id))

    def list_integrations_by_type(self, marketplace_type: MarketplaceType) -> List[MarketplaceIntegration]:
        with classified("listing marketplace integrations by type"):
            return self._integrations(self.requests.get_by_type(marketplace_type))

    def list_integrations_by_status(self, status: IntegrationStatus) -> List[MarketplaceIntegration]:
        with classified("listing marketplace integrations by status"):
            return self._integrations(self.requests.get_by_status(status))

    def get_integration_by_user_and_type(self, user_id: str,
                                         marketplace_type: MarketplaceType) -> Optional[MarketplaceIntegration]:
        """First integration of ``marketplace_type`` owned by ``user_id``."""
        with classified("getting marketplace integration by user and type"):
            matches = self._integrations(self.requests.get_by_user_and_type(user_id, marketplace_type))
        return matches[0] if matches else None

    def list_integrations(self, page: int = 1, limit: int = 10, cursor: Optional[str] = None) -> Page:
        """One scan page; ``total`` counts the fetched page only."""
        start_key = decode_cursor(cursor)
        with classified("listing marketplace integrations"):
            result = self.store.scan(self.requests.scan(limit, start_key))
        items = [MarketplaceIntegration.from_item(item) for item in result.get("Items") or []]
        return Page(
            items=items,
            total=len(items),
            page=page,
            limit=limit,
            total_pages=math.ceil(len(items) / limit),
            next_cursor=encode_cursor(result.get("LastEvaluatedKey")),
        )

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------
    def update_integration(self, ref: IntegrationRef, fields: Mapping[str, Any],
                           clear: Iterable[str] = ()) -> MarketplaceIntegration:
        """Write only the supplied (non-None) fields plus ``updatedAt``.

        Attributes named in ``clear`` are removed from the item.

        Raises:
            NotFoundError: No integration at ``ref``
        """
        changes = _present(fields)
        changes["updatedAt"] = iso_timestamp(self.clock())
        if "status" in changes:
            changes["GSI2PK"] = status_partition(changes["status"])

        with classified("updating marketplace integration"):
            try:
                result = self.store.update(self.requests.update(ref, changes, clear))
            except ConditionalCheckFailedError:
                raise NotFoundError("Marketplace integration not found") from None

        return MarketplaceIntegration.from_item(result["Attributes"])

    def update_status(self, ref: IntegrationRef, status: IntegrationStatus,
                      error_message: Optional[str] = None) -> MarketplaceIntegration:
        """Set ``status`` and ``errorMessage``; without a message the stored one is removed.

        ``lastSyncAt`` is stamped only when the new status is active; other
        transitions leave it as it was.
        """
        status = IntegrationStatus(status)
        last_sync_at = iso_timestamp(self.clock()) if status is IntegrationStatus.ACTIVE else None
        logger.info("Integration %s -> %s", ref, status.value)
        return self.update_integration(
            ref,
            {"status": status, "errorMessage": error_message, "lastSyncAt": last_sync_at},
            clear=() if error_message is not None else ("errorMessage",),
        )

    def refresh_access_token(self, ref: IntegrationRef, access_token: str,
                             refresh_token: Optional[str] = None) -> MarketplaceIntegration:
        """Replace the stored tokens; status and index keys are untouched."""
        return self.update_integration(ref, {
            "accessToken": access_token,
            "refreshToken": refresh_token,
        })

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------
    def delete_integration(self, user_id: str, marketplace_type: MarketplaceType, integration_id: str) -> None:
        """Delete by primary key; deleting a missing item is a no-op."""
        with classified("deleting marketplace integration"):
            self.store.delete(self.requests.delete(user_id, marketplace_type, integration_id))
        logger.info("Deleted %s integration %s for user %s", _plain(marketplace_type), integration_id, user_id)
