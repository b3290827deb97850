"""User workflows: identity-provider account plus key-value record.

Multi-step workflows are not transactional. A failure between the
identity-provider step and the key-value step leaves the two out of sync and
the caller is expected to retry the whole operation.
"""
from __future__ import annotations
import logging
import math
import uuid
from typing import Any, Callable, Dict, Mapping, Optional

from botocore.exceptions import ClientError

from erp_api.core.dynamodb import (
    ConditionalCheckFailedError,
    UserRequests,
    decode_cursor,
    email_index_key,
    encode_cursor,
    user_key,
)
from erp_api.core.cognito import ROLE_ATTRIBUTE
from erp_api.core.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    UpstreamError,
    classified,
)
from erp_api.core.models import Page, User, UserRole, iso_timestamp, utc_now

logger = logging.getLogger(__name__)

_BAD_CREDENTIALS = {"NotAuthorizedException", "UserNotFoundException"}


def _new_id() -> str:
    return str(uuid.uuid4())


class UserService:
    """Stateless user service built once per application.

    Args:
        store: DynamoStore (or anything with put/get/query/update/delete/scan)
        identity: CognitoIdentityProvider or LocalIdentityProvider
        requests: UserRequests bound to the users table
        clock: Returns the current UTC datetime
        id_factory: Returns a fresh user id
        token_issuer: Signs a bearer token for a User (used by ``authenticate``)
    """

    def __init__(self, store, identity, requests: UserRequests,
                 clock: Callable = utc_now, id_factory: Callable[[], str] = _new_id,
                 token_issuer: Optional[Callable[[User], str]] = None):
        self.store = store
        self.identity = identity
        self.requests = requests
        self.clock = clock
        self.id_factory = id_factory
        self.token_issuer = token_issuer

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------
    def create_user(self, data: Mapping[str, Any]) -> User:
        """Create the identity account and the key-value record.

        Raises:
            ConflictError: A user with this email already exists
            UpstreamError: The identity provider rejected the account
        """
        email = data["email"]
        role = UserRole(data["role"])

        with classified("creating user"):
            if self.get_user_by_email(email) is not None:
                raise ConflictError("User with this email already exists")

            with classified("creating user", UpstreamError):
                self.identity.create_account(email, data["password"], {
                    "email": email,
                    "name": data["name"],
                    ROLE_ATTRIBUTE: role.value,
                    "email_verified": "true",
                })
                self.identity.set_password(email, data["password"], permanent=True)

            user_id = self.id_factory()
            now = iso_timestamp(self.clock())
            user = User(
                id=user_id,
                email=email,
                name=data["name"],
                role=role,
                is_active=True,
                created_at=now,
                updated_at=now,
            )
            item = {**user_key(user_id), **email_index_key(email, user_id), **user.to_dict()}
            self.store.put(self.requests.put(item))

        logger.info("Created user %s (%s)", user_id, role.value)
        return user

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------
    def get_user_by_id(self, user_id: str) -> Optional[User]:
        with classified("getting user"):
            item = self.store.get(self.requests.get_by_id(user_id)).get("Item")
        return User.from_item(item) if item else None

    def get_user_by_email(self, email: str) -> Optional[User]:
        with classified("getting user by email"):
            items = self.store.query(self.requests.get_by_email(email)).get("Items") or []
        return User.from_item(items[0]) if items else None

    def list_users(self, page: int = 1, limit: int = 10, cursor: Optional[str] = None) -> Page:
        """One scan page of at most ``limit`` users.

        ``total`` and ``total_pages`` are computed from the fetched page, not
        the whole table.
        """
        start_key = decode_cursor(cursor)
        with classified("listing users"):
            result = self.store.scan(self.requests.scan(limit, start_key))
        users = [User.from_item(item) for item in result.get("Items") or []]
        return Page(
            items=users,
            total=len(users),
            page=page,
            limit=limit,
            total_pages=math.ceil(len(users) / limit),
            next_cursor=encode_cursor(result.get("LastEvaluatedKey")),
        )

    # ------------------------------------------------------------------
    # Update / delete
    # ------------------------------------------------------------------
    def update_user(self, user_id: str, fields: Mapping[str, Any]) -> User:
        """Apply any subset of ``{name, role, isActive}``.

        Name and role changes are mirrored into the identity provider first.

        Raises:
            NotFoundError: No user with ``user_id``
        """
        with classified("updating user"):
            current = self.get_user_by_id(user_id)
            if current is None:
                raise NotFoundError("User not found")

            identity_updates: Dict[str, str] = {}
            if fields.get("name"):
                identity_updates["name"] = fields["name"]
            if fields.get("role"):
                identity_updates[ROLE_ATTRIBUTE] = UserRole(fields["role"]).value
            if identity_updates:
                with classified("updating user", UpstreamError):
                    self.identity.update_attributes(current.email, identity_updates)

            changes: Dict[str, Any] = {"updatedAt": iso_timestamp(self.clock())}
            if fields.get("name"):
                changes["name"] = fields["name"]
            if fields.get("role"):
                changes["role"] = UserRole(fields["role"]).value
            if fields.get("isActive") is not None:
                changes["isActive"] = bool(fields["isActive"])

            try:
                result = self.store.update(self.requests.update(user_id, changes))
            except ConditionalCheckFailedError:
                raise NotFoundError("User not found") from None

        return User.from_item(result["Attributes"])

    def delete_user(self, user_id: str) -> None:
        """Delete the identity account, then the key-value record.

        Raises:
            NotFoundError: No user with ``user_id`` (nothing is deleted)
        """
        with classified("deleting user"):
            user = self.get_user_by_id(user_id)
            if user is None:
                raise NotFoundError("User not found")

            with classified("deleting user", UpstreamError):
                self.identity.delete_account(user.email)
            self.store.delete(self.requests.delete(user_id))

        logger.info("Deleted user %s", user_id)

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------
    def authenticate(self, email: str, password: str) -> Dict[str, Any]:
        """Check credentials with the identity provider and issue a bearer token.

        Returns:
            ``{"user": User, "token": str}``

        Raises:
            AuthenticationError: Bad credentials, unknown or inactive user
        """
        try:
            self.identity.authenticate(email, password)
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "")
            if code in _BAD_CREDENTIALS:
                logger.info("Rejected login for %s (%s)", email, code)
                raise AuthenticationError("Invalid email or password") from None
            raise UpstreamError(f"Error authenticating user: {code or exc}") from exc

        user = self.get_user_by_email(email)
        if user is None:
            raise AuthenticationError("Invalid email or password")
        if not user.is_active:
            raise AuthenticationError("User account is inactive")
        if self.token_issuer is None:
            raise RuntimeError("UserService has no token issuer configured")

        return {"user": user, "token": self.token_issuer(user)}
