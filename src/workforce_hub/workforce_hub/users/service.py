from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from werkzeug.security import check_password_hash

from ..audit.model import AuditAction
from ..audit.service import AuditService
from ..authz.capabilities import Capability
from ..authz.context import AuthorizationContext
from ..authz.hierarchy import can_modify_role
from ..common.validators import require_non_empty
from ..core.constants import INVALID_CREDENTIALS_MESSAGE
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from .model import User
from .mpcn import looks_like_mpcn_id, mask_email, normalize_mpcn_id
from .repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after login."""

    user_id: int
    full_name: str
    role: Role
    mpcn_id: str


@dataclass(frozen=True)
class ResolvedMpcnId:
    email: str
    masked_email: str


class AuthService:
    """Use case: log in by email or MPCN ID."""

    def __init__(self, users: UserRepository):
        self._users = users

    def _lookup(self, identifier: str) -> Optional[User]:
        if looks_like_mpcn_id(identifier):
            prefix = normalize_mpcn_id(identifier)
            return self._users.find_by_public_id_prefix(prefix) if prefix else None
        return self._users.get_by_email(identifier)

    def authenticate(self, identifier: str, password: str) -> SessionUser:
        identifier = require_non_empty(identifier, "Email or MPCN ID")
        user = self._lookup(identifier)

        # Unknown account and wrong password are indistinguishable to the caller.
        if not user or not user.is_active:
            raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # unparseable hash, e.g. a placeholder
            ok = False

        if not ok:
            raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

        return SessionUser(user_id=user.user_id, full_name=user.full_name, role=user.role, mpcn_id=user.mpcn_id)

    def profile(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        return user


class MpcnIdService:
    def __init__(self, users: UserRepository):
        self._users = users

    def resolve(self, mpcn_id: str) -> ResolvedMpcnId:
        """Map an MPCN ID to the account email, plus a masked form for display."""
        raw = require_non_empty(mpcn_id, "MPCN ID")
        prefix = normalize_mpcn_id(raw)
        user = self._users.find_by_public_id_prefix(prefix) if prefix else None
        if not user:
            raise NotFoundError("No account found with this MPCN ID")
        if not user.email:
            raise NotFoundError("Unable to resolve account email")
        logger.info("MPCN ID %s resolved to user %s", raw, user.user_id)
        return ResolvedMpcnId(email=user.email, masked_email=mask_email(user.email))


class UserAdminService:
    """Use case: administer accounts."""

    def __init__(self, users: UserRepository, audit: AuditService):
        self._users = users
        self._audit = audit

    def list_users(self, ctx: AuthorizationContext):
        ctx.require(Capability.VIEW_ALL_USERS)
        return self._users.list_admin_view()

    def delete_user(self, ctx: AuthorizationContext, *, user_id: int) -> None:
        ctx.require(Capability.MANAGE_USERS)

        if not user_id:
            raise ValidationError("User ID is required")
        if int(user_id) == ctx.user_id:
            raise ValidationError("Cannot delete your own account")

        target = self._users.get_by_id(int(user_id))
        if not target:
            raise NotFoundError("User not found")
        if not can_modify_role(ctx.role, target.role):
            raise AuthorizationError("You cannot delete a user with equal or higher authority")

        if not self._users.delete_by_id(target.user_id):
            raise NotFoundError("User not found")

        self._audit.record(
            entity_type="user",
            entity_id=target.user_id,
            action=AuditAction.USER_DELETED,
            performed_by=ctx.user_id,
            previous_values={"email": target.email, "role": target.role.value, "full_name": target.full_name},
        )
        logger.info("User %s deleted by %s", target.user_id, ctx.user_id)
