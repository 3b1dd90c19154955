from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """Persistence boundary for users; services depend on this, not on MySQL."""

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def find_by_public_id_prefix(self, prefix: str) -> Optional[User]:
        raise NotImplementedError

    def list_by_roles(self, roles: Sequence[Role]) -> Sequence[User]:
        raise NotImplementedError

    def get_current_overseer(self) -> Optional[User]:
        raise NotImplementedError

    def set_phone_number(self, user_id: int, phone_number: str) -> bool:
        raise NotImplementedError

    def delete_by_id(self, user_id: int) -> bool:
        raise NotImplementedError

    def list_admin_view(self) -> Sequence[dict]:
        raise NotImplementedError
