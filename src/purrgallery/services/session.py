"""
Session markers shared with the authentication gate.

Only persistence lives here: whether the admin account was initialized
(its stored password hash) and who is currently signed in. Checking
passwords is the gate's job.
"""

import json
from dataclasses import dataclass
from enum import Enum

from ..logging_config import get_logger, log_user_action
from ..models.database import KeyValueStore

logger = get_logger(__name__)

ADMIN_HASH_KEY = "pg_admin_hash"
CURRENT_USER_KEY = "pg_current_user"


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    GUEST = "GUEST"


@dataclass(frozen=True)
class User:
    username: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN


class SessionStore:
    """Admin-initialized marker and current-user marker in the key-value store."""

    def __init__(self, kv_store: KeyValueStore):
        self.kv_store = kv_store

    def is_initialized(self) -> bool:
        return bool(self.kv_store.get_item(ADMIN_HASH_KEY))

    def admin_hash(self) -> str | None:
        return self.kv_store.get_item(ADMIN_HASH_KEY)

    def store_admin_hash(self, password_hash: str) -> None:
        self.kv_store.set_item(ADMIN_HASH_KEY, password_hash)
        log_user_action("admin", "admin_initialized")

    def current_user(self) -> User | None:
        """The signed-in user, or None when nobody is or the marker is unreadable."""
        raw = self.kv_store.get_item(CURRENT_USER_KEY)
        if raw is None:
            return None

        try:
            data = json.loads(raw)
            return User(username=data["username"], role=UserRole(data["role"]))
        except (ValueError, TypeError, KeyError) as e:
            logger.warning("current_user_marker_corrupt", error=str(e))
            return None

    def set_current_user(self, user: User) -> None:
        self.kv_store.set_item(CURRENT_USER_KEY, json.dumps({"username": user.username, "role": user.role.value}))
        log_user_action(user.username, "signed_in", role=user.role.value)

    def clear_current_user(self) -> None:
        user = self.current_user()
        self.kv_store.remove_item(CURRENT_USER_KEY)
        if user is not None:
            log_user_action(user.username, "signed_out")
