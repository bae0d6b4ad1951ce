"""
Unit tests for session markers.
"""

import pytest

from purrgallery.models.database import create_key_value_store
from purrgallery.services import create_session_store
from purrgallery.services.session import ADMIN_HASH_KEY, CURRENT_USER_KEY, SessionStore, User, UserRole


class TestSessionStore:
    """Test cases for SessionStore."""

    def setup_method(self):
        self.kv_store = create_key_value_store(":memory:")
        self.session = SessionStore(self.kv_store)

    def teardown_method(self):
        self.kv_store.close()

    def test_not_initialized_by_default(self):
        assert self.session.is_initialized() is False
        assert self.session.admin_hash() is None
        assert self.session.current_user() is None

    def test_store_admin_hash(self):
        self.session.store_admin_hash("c2VjcmV0")

        assert self.session.is_initialized() is True
        assert self.session.admin_hash() == "c2VjcmV0"
        assert self.kv_store.get_item(ADMIN_HASH_KEY) == "c2VjcmV0"

    def test_current_user_round_trip(self):
        user = User(username="admin", role=UserRole.ADMIN)

        self.session.set_current_user(user)

        assert self.session.current_user() == user
        assert self.session.current_user().is_admin

    def test_guest_user(self):
        self.session.set_current_user(User(username="Guest", role=UserRole.GUEST))

        assert self.session.current_user().is_admin is False

    def test_clear_current_user(self):
        self.session.set_current_user(User(username="admin", role=UserRole.ADMIN))

        self.session.clear_current_user()
        self.session.clear_current_user()

        assert self.session.current_user() is None

    @pytest.mark.parametrize("raw", ["not json", '{"username": "x"}', '{"username": "x", "role": "ROOT"}'])
    def test_corrupt_current_user_marker(self, raw):
        self.kv_store.set_item(CURRENT_USER_KEY, raw)

        assert self.session.current_user() is None


def test_session_store_shares_metadata_file(temp_dir):
    path = temp_dir / "metadata.duckdb"
    session = create_session_store(path)
    try:
        session.store_admin_hash("hash")
    finally:
        session.kv_store.close()

    reopened = create_session_store(path)
    try:
        assert reopened.is_initialized()
    finally:
        reopened.kv_store.close()
