"""
Tests for app/deps.py: get_current_user and the consolidated-view gate.
These tests use the real dep functions (no overrides) to get coverage.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, patch
from uuid import uuid4

from fastapi import Depends
from fastapi.testclient import TestClient

from app.deps import CurrentUser, can_read_consolidated, get_current_user
from app.scopes import BookingScope

from .conftest import build_app
from .factories import ADMIN_ID, make_admin, make_outsider

VIEW_PATH = "app.routers.admin.consolidated_view"


class TestGetCurrentUser:
    def test_username_is_url_decoded(self):
        app = build_app()
        captured = {}

        async def _capture(user=Depends(get_current_user)):
            captured["user"] = user
            return user

        app.dependency_overrides[can_read_consolidated] = _capture
        with patch(VIEW_PATH) as mock_view:
            mock_view.list_consolidated = AsyncMock(return_value=[])
            with TestClient(app) as c:
                c.get(
                    "/admin",
                    headers={
                        "X-User-Id": str(ADMIN_ID),
                        "X-Username": "r%C3%A9ception",
                        "X-User-Scopes": "",
                    },
                )
        assert captured["user"].username == "réception"

    def test_empty_scopes_string_parsed_as_empty_list(self):
        app = build_app()
        captured = {}

        async def _capture(user=Depends(get_current_user)):
            captured["user"] = user
            return user

        app.dependency_overrides[can_read_consolidated] = _capture
        with patch(VIEW_PATH) as mock_view:
            mock_view.list_consolidated = AsyncMock(return_value=[])
            with TestClient(app) as c:
                c.get(
                    "/admin",
                    headers={
                        "X-User-Id": str(ADMIN_ID),
                        "X-Username": "u",
                        "X-User-Scopes": "",
                    },
                )
        assert captured["user"].scopes == []

    def test_scopes_split_on_spaces(self):
        app = build_app()
        with patch(VIEW_PATH) as mock_view:
            mock_view.list_consolidated = AsyncMock(return_value=[])
            with TestClient(app) as c:
                resp = c.get(
                    "/admin",
                    headers={
                        "X-User-Id": str(ADMIN_ID),
                        "X-Username": "u",
                        "X-User-Scopes": "venues:read admin:bookings",
                    },
                )
        assert resp.status_code == 200


class TestCanReadConsolidated:
    def _app_for(self, current_user):
        app = build_app()

        async def _user():
            return current_user

        app.dependency_overrides[get_current_user] = _user
        return app

    def test_admin_passes(self):
        with patch(VIEW_PATH) as mock_view:
            mock_view.list_consolidated = AsyncMock(return_value=[])
            with TestClient(self._app_for(make_admin())) as c:
                resp = c.get("/admin")
        assert resp.status_code == 200

    async def test_gate_admits_on_is_admin(self):
        user = CurrentUser(id=uuid4(), username="admin", scopes=[BookingScope.ADMIN])
        assert await can_read_consolidated(current_user=user) is user

    def test_outsider_gets_403_naming_scopes(self):
        with TestClient(self._app_for(make_outsider())) as c:
            resp = c.get("/admin")
        assert resp.status_code == 403
        assert BookingScope.ADMIN_READ in resp.json()["detail"]


class TestCurrentUserIsAdmin:
    def test_is_admin_true_with_admin_scope(self):
        user = CurrentUser(id=uuid4(), username="admin", scopes=[BookingScope.ADMIN])
        assert user.is_admin is True

    def test_read_only_scope_is_not_admin(self):
        user = CurrentUser(
            id=uuid4(), username="clerk", scopes=[BookingScope.ADMIN_READ]
        )
        assert user.is_admin is False
