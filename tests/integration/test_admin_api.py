"""
Admin API flow: listing row action -> duplicate endpoint -> redirect -> notice.
"""

from __future__ import annotations

from datetime import timedelta
from urllib.parse import parse_qs, urlparse

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from duplicate_post.adapters.auth.nonce import JWTNonceService
from duplicate_post.adapters.clock import FixedClock
from duplicate_post.adapters.sqlite.repos import SQLiteContentStore, SQLiteUserRepo
from duplicate_post.api.auth_utils import create_access_token
from duplicate_post.api.deps import Settings, get_clock, get_rules, get_settings
from duplicate_post.api.routes.admin import router
from duplicate_post.domain.entities import NewContentRecord, User
from duplicate_post.rules.models import Rules

SECRET = "integration-secret"


@pytest.fixture
def settings(db_path: str) -> Settings:
    s = Settings()
    s.db_path = db_path
    s.secret_key = SECRET
    s.admin_base_url = "/wp-admin/"
    return s


@pytest.fixture
def client(settings: Settings, rules: Rules, clock: FixedClock) -> TestClient:
    app = FastAPI()
    app.include_router(router, prefix="/wp-admin")

    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_rules] = lambda: rules
    app.dependency_overrides[get_clock] = lambda: clock

    return TestClient(app)


@pytest.fixture
def author(user_repo: SQLiteUserRepo) -> User:
    return user_repo.create("original", roles=["author"])


@pytest.fixture
def editor(user_repo: SQLiteUserRepo) -> User:
    return user_repo.create("editor", roles=["editor"])


@pytest.fixture
def subscriber(user_repo: SQLiteUserRepo) -> User:
    return user_repo.create("reader", roles=["subscriber"])


@pytest.fixture
def source_id(content_store: SQLiteContentStore, author: User) -> int:
    post_id = content_store.insert(
        NewContentRecord(title="Hello", status="publish", author_id=author.id)
    )
    category = content_store.create_term("category", "Three")
    content_store.set_object_terms(post_id, [category], "category")
    content_store.add_meta(post_id, "color", "red")
    content_store.add_meta(post_id, "_edit_lock", "1677000000:1")
    return post_id


def _auth(user: User) -> dict[str, str]:
    token = create_access_token(
        {"sub": str(user.id)}, expires_delta=timedelta(minutes=30), secret_key=SECRET
    )
    return {"Authorization": f"Bearer {token}"}


def _nonce(clock: FixedClock, rules: Rules, post_id: int, user: User) -> str:
    nonces = JWTNonceService(SECRET, rules.security.nonce.ttl_minutes, clock)
    return nonces.create(f"duplicate_post_{post_id}", user.id)


class TestListing:
    def test_row_has_duplicate_action(
        self, client: TestClient, editor: User, source_id: int
    ) -> None:
        response = client.get("/wp-admin/edit.php", headers=_auth(editor))

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        row = data["items"][0]
        assert row["id"] == source_id
        duplicate = row["actions"]["duplicate"]
        assert duplicate["label"] == "Duplicate"
        assert duplicate["url"].startswith("/wp-admin/admin.php?action=duplicate_post")
        assert duplicate["html"].startswith('<a href="/wp-admin/admin.php?action=duplicate_post')
        assert data["notice"] is None

    def test_subscriber_is_refused(
        self, client: TestClient, subscriber: User, source_id: int
    ) -> None:
        response = client.get("/wp-admin/edit.php", headers=_auth(subscriber))
        assert response.status_code == 403

    def test_requires_authentication(self, client: TestClient) -> None:
        response = client.get("/wp-admin/edit.php")
        assert response.status_code == 401

    def test_notice_from_query(self, client: TestClient, editor: User) -> None:
        response = client.get(
            "/wp-admin/edit.php",
            params={"duplicated": "1", "new_post_id": "5"},
            headers=_auth(editor),
        )

        notice = response.json()["notice"]
        assert notice["message"] == "Post duplicated."
        assert notice["link_url"] == "/wp-admin/post.php?post=5&action=edit"
        assert "is-dismissible" in notice["html"]

    def test_malformed_new_post_id_shows_no_notice(self, client: TestClient, editor: User) -> None:
        response = client.get(
            "/wp-admin/edit.php",
            params={"duplicated": "1", "new_post_id": "\u00b2"},
            headers=_auth(editor),
        )

        assert response.status_code == 200
        assert response.json()["notice"] is None


class TestDuplicateEndpoint:
    def test_full_flow(
        self,
        client: TestClient,
        content_store: SQLiteContentStore,
        editor: User,
        source_id: int,
    ) -> None:
        listing = client.get("/wp-admin/edit.php", headers=_auth(editor)).json()
        action_url = listing["items"][0]["actions"]["duplicate"]["url"]

        response = client.get(action_url, headers=_auth(editor), follow_redirects=False)

        assert response.status_code == 302
        location = urlparse(response.headers["location"])
        assert location.path == "/wp-admin/edit.php"
        query = parse_qs(location.query)
        assert "post_type" not in query
        assert query["duplicated"] == ["1"]
        new_id = int(query["new_post_id"][0])
        assert new_id != source_id

        new = content_store.get(new_id)
        assert new is not None
        assert new.title == "Hello (Copy)"
        assert new.status == "draft"
        assert new.author_id == editor.id
        assert content_store.get_meta(new_id) == {"color": ["red"]}

        followed = client.get(response.headers["location"], headers=_auth(editor)).json()
        assert followed["total"] == 2
        assert followed["notice"]["link_url"] == f"/wp-admin/post.php?post={new_id}&action=edit"

        detail = client.get(followed["notice"]["link_url"], headers=_auth(editor)).json()
        assert detail["id"] == new_id
        assert detail["meta"] == {"color": ["red"]}
        assert list(detail["terms"]["category"]) == content_store.get_object_terms(
            source_id, "category"
        )

    def test_page_redirect_scoped_to_type(
        self,
        client: TestClient,
        content_store: SQLiteContentStore,
        clock: FixedClock,
        rules: Rules,
        author: User,
        editor: User,
    ) -> None:
        page_id = content_store.insert(
            NewContentRecord(post_type="page", title="About", author_id=author.id)
        )

        response = client.get(
            "/wp-admin/admin.php",
            params={
                "action": "duplicate_post",
                "post_id": str(page_id),
                "_nonce": _nonce(clock, rules, page_id, editor),
            },
            headers=_auth(editor),
            follow_redirects=False,
        )

        assert response.status_code == 302
        query = parse_qs(urlparse(response.headers["location"]).query)
        assert query["post_type"] == ["page"]

    def test_missing_post_id(self, client: TestClient, editor: User) -> None:
        response = client.get(
            "/wp-admin/admin.php",
            params={"action": "duplicate_post"},
            headers=_auth(editor),
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "No post ID provided."

    def test_non_ascii_digit_post_id(self, client: TestClient, editor: User) -> None:
        response = client.get(
            "/wp-admin/admin.php",
            params={"action": "duplicate_post", "post_id": "\u00b2"},
            headers=_auth(editor),
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "No post ID provided."

    def test_unknown_action(self, client: TestClient, editor: User) -> None:
        response = client.get(
            "/wp-admin/admin.php",
            params={"action": "trash_post", "post_id": "1"},
            headers=_auth(editor),
        )
        assert response.status_code == 400

    def test_tampered_nonce_creates_nothing(
        self,
        client: TestClient,
        content_store: SQLiteContentStore,
        clock: FixedClock,
        rules: Rules,
        editor: User,
        source_id: int,
    ) -> None:
        nonce = _nonce(clock, rules, source_id, editor)

        response = client.get(
            "/wp-admin/admin.php",
            params={"action": "duplicate_post", "post_id": str(source_id), "_nonce": nonce + "x"},
            headers=_auth(editor),
        )

        assert response.status_code == 403
        assert content_store.list()[1] == 1

    def test_nonce_for_other_user_rejected(
        self,
        client: TestClient,
        content_store: SQLiteContentStore,
        clock: FixedClock,
        rules: Rules,
        author: User,
        editor: User,
        source_id: int,
    ) -> None:
        response = client.get(
            "/wp-admin/admin.php",
            params={
                "action": "duplicate_post",
                "post_id": str(source_id),
                "_nonce": _nonce(clock, rules, source_id, author),
            },
            headers=_auth(editor),
        )

        assert response.status_code == 403
        assert content_store.list()[1] == 1

    def test_expired_nonce(
        self,
        client: TestClient,
        content_store: SQLiteContentStore,
        clock: FixedClock,
        rules: Rules,
        editor: User,
        source_id: int,
    ) -> None:
        nonce = _nonce(clock, rules, source_id, editor)
        clock.advance(minutes=rules.security.nonce.ttl_minutes + 1)

        response = client.get(
            "/wp-admin/admin.php",
            params={"action": "duplicate_post", "post_id": str(source_id), "_nonce": nonce},
            headers=_auth(editor),
        )

        assert response.status_code == 403
        assert content_store.list()[1] == 1

    def test_subscriber_forbidden(
        self,
        client: TestClient,
        content_store: SQLiteContentStore,
        clock: FixedClock,
        rules: Rules,
        subscriber: User,
        source_id: int,
    ) -> None:
        response = client.get(
            "/wp-admin/admin.php",
            params={
                "action": "duplicate_post",
                "post_id": str(source_id),
                "_nonce": _nonce(clock, rules, source_id, subscriber),
            },
            headers=_auth(subscriber),
        )

        assert response.status_code == 403
        assert response.json()["detail"] == "You do not have permission to duplicate posts."
        assert content_store.list()[1] == 1

    def test_unknown_post(
        self,
        client: TestClient,
        content_store: SQLiteContentStore,
        clock: FixedClock,
        rules: Rules,
        editor: User,
    ) -> None:
        response = client.get(
            "/wp-admin/admin.php",
            params={
                "action": "duplicate_post",
                "post_id": "999",
                "_nonce": _nonce(clock, rules, 999, editor),
            },
            headers=_auth(editor),
        )

        assert response.status_code == 404
        assert response.json()["detail"] == "Post not found."
        assert content_store.list()[1] == 0


class TestEditView:
    def test_missing_record(self, client: TestClient, editor: User) -> None:
        response = client.get("/wp-admin/post.php", params={"post": 404}, headers=_auth(editor))
        assert response.status_code == 404
