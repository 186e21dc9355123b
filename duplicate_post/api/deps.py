import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from duplicate_post.adapters.auth.nonce import JWTNonceService
from duplicate_post.adapters.clock import SystemClock
from duplicate_post.adapters.sqlite.repos import SQLiteContentStore, SQLiteUserRepo
from duplicate_post.adapters.urls import AdminUrlBuilder
from duplicate_post.api.auth_utils import decode_access_token
from duplicate_post.components.duplicate import DuplicateService
from duplicate_post.components.duplicate import config_from_rules as duplicate_config
from duplicate_post.components.notices import NoticeRenderer
from duplicate_post.components.row_actions import RowActionInjector
from duplicate_post.components.row_actions import config_from_rules as row_action_config
from duplicate_post.domain.entities import User
from duplicate_post.domain.policy import PolicyEngine
from duplicate_post.rules.loader import load_rules
from duplicate_post.rules.models import Rules


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        data_dir = os.environ.get("DUP_DATA_DIR", "./data")
        self.db_path = f"{data_dir}/duplicate_post.db"
        self.rules_path = Path(os.environ.get("DUP_RULES_PATH", self.base_dir / "rules.yaml"))
        self.migrations_dir = str(self.base_dir / "migrations")
        self.secret_key = os.environ.get("DUP_SECRET_KEY", "dev-secret-unsafe")
        self.admin_base_url = os.environ.get("DUP_ADMIN_BASE_URL", "/wp-admin/")


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules(settings: Settings = Depends(get_settings)) -> Rules:
    return load_rules(settings.rules_path)


# --- Repos ---
def get_content_store(
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
) -> SQLiteContentStore:
    return SQLiteContentStore(settings.db_path, taxonomies=rules.taxonomies)


def get_user_repo(settings: Settings = Depends(get_settings)) -> SQLiteUserRepo:
    return SQLiteUserRepo(settings.db_path)


# --- Adapters ---
_clock_instance: SystemClock | None = None


def get_clock() -> SystemClock:
    """Get clock singleton."""
    global _clock_instance
    if _clock_instance is None:
        _clock_instance = SystemClock()
    return _clock_instance


def get_policy(rules: Rules = Depends(get_rules)) -> PolicyEngine:
    return PolicyEngine(rules)


def get_nonce_service(
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
    clock: SystemClock = Depends(get_clock),
) -> JWTNonceService:
    return JWTNonceService(
        secret_key=settings.secret_key,
        ttl_minutes=rules.security.nonce.ttl_minutes,
        clock=clock,
    )


def get_url_builder(settings: Settings = Depends(get_settings)) -> AdminUrlBuilder:
    return AdminUrlBuilder(settings.admin_base_url)


# --- Component Services ---
def get_duplicate_service(
    store: SQLiteContentStore = Depends(get_content_store),
    policy: PolicyEngine = Depends(get_policy),
    nonces: JWTNonceService = Depends(get_nonce_service),
    urls: AdminUrlBuilder = Depends(get_url_builder),
    rules: Rules = Depends(get_rules),
) -> DuplicateService:
    return DuplicateService(
        store=store,
        permissions=policy,
        nonces=nonces,
        urls=urls,
        config=duplicate_config(rules),
    )


def get_row_action_injector(
    policy: PolicyEngine = Depends(get_policy),
    nonces: JWTNonceService = Depends(get_nonce_service),
    urls: AdminUrlBuilder = Depends(get_url_builder),
    rules: Rules = Depends(get_rules),
) -> RowActionInjector:
    return RowActionInjector(
        permissions=policy,
        nonces=nonces,
        urls=urls,
        config=row_action_config(rules),
    )


def get_notice_renderer(urls: AdminUrlBuilder = Depends(get_url_builder)) -> NoticeRenderer:
    return NoticeRenderer(urls=urls)


# --- Auth ---
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


async def get_current_user(
    request: Request,
    token: Annotated[str | None, Depends(oauth2_scheme)],
    settings: Settings = Depends(get_settings),
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
) -> User:
    # 1. Cookie first (HttpOnly), then Authorization header
    cookie_token = request.cookies.get("access_token")
    if cookie_token and cookie_token.startswith("Bearer "):
        token = cookie_token.split(" ")[1]

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # 2. Decode
    payload = decode_access_token(token, secret_key=settings.secret_key)
    if not payload or payload.get("typ") == "nonce":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    sub = payload.get("sub")
    if not isinstance(sub, str) or not sub.isdigit():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    # 3. Fetch User
    user = user_repo.get_by_id(int(sub))
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    if user.status != "active":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Inactive user",
        )

    return user
