# Admin Access Control
# Purpose: Authenticate the site owner and gate the admin pages and API
# Main functions: authenticate_admin(), create_access_token(), AuthGate, get_current_admin_user()
# Dependent files: admin/routers/admin.py, admin/routers/pages.py, app/routers/pages.py

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from enum import Enum
from pathlib import Path
from typing import Optional
import logging
import os
import secrets
from datetime import datetime, timedelta, timezone
from dotenv import load_dotenv
import jwt

_ENV_FILE = Path(__file__).resolve().parent.parent.parent / ".env"
load_dotenv(_ENV_FILE)

logger = logging.getLogger(__name__)

# --- Configuration from environment variables ---
# Read on use, so values loaded from .env after import still apply.

ALGORITHM = "HS256"

# HTML pages carry the token in a cookie, API clients in the Authorization header
COOKIE_NAME = "admin_token"

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/admin/api/login", auto_error=False)

_generated_key: Optional[str] = None


def secret_key() -> str:
    global _generated_key
    key = os.environ.get("ADMIN_SECRET_KEY", "")
    if key:
        return key
    if _generated_key is None:
        _generated_key = secrets.token_urlsafe(48)
        logger.warning(
            "ADMIN_SECRET_KEY not set, generated a random key. "
            "Sessions will be invalidated on restart. Set ADMIN_SECRET_KEY env var for persistence."
        )
    return _generated_key


def token_expire_minutes() -> int:
    return int(os.environ.get("ADMIN_TOKEN_EXPIRE_MINUTES", "60"))


def admin_credentials() -> tuple[str, str]:
    """(username, password) from ADMIN_USERNAME / ADMIN_PASSWORD."""
    return os.environ.get("ADMIN_USERNAME", "admin"), os.environ.get("ADMIN_PASSWORD", "")


# --- Authentication ---

def authenticate_admin(username: str, password: str) -> bool:
    """
    Validate admin credentials against env vars.
    Returns True if credentials match.
    """
    admin_username, admin_password = admin_credentials()
    if not admin_password:
        logger.error("ADMIN_PASSWORD env var not set, login disabled")
        return False
    return secrets.compare_digest(username, admin_username) and secrets.compare_digest(password, admin_password)


def create_access_token(subject: str, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token for an authenticated admin user."""
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=token_expire_minutes())
    )
    payload = {
        "sub": subject,
        "role": "admin",
        "exp": expire,
        "iat": datetime.now(timezone.utc),
    }
    return jwt.encode(payload, secret_key(), algorithm=ALGORITHM)


# --- Gate ---

class GateState(str, Enum):
    LOADING = "loading"
    AUTHORIZED = "authorized"
    UNAUTHORIZED = "unauthorized"


class AuthGate:
    """
    Decides whether the admin area may render.

    Starts in LOADING; resolve() moves it to AUTHORIZED for a valid, unexpired
    token whose role is admin, and to UNAUTHORIZED otherwise. Once resolved it
    does not change again.
    """

    def __init__(self):
        self.state = GateState.LOADING
        self.user: Optional[dict] = None
        self.reason: Optional[str] = None

    @property
    def authorized(self) -> bool:
        return self.state is GateState.AUTHORIZED

    def resolve(self, token: Optional[str]) -> GateState:
        if self.state is not GateState.LOADING:
            return self.state
        if not token:
            return self._deny("Not authenticated")
        try:
            payload = jwt.decode(token, secret_key(), algorithms=[ALGORITHM])
        except jwt.ExpiredSignatureError:
            return self._deny("Admin token has expired")
        except jwt.InvalidTokenError:
            return self._deny("Invalid or expired admin token")

        username = payload.get("sub")
        role = payload.get("role")
        if username is None or role != "admin":
            return self._deny("Invalid or expired admin token")
        self.user = {"username": username, "role": role}
        self.state = GateState.AUTHORIZED
        return self.state

    def _deny(self, reason: str) -> GateState:
        self.reason = reason
        self.state = GateState.UNAUTHORIZED
        return self.state


def request_token(request: Request, bearer: Optional[str] = None) -> Optional[str]:
    """Bearer header first, then the session cookie."""
    return bearer or request.cookies.get(COOKIE_NAME)


def resolve_gate(request: Request, bearer: Optional[str] = Depends(oauth2_scheme)) -> AuthGate:
    """FastAPI dependency: an AuthGate resolved against the current request."""
    gate = AuthGate()
    gate.resolve(request_token(request, bearer))
    return gate


def get_current_admin_user(gate: AuthGate = Depends(resolve_gate)) -> dict:
    """
    FastAPI dependency: extract and validate admin user from JWT.
    Raises HTTP 401 if token is missing, invalid or expired.
    """
    if not gate.authorized:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=gate.reason,
            headers={"WWW-Authenticate": "Bearer"},
        )
    return gate.user


class LoginRequired(Exception):
    """Raised by HTML admin pages; the app turns it into a redirect to /login."""

    def __init__(self, reason: Optional[str] = None):
        super().__init__(reason or "Not authenticated")
        self.reason = reason


def require_admin_page(gate: AuthGate = Depends(resolve_gate)) -> dict:
    """FastAPI dependency for HTML admin pages: redirect instead of 401."""
    if not gate.authorized:
        raise LoginRequired(gate.reason)
    return gate.user
