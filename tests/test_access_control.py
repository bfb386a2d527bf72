# Auth gate tests
# Dependent files: admin/dependencies/access_control.py

from datetime import datetime, timedelta, timezone

import jwt

from admin.dependencies import access_control
from admin.dependencies.access_control import AuthGate, GateState, authenticate_admin, create_access_token


def test_gate_starts_loading():
    gate = AuthGate()
    assert gate.state is GateState.LOADING
    assert not gate.authorized


def test_valid_token_authorizes():
    gate = AuthGate()
    assert gate.resolve(create_access_token("testadmin")) is GateState.AUTHORIZED
    assert gate.user == {"username": "testadmin", "role": "admin"}


def test_missing_token_is_unauthorized():
    gate = AuthGate()
    assert gate.resolve(None) is GateState.UNAUTHORIZED
    assert gate.reason == "Not authenticated"


def test_expired_token_is_unauthorized():
    gate = AuthGate()
    token = create_access_token("testadmin", expires_delta=timedelta(seconds=-5))
    assert gate.resolve(token) is GateState.UNAUTHORIZED
    assert gate.reason == "Admin token has expired"


def test_non_admin_role_is_unauthorized():
    payload = {
        "sub": "visitor",
        "role": "viewer",
        "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
    }
    token = jwt.encode(payload, access_control.secret_key(), algorithm=access_control.ALGORITHM)
    assert AuthGate().resolve(token) is GateState.UNAUTHORIZED


def test_foreign_signature_is_unauthorized():
    token = jwt.encode({"sub": "x", "role": "admin"}, "some-other-signing-key-of-sufficient-length", algorithm="HS256")
    assert AuthGate().resolve(token) is GateState.UNAUTHORIZED


def test_gate_resolves_once():
    gate = AuthGate()
    gate.resolve(None)
    assert gate.resolve(create_access_token("testadmin")) is GateState.UNAUTHORIZED


def test_authenticate_admin():
    assert authenticate_admin("testadmin", "testpass123")
    assert not authenticate_admin("testadmin", "nope")
    assert not authenticate_admin("someone", "testpass123")


def test_login_disabled_without_password(monkeypatch):
    monkeypatch.setenv("ADMIN_PASSWORD", "")
    assert not authenticate_admin("testadmin", "")


def test_settings_read_at_call_time(monkeypatch):
    monkeypatch.setenv("ADMIN_USERNAME", "owner")
    monkeypatch.setenv("ADMIN_PASSWORD", "changed-later")
    assert authenticate_admin("owner", "changed-later")
    assert not authenticate_admin("testadmin", "testpass123")


def test_rotated_secret_key_invalidates_tokens(monkeypatch):
    token = create_access_token("testadmin")
    monkeypatch.setenv("ADMIN_SECRET_KEY", "rotated-secret-key-for-testing-only")
    assert AuthGate().resolve(token) is GateState.UNAUTHORIZED
    assert AuthGate().resolve(create_access_token("testadmin")) is GateState.AUTHORIZED
