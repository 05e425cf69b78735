"""Tests for SIWE nonces and JWT caller identity."""

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from patentchain import config
from patentchain.dependencies import get_ledger
from patentchain.main import app
from patentchain.routers import auth

from conftest import ADMIN, ALICE


@pytest.fixture
def auth_client(ledger, monkeypatch):
    """Client that authenticates through real bearer tokens."""
    monkeypatch.setattr(config, "JWT_SECRET_KEY", "test-secret")
    monkeypatch.setattr(config, "JWT_ALGORITHM", "HS256")
    app.dependency_overrides[get_ledger] = lambda: ledger
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def bearer(address, **kwargs):
    return {"Authorization": f"Bearer {auth.create_access_token({'sub': address}, **kwargs)}"}


def test_token_identifies_caller(auth_client):
    response = auth_client.get("/auth/me", headers=bearer(ALICE))
    assert response.status_code == 200
    assert response.json() == {"address": ALICE, "is_administrator": False}

    response = auth_client.get("/auth/me", headers=bearer(ADMIN))
    assert response.json()["is_administrator"] is True


def test_token_subject_is_checksummed(auth_client):
    mixed = "0x52908400098527886E0F7030069857D2E4169EE7"
    response = auth_client.get("/auth/me", headers=bearer(mixed.lower()))
    assert response.json()["address"] == mixed


def test_missing_or_bad_token_is_rejected(auth_client):
    assert auth_client.get("/auth/me").status_code == 401
    assert auth_client.get("/auth/me", headers={"Authorization": "Bearer garbage"}).status_code == 401
    assert auth_client.get("/auth/me", headers=bearer("not-an-address")).status_code == 401
    expired = bearer(ALICE, expires_delta=timedelta(minutes=-1))
    assert auth_client.get("/auth/me", headers=expired).status_code == 401


def test_token_signed_with_other_secret_is_rejected(auth_client, monkeypatch):
    headers = bearer(ALICE)
    monkeypatch.setattr(config, "JWT_SECRET_KEY", "rotated-secret")
    assert auth_client.get("/auth/me", headers=headers).status_code == 401


def test_mutations_require_a_token(auth_client):
    response = auth_client.post("/assets/1/transfer", json={"to": ALICE})
    assert response.status_code == 401


def test_nonces_are_unique_and_single_use(auth_client):
    first = auth_client.get("/auth/nonce").json()["nonce"]
    second = auth_client.get("/auth/nonce").json()["nonce"]
    assert first != second

    assert auth.consume_nonce(first)
    assert not auth.consume_nonce(first)
    assert not auth.consume_nonce("never-issued")


def test_malformed_siwe_message_is_rejected(auth_client):
    response = auth_client.post("/auth/verify", json={"message": {"domain": "localhost:3000"}, "signature": "0x00"})
    assert response.status_code == 401
