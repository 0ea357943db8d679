"""Tests for session tokens and the anonymous identity provider."""

import logging
import time

import pytest
from fastapi import HTTPException

from service_portal_api.app.core.config import Settings
from service_portal_api.app.core.security import (
    check_admin_token,
    create_access_token,
    decode_access_token,
    resolve_session,
)
from service_portal_api.app.services import identity_service
from service_portal_api.app.services.identity_service import IdentityService


class TestTokens:
    def test_round_trip(self):
        token = create_access_token({"sub": "abc"}, "secret", 60)
        payload = decode_access_token(token, "secret")
        assert payload["sub"] == "abc"
        assert payload["exp"] > time.time()

    def test_wrong_secret_is_rejected(self):
        token = create_access_token({"sub": "abc"}, "secret", 60)
        assert decode_access_token(token, "other") is None

    def test_tampered_payload_is_rejected(self):
        header, _, signature = create_access_token({"sub": "abc"}, "secret", 60).split(".")
        forged_payload = create_access_token({"sub": "admin"}, "other", 60).split(".")[1]
        assert decode_access_token(f"{header}.{forged_payload}.{signature}", "secret") is None

    def test_expired_token_is_rejected(self):
        token = create_access_token({"sub": "abc"}, "secret", -1)
        assert decode_access_token(token, "secret") is None

    @pytest.mark.parametrize("token", ["", "not-a-token", "a.b", "a.b.c", "a.b.!!!"])
    def test_garbage_is_rejected(self, token):
        assert decode_access_token(token, "secret") is None


class TestIdentityService:
    def test_anonymous_sessions_get_distinct_ids(self):
        identity = IdentityService(Settings(secret_key="s"))
        first = identity.sign_in_anonymously()
        second = identity.sign_in_anonymously()
        assert first.user_id != second.user_id
        assert len(first.user_id) == 28

    def test_resume_keeps_user_id(self):
        identity = IdentityService(Settings(secret_key="s"))
        session = identity.sign_in_anonymously()
        resumed = identity.resume(session.token)
        assert resumed.user_id == session.user_id
        assert resume_is_valid(resumed.token, "s", session.user_id)

    def test_resume_rejects_foreign_token(self):
        issued = IdentityService(Settings(secret_key="one")).sign_in_anonymously()
        assert IdentityService(Settings(secret_key="two")).resume(issued.token) is None

    def test_session_lifetime_follows_settings(self):
        identity = IdentityService(Settings(secret_key="s", session_expire_minutes=5))
        assert identity.sign_in_anonymously().expires_in == 300

    def test_sign_in_is_logged_on_module_logger(self, caplog):
        caplog.set_level(logging.INFO, logger=identity_service.logger.name)
        session = IdentityService(Settings(secret_key="s")).sign_in_anonymously()
        (record,) = [r for r in caplog.records if r.name == identity_service.__name__]
        assert session.user_id in record.getMessage()


def resume_is_valid(token, secret, user_id):
    payload = decode_access_token(token, secret)
    return payload is not None and payload["sub"] == user_id


class TestDependencies:
    def test_resolve_session_returns_user_id(self):
        settings = Settings(secret_key="s")
        token = create_access_token({"sub": "u-1"}, "s", 60)
        assert resolve_session(token, settings) == "u-1"

    @pytest.mark.parametrize("token", [None, "", "junk"])
    def test_resolve_session_rejects_missing_or_bad_token(self, token):
        with pytest.raises(HTTPException) as excinfo:
            resolve_session(token, Settings(secret_key="s"))
        assert excinfo.value.status_code == 401

    def test_admin_views_open_without_admin_token(self):
        check_admin_token(None, Settings(admin_token=""))

    @pytest.mark.parametrize("token", [None, "", "wrong"])
    def test_admin_token_is_enforced(self, token):
        with pytest.raises(HTTPException) as excinfo:
            check_admin_token(token, Settings(admin_token="letmein"))
        assert excinfo.value.status_code == 403

    def test_admin_token_is_accepted(self):
        check_admin_token("letmein", Settings(admin_token="letmein"))
