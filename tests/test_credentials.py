"""Unit tests for playbill.credentials — Authorization header and masking."""

from __future__ import annotations

import base64
import logging

import pytest

from playbill.config import ApiConfig, PlaybillConfigError
from playbill.credentials import authorization_header, mask_key


# ---------------------------------------------------------------------------
# 1. authorization_header()
# ---------------------------------------------------------------------------

class TestAuthorizationHeader:
    """authorization_header() builds the value for the configured auth type."""

    def test_none_auth_gives_no_header(self):
        assert authorization_header(ApiConfig()) is None

    def test_bearer(self):
        cfg = ApiConfig(auth_type="bearer", bearer_token="T")
        assert authorization_header(cfg) == "Bearer T"

    def test_basic_is_base64_of_user_colon_password(self):
        cfg = ApiConfig(auth_type="basic", basic_user="u", basic_password="p")
        expected = base64.b64encode(b"u:p").decode("ascii")
        assert authorization_header(cfg) == f"Basic {expected}"
        assert expected == "dTpw"

    def test_auth_type_is_case_insensitive(self):
        cfg = ApiConfig(auth_type="BEARER", bearer_token="T")
        assert authorization_header(cfg) == "Bearer T"

    def test_bearer_without_token_warns(self, caplog: pytest.LogCaptureFixture):
        with caplog.at_level(logging.WARNING, logger="playbill.credentials"):
            assert authorization_header(ApiConfig(auth_type="bearer", bearer_token="  ")) is None
        assert "bearer_token" in caplog.text

    def test_basic_without_password_warns(self, caplog: pytest.LogCaptureFixture):
        with caplog.at_level(logging.WARNING, logger="playbill.credentials"):
            assert authorization_header(ApiConfig(auth_type="basic", basic_user="u")) is None
        assert "basic_password" in caplog.text

    def test_unknown_type_raises(self):
        with pytest.raises(PlaybillConfigError, match="Unknown auth_type"):
            authorization_header(ApiConfig(auth_type="oauth"))


# ---------------------------------------------------------------------------
# 2. mask_key()
# ---------------------------------------------------------------------------

class TestMaskKey:
    """mask_key() should partially redact secrets for safe display."""

    def test_mask_normal_key(self):
        masked = mask_key("sk-test-0123456789xyz")
        assert masked == "sk-test...xyz"
        assert "0123456789" not in masked

    def test_mask_short_key_returns_stars(self):
        assert mask_key("short") == "***"
        assert mask_key("exactly10c") == "***"

    def test_mask_boundary_11_chars_shows_partial(self):
        assert mask_key("abcdefghijk") == "abcdefg...ijk"

    def test_mask_empty_or_missing(self):
        assert mask_key("") == "-"
        assert mask_key(None) == "-"
