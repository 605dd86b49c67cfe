import logging

import pytest

from app.providers.paystack.validate import validate_payout_provider_startup
from settings import settings


def _paystack(monkeypatch, *, mode: str, sandbox_key: str = "", real_key: str = "", legacy_key: str = ""):
    monkeypatch.setattr(settings, "PAYOUT_PROVIDER", "PAYSTACK", raising=False)
    monkeypatch.setattr(settings, "PAYSTACK_MODE", mode, raising=False)
    monkeypatch.setattr(settings, "PAYSTACK_SANDBOX_SECRET_KEY", sandbox_key, raising=False)
    monkeypatch.setattr(settings, "PAYSTACK_REAL_SECRET_KEY", real_key, raising=False)
    monkeypatch.setattr(settings, "PAYSTACK_SECRET_KEY", legacy_key, raising=False)


def test_real_mode_requires_live_key(monkeypatch):
    _paystack(monkeypatch, mode="real", sandbox_key="sk_test_x")
    with pytest.raises(RuntimeError, match="PAYSTACK_REAL_SECRET_KEY"):
        validate_payout_provider_startup()


def test_real_mode_accepts_legacy_key(monkeypatch):
    _paystack(monkeypatch, mode="real", legacy_key="sk_live_x")
    validate_payout_provider_startup()


def test_sandbox_without_key_only_warns(monkeypatch, caplog):
    _paystack(monkeypatch, mode="sandbox")
    caplog.set_level(logging.WARNING, logger="bookmarket.paystack")
    validate_payout_provider_startup()
    assert "sandbox secret key not set" in caplog.text


def test_mock_provider_skips_paystack_checks(monkeypatch):
    _paystack(monkeypatch, mode="real")
    monkeypatch.setattr(settings, "PAYOUT_PROVIDER", "MOCK", raising=False)
    validate_payout_provider_startup()
