from __future__ import annotations

import pytest
from pydantic import ValidationError

from sponsored_wallet import build_app
from sponsored_wallet.config import DEFAULT_CONTRACT_ADDRESS, Settings, load_config
from sponsored_wallet.logging import _hexify_bytes, _scrub_secrets


def test_settings_from_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("WALLET_MODE", "remote")
    monkeypatch.setenv("NETWORK_ID", " TestNet ")
    monkeypatch.setenv("SPONSOR_SEED", "0xAB" + "ab" * 31)
    monkeypatch.setenv("SYNC_TIMEOUT_S", "5")
    s = Settings()
    assert s.wallet_mode == "remote"
    assert s.network_id == "testnet"
    assert s.sponsor_seed == "ab" * 32
    assert s.sync_timeout_s == 5.0
    assert s.sync_poll_interval_s == 0.5
    assert s.sponsor_min_balance == 1
    assert s.contract_address == DEFAULT_CONTRACT_ADDRESS
    assert s.proof_server_url == "http://127.0.0.1:6300"


def test_settings_reject_bad_values():
    with pytest.raises(ValidationError):
        Settings(sponsor_seed="not-hex")
    with pytest.raises(ValidationError):
        Settings(network_id="   ")
    with pytest.raises(ValidationError):
        Settings(wallet_mode="hybrid")
    with pytest.raises(ValidationError):
        Settings(sync_timeout_s=0)


def test_build_app_uses_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("WALLET_MODE", "local")
    monkeypatch.setenv("NETWORK_ID", "devnet")
    load_config.cache_clear()
    try:
        app = build_app()
        assert app.state.config.network_id == "devnet"
        assert app.state.session is not None
        assert app.state.session.network_id == "devnet"
    finally:
        load_config.cache_clear()


def test_secrets_are_redacted():
    ev = _scrub_secrets(None, "info", {"event": "x", "sponsor_seed": "abcd", "Authorization": "Bearer t", "other": 1})
    assert ev["sponsor_seed"] == "***"
    assert ev["Authorization"] == "***"
    assert ev["other"] == 1


def test_bytes_are_logged_as_hex():
    ev = _hexify_bytes(None, "info", {"event": "x", "proof": b"\x01\xff", "n": 3})
    assert ev == {"event": "x", "proof": "01ff", "n": 3}
