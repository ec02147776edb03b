from __future__ import annotations

"""
Configuration loader for Sponsored Wallet Services.

- Reads environment variables (optionally from `.env`) via pydantic-settings.
- Exposes a cached `load_config()` accessor.

Environment variables:
    WALLET_MODE            (str, default "local")  : "local" devnet or "remote" wallet daemon
    NETWORK_ID             (str, default "undeployed") : suffix of the bech32m address HRP
    CONTRACT_ADDRESS       (str)  : counter contract the sponsor submits to

Remote collaborators:
    WALLET_RPC_URL         (str)  : sponsor wallet daemon JSON-RPC endpoint
    INDEXER_URL            (str)  : chain indexer JSON-RPC endpoint
    PROOF_SERVER_URL       (str, default "http://127.0.0.1:6300")
    RPC_TIMEOUT_S          (float, default 10)
    RPC_MAX_RETRIES        (int, default 3)

Local devnet:
    SPONSOR_SEED           (hex, optional)  : deterministic sponsor wallet seed
    LOCAL_SPONSOR_BALANCE  (int, default 1_000_000)
    LOCAL_TX_FEE           (int, default 10)

Wallet sync:
    SYNC_TIMEOUT_S         (float, default 120)  : upper bound for key/funds waits
    SYNC_POLL_INTERVAL_S   (float, default 0.5)

Logging:
    LOG_LEVEL              (str, default "INFO")
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_CONTRACT_ADDRESS = "0x" + "00" * 31 + "01"


class Settings(BaseSettings):
    # Core
    wallet_mode: Literal["local", "remote"] = Field("local", description="Wallet backend")
    network_id: str = Field("undeployed", description="Network id used in address HRPs")
    contract_address: str = Field(DEFAULT_CONTRACT_ADDRESS, description="Counter contract address")
    log_level: str = Field("INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")

    # Remote collaborators
    wallet_rpc_url: str = Field("http://127.0.0.1:9944", description="Sponsor wallet daemon JSON-RPC")
    indexer_url: str = Field("http://127.0.0.1:8088", description="Chain indexer JSON-RPC")
    proof_server_url: str = Field("http://127.0.0.1:6300", description="Proof server base URL")
    rpc_timeout_s: float = Field(10.0, gt=0)
    rpc_max_retries: int = Field(3, ge=0)

    # Local devnet
    sponsor_seed: Optional[str] = Field(default=None, description="Hex seed of the local sponsor wallet")
    local_sponsor_balance: int = Field(1_000_000, ge=0)
    local_tx_fee: int = Field(10, ge=0)

    # Wallet sync waits
    sync_timeout_s: float = Field(120.0, gt=0)
    sync_poll_interval_s: float = Field(0.5, gt=0)
    # Remote mode: startup waits until the sponsor holds this much (0 skips the wait)
    sponsor_min_balance: int = Field(1, ge=0)

    model_config = SettingsConfigDict(
        env_prefix="", env_file=".env", case_sensitive=False, extra="ignore"
    )

    @field_validator("network_id")
    @classmethod
    def _lower_network(cls, v: str) -> str:
        v = v.strip().lower()
        if not v:
            raise ValueError("NETWORK_ID must not be empty")
        return v

    @field_validator("sponsor_seed")
    @classmethod
    def _check_seed(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        s = v.strip().lower()
        if s.startswith("0x"):
            s = s[2:]
        bytes.fromhex(s)  # raises ValueError on bad hex
        return s


@lru_cache(maxsize=1)
def load_config() -> Settings:
    """Return cached settings instance."""
    return Settings()  # type: ignore[call-arg]


__all__ = ["Settings", "DEFAULT_CONTRACT_ADDRESS", "load_config"]
