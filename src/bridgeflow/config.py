"""Application configuration using pydantic-settings.

Covers RPC endpoints for the three bridge chains, the router and settlement
contract addresses on the source chain, and the slippage, deadline and
confirmation policies applied to every bridge attempt.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=False, description="Enable debug logging")

    # ======================
    # API
    # ======================
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=8000, description="API server port")

    # ======================
    # Chain RPC Endpoints
    # ======================
    eth_rpc_url: str = Field(
        default="https://eth.llamarpc.com", description="Ethereum mainnet RPC URL"
    )
    base_rpc_url: str = Field(
        default="https://mainnet.base.org", description="Base mainnet RPC URL"
    )
    somnia_rpc_url: str = Field(
        default="https://api.infra.mainnet.somnia.network", description="Somnia mainnet RPC URL"
    )
    rpc_timeout_seconds: float = Field(default=15.0, description="Per-request RPC timeout")

    # ======================
    # Bridge Route
    # ======================
    source_chain: str = Field(default="ethereum", description="Chain the native asset leaves from")
    destination_chain: str = Field(default="somnia", description="Chain the value is credited on")
    primary_router_address: str = Field(
        default="0x7a250d5630B4cF539739dF2C5dAcb4c659F2488D",
        description="Primary AMM router (Uniswap V2)",
    )
    fallback_router_address: str = Field(
        default="0xd9e1cE17f2641f24aE83637ab66a2cca9C378B9F",
        description="Fallback AMM router (SushiSwap V2)",
    )
    settlement_contract_address: str = Field(
        default="0x4cD00E387622C35bDDB9b4c962C136462338BC31",
        description="Settlement/deposit contract exposing the multicall entry point",
    )

    # ======================
    # Execution Policy
    # ======================
    slippage_bps: int = Field(default=100, ge=0, lt=10_000, description="Slippage tolerance (1%)")
    swap_deadline_seconds: int = Field(default=1200, gt=0, description="Swap deadline window (20 min)")
    gas_buffer_percent: int = Field(default=25, ge=0, description="Padding applied to estimated gas")
    confirmation_timeout_seconds: float = Field(
        default=600.0, gt=0, description="Max wait for transaction inclusion"
    )
    confirmation_poll_seconds: float = Field(
        default=2.0, gt=0, description="Receipt polling interval"
    )

    # ======================
    # Signer
    # ======================
    bridge_private_key: Optional[str] = Field(
        default=None, description="Private key used by the local signer (CLI only)"
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def has_signer(self) -> bool:
        """Check if a local signing key is configured."""
        return bool(self.bridge_private_key)

    def get_rpc_url(self, chain: str) -> str:
        """Get RPC URL for a specific chain."""
        rpc_map = {
            "ETHEREUM": self.eth_rpc_url,
            "BASE": self.base_rpc_url,
            "SOMNIA": self.somnia_rpc_url,
        }
        return rpc_map.get(chain.upper(), "")

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "api_host": self.api_host,
            "api_port": self.api_port,
            "signer_configured": self.has_signer,
            "chains": {
                "ethereum": {"rpc": self.eth_rpc_url},
                "base": {"rpc": self.base_rpc_url},
                "somnia": {"rpc": self.somnia_rpc_url},
            },
            "route": {
                "source": self.source_chain,
                "destination": self.destination_chain,
                "primary_router": self.primary_router_address,
                "fallback_router": self.fallback_router_address,
                "settlement_contract": self.settlement_contract_address,
            },
            "policy": {
                "slippage_bps": self.slippage_bps,
                "swap_deadline_seconds": self.swap_deadline_seconds,
                "gas_buffer_percent": self.gas_buffer_percent,
                "confirmation_timeout_seconds": self.confirmation_timeout_seconds,
            },
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
