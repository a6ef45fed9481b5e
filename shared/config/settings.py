"""
Settings Module
===============

Pydantic-based configuration with environment variable loading.

Version: 0.1.0
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Deployment environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class BlockchainMode(str, Enum):
    """Ledger backend mode."""

    MOCK = "mock"
    DEVNET = "devnet"
    MAINNET = "mainnet"


class TokenSettings(BaseSettings):
    """Token contract configuration."""

    model_config = SettingsConfigDict(env_prefix="TOKEN_")

    # The contract address doubles as the circulation-tracking account
    address: str = "B62qtokenledgercontract0000000000000000000000000000000000"
    symbol: str = "SLT"
    src: str = "https://github.com/sideload-token/ledger"
    default_decimals: int = Field(default=9, ge=0, le=255)
    registry_height: int = Field(default=3, ge=3, le=32)


class BlockchainSettings(BaseSettings):
    """Ledger backend configuration."""

    model_config = SettingsConfigDict(env_prefix="BLOCKCHAIN_")

    mode: BlockchainMode = BlockchainMode.MOCK


class SignatureSettings(BaseSettings):
    """Transaction signature configuration."""

    model_config = SettingsConfigDict(env_prefix="SIGNATURE_")

    secret_key: SecretStr = SecretStr("your-signature-secret-key-min-32-chars")
    algorithm: str = "HS256"
    expire_minutes: int = 10


class CORSSettings(BaseSettings):
    """CORS configuration."""

    model_config = SettingsConfigDict(env_prefix="CORS_")

    origins: str = "http://localhost:3000,http://localhost:5173"
    allow_credentials: bool = True

    @property
    def origins_list(self) -> list[str]:
        """Parse origins string into list."""
        return [o.strip() for o in self.origins.split(",") if o.strip()]


class ServicePorts(BaseSettings):
    """Service port configuration."""

    token_ledger: int = Field(default=8010, alias="TOKEN_LEDGER_PORT")


class Settings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables with sensible defaults.
    Use the global `settings` singleton or call `get_settings()`.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # General
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = True
    log_level: LogLevel = LogLevel.INFO

    # Service ports
    ports: ServicePorts = Field(default_factory=ServicePorts)

    # Token and ledger
    token: TokenSettings = Field(default_factory=TokenSettings)
    blockchain: BlockchainSettings = Field(default_factory=BlockchainSettings)

    # Transaction signatures
    signature: SignatureSettings = Field(default_factory=SignatureSettings)

    # Security
    cors: CORSSettings = Field(default_factory=CORSSettings)

    @field_validator("log_level", mode="before")
    @classmethod
    def uppercase_log_level(cls, v: str | LogLevel) -> LogLevel:
        """Ensure log level is uppercase."""
        if isinstance(v, str):
            return LogLevel(v.upper())
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == Environment.PRODUCTION


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings singleton.
    """
    return Settings()
