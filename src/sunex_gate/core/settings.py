"""Application settings and configuration.

This module defines all configuration options for the Sunex gateway.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    Key material is never required at load time; a missing key for the
    active signing mode is reported when the verifier is built.
    """

    # Application metadata
    app_name: str = Field(default="Sunex Gateway", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Signed request protocol
    skew_seconds: int = Field(default=90, alias="SKEW_SECS")
    nonce_ttl_seconds: int = Field(default=600, alias="NONCE_TTL_SECS")
    nonce_max_per_client: int = Field(default=2048, alias="NONCE_MAX_PER_CLIENT")
    domain_tag: str = Field(default="sunex:api:v1", alias="DOMAIN_TAG")
    signing_mode: str = Field(default="ed25519", alias="SIGNING_MODE")

    # Key material for the active signing mode
    ed25519_pubkey_b64: str | None = Field(default=None, alias="ED25519_PUBKEY_BASE64")
    hmac_key_b64: str | None = Field(default=None, alias="HMAC_KEY_BASE64")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def public_protocol(self) -> dict[str, object]:
        """Return the non-secret protocol parameters clients need to sign.

        Returns:
            Dictionary with domain tag, signing mode and freshness windows
        """
        return {
            "domain_tag": self.domain_tag,
            "signing_mode": self.signing_mode.lower(),
            "skew_seconds": self.skew_seconds,
            "nonce_ttl_seconds": self.nonce_ttl_seconds,
        }


settings = Settings()
