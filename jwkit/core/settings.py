"""Library settings loaded from environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict

JWKS_TIMEOUT_DEFAULT = 5.0
CLAIMS_LEEWAY_DEFAULT = 0


class JwksSettings(BaseSettings):
    """Remote key set fetching settings."""

    model_config = SettingsConfigDict(env_prefix="JWKIT_JWKS_")

    timeout_seconds: float = JWKS_TIMEOUT_DEFAULT
    user_agent: str = "jwkit"


class ClaimsSettings(BaseSettings):
    """Defaults for the registered-claims validation pass."""

    model_config = SettingsConfigDict(env_prefix="JWKIT_CLAIMS_")

    leeway_seconds: int = CLAIMS_LEEWAY_DEFAULT
    issuer: str = ""
    audience: str = ""
