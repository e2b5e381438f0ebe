"""Primer payment processor settings."""

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class PrimerSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Both are optional so the app boots without them; operations that need
    # them fail with a configuration error instead.
    PRIMER_API_KEY: SecretStr | None = None
    PRIMER_WEBHOOK_SECRET: SecretStr | None = None

    PRIMER_API_BASE_URL: str = "https://api.primer.io"
    PRIMER_API_VERSION: str = "2.4"
    PRIMER_REQUEST_TIMEOUT: int = 30

    @property
    def api_key(self) -> str | None:
        return self.PRIMER_API_KEY.get_secret_value() if self.PRIMER_API_KEY else None

    @property
    def webhook_secret(self) -> str | None:
        if self.PRIMER_WEBHOOK_SECRET is None:
            return None
        return self.PRIMER_WEBHOOK_SECRET.get_secret_value()
