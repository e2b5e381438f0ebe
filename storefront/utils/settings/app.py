from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DEBUG: bool = False
    ENVIRONMENT: str = "DEV"
    API_VERSION: str = "0.1.0"
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
    ]

    # Page payload served when a hostname has no product mapping
    DEFAULT_PAGE_TITLE: str = "Project Felix"
    DEFAULT_PAGE_DESCRIPTION: str = "A multi-domain storefront"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.upper() == "PROD"
