from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Database
    database_url: str

    # JWT (cookie-based auth, tokens are minted by the identity provider)
    JWT_SECRET: str
    JWT_ISS: str = "social-identity"
    JWT_AUD: str = "social-api"
    JWT_LEEWAY_SECONDS: int = 30  # clock skew against the identity provider

    # Cookie
    COOKIE_SECURE: bool = True
    ACCESS_TOKEN_TTL_SECONDS: int = 60 * 60 * 12  # one night out

    SUPER_ADMIN_PROFILE_IDS: str = ""

    # Guest feed: show a private profile to someone already talking to it
    FEED_SHOW_CONNECTED_PRIVATE: bool = True

    # Original behaviour: no vibes without a phone number on the profile
    REQUIRE_PHONE_TO_INTERACT: bool = False

    CONTACT_LINK_BASE_URL: str = "https://wa.me/"

    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: str = ""

    def super_admin_ids(self) -> set[str]:
        raw = (self.SUPER_ADMIN_PROFILE_IDS or "").strip()
        if not raw:
            return set()
        return {x.strip() for x in raw.split(",") if x.strip()}

    def cors_origins(self) -> list[str]:
        return [x.strip() for x in (self.CORS_ORIGINS or "").split(",") if x.strip()]


settings = Settings()
