# broadcast_service/core/config.py

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Read straight from the process environment (Docker Compose / CI).
    model_config = SettingsConfigDict(extra="ignore")

    # The environment mode: 'local' or 'prod'
    ENV: str = "local"

    # --- Production URLs (for inside Docker) ---
    DATABASE_URL_PROD: str = ""
    REDIS_URL_PROD: str = ""
    KAFKA_BOOTSTRAP_SERVERS_PROD: str = ""

    # --- Local Development URLs (for running locally) ---
    DATABASE_URL_LOCAL: str
    REDIS_URL_LOCAL: str = "redis://localhost:6379/0"
    KAFKA_BOOTSTRAP_SERVERS_LOCAL: str = "localhost:9092"

    # Secrets
    JWT_SECRET: str
    INTERNAL_API_KEY: str

    # --- Broadcast rules ---
    MAX_BROADCAST_SELLERS: int = 3
    DEFAULT_PRICING_TIMEOUT_HOURS: int = 24
    DEFAULT_AUTO_CANCEL_AFTER_HOURS: int = 48
    DEFAULT_MAX_ITEMS_PER_ORDER: int = 50
    CLAIM_STALE_AFTER_MINUTES: int = 5

    # --- Background jobs ---
    SCHEDULER_ENABLED: bool = True
    EXPIRY_SWEEP_INTERVAL_MINUTES: int = 5

    # --- Rate limits (slowapi syntax) ---
    BROADCAST_CREATE_RATE_LIMIT: str = "10/minute"
    PRICING_SUBMIT_RATE_LIMIT: str = "30/minute"

    # --- Messaging ---
    BROADCAST_EVENTS_TOPIC: str = "custom-order-events"

    # --- Dynamic Properties ---
    # These properties return the correct URL based on the ENV
    @property
    def DATABASE_URL(self) -> str:
        return (
            self.DATABASE_URL_LOCAL if self.ENV == "local" else self.DATABASE_URL_PROD
        )

    @property
    def REDIS_URL(self) -> str:
        return self.REDIS_URL_LOCAL if self.ENV == "local" else self.REDIS_URL_PROD

    @property
    def KAFKA_BOOTSTRAP_SERVERS(self) -> str:
        return (
            self.KAFKA_BOOTSTRAP_SERVERS_LOCAL
            if self.ENV == "local"
            else self.KAFKA_BOOTSTRAP_SERVERS_PROD
        )


# Create a single instance of the settings
settings = Settings()
