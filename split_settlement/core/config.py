from decimal import Decimal
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # API Settings
    PROJECT_NAME: str = "Split Settlement Service"
    PROJECT_VERSION: str = "1.0.0"
    DESCRIPTION: str = "Computes balances and minimal payment plans for shared bills"

    # Logging
    LOG_LEVEL: str = "INFO"

    # Money
    MONEY_UNIT: Decimal = Decimal("0.01")
    MAX_BILLS_PER_REQUEST: int = 500

    # RabbitMQ
    RABBITMQ_HOST: str = "localhost"
    RABBITMQ_PORT: int = 5672
    RABBITMQ_USER: str = "guest"
    RABBITMQ_PASSWORD: str = "guest"
    RABBITMQ_VHOST: str = "/"
    SETTLEMENT_EXCHANGE: str = "settlements"
    SETTLEMENT_ROUTING_KEY: str = "settlement.confirmed"
    SETTLEMENT_EVENTS_ENABLED: bool = False

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env"
    )

settings = Settings()
