import logging
import pika
from split_settlement.core.config import settings

logger = logging.getLogger(__name__)


class RabbitMQSetup:
    """Builds connections and declares the settlement exchange"""

    def connection_parameters(self) -> pika.ConnectionParameters:
        credentials = pika.PlainCredentials(settings.RABBITMQ_USER, settings.RABBITMQ_PASSWORD)
        return pika.ConnectionParameters(
            host=settings.RABBITMQ_HOST,
            port=settings.RABBITMQ_PORT,
            virtual_host=settings.RABBITMQ_VHOST,
            credentials=credentials,
            heartbeat=600,
            blocked_connection_timeout=300
        )

    def create_connection(self) -> pika.BlockingConnection:
        """Open a blocking connection and make sure the exchange exists"""
        connection = pika.BlockingConnection(self.connection_parameters())
        channel = connection.channel()
        channel.exchange_declare(
            exchange=settings.SETTLEMENT_EXCHANGE,
            exchange_type="topic",
            durable=True
        )
        channel.close()
        logger.info(f"Declared exchange '{settings.SETTLEMENT_EXCHANGE}' on {settings.RABBITMQ_HOST}")
        return connection
