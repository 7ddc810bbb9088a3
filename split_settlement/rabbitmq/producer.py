import json
import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Optional
import pika
from split_settlement.core.config import settings
from split_settlement.schemas.settlement_schema import SettlementDraft
from .setup import RabbitMQSetup

logger = logging.getLogger(__name__)


class RabbitMQProducer:
    """Publishes settlement drafts for the bill store to persist"""
    
    def __init__(self):
        self.connection: Optional[pika.BlockingConnection] = None
        self.channel = None
        self.setup = RabbitMQSetup()
        # BlockingConnection is not thread-safe; request threads share this producer
        self._lock = threading.Lock()
    
    def connect(self) -> None:
        """Establish connection to RabbitMQ"""
        try:
            self.connection = self.setup.create_connection()
            self.channel = self.connection.channel()
            logger.info("RabbitMQ producer connected successfully")
        except Exception as e:
            logger.error(f"Failed to connect RabbitMQ producer: {e}")
            raise
    
    def disconnect(self) -> None:
        """Close RabbitMQ connection"""
        if self.channel and not self.channel.is_closed:
            self.channel.close()
        if self.connection and not self.connection.is_closed:
            self.connection.close()
        logger.info("RabbitMQ producer disconnected")
    
    def publish_settlement_draft(self, draft: SettlementDraft) -> bool:
        """
        Publish a settlement draft message

        Args:
            draft: Pending settlement referencing the exact bills it settles

        Returns:
            bool: True if message published successfully, False otherwise
        """
        with self._lock:
            return self._publish(draft)

    def _publish(self, draft: SettlementDraft) -> bool:
        try:
            if not self.connection or self.connection.is_closed:
                self.connect()

            correlation_id = str(uuid.uuid4())
            message = {
                "settlement": draft.model_dump(mode="json"),
                "timestamp": datetime.now(timezone.utc).isoformat()
            }

            self.channel.basic_publish(
                exchange=settings.SETTLEMENT_EXCHANGE,
                routing_key=settings.SETTLEMENT_ROUTING_KEY,
                body=json.dumps(message),
                properties=pika.BasicProperties(
                    delivery_mode=2,  # Make message persistent
                    content_type='application/json',
                    correlation_id=correlation_id
                )
            )

            logger.info(
                f"Published settlement draft {correlation_id} for group {draft.group_id} "
                f"covering {len(draft.bill_ids)} bills"
            )
            return True

        except Exception as e:
            logger.error(f"Failed to publish settlement draft: {e}")
            return False


# Global producer instance
_rabbitmq_producer: Optional[RabbitMQProducer] = None
_producer_lock = threading.Lock()


def get_rabbitmq_producer() -> RabbitMQProducer:
    """Get or create RabbitMQ producer instance"""
    global _rabbitmq_producer
    with _producer_lock:
        if _rabbitmq_producer is None:
            producer = RabbitMQProducer()
            producer.connect()
            _rabbitmq_producer = producer
        return _rabbitmq_producer


def close_rabbitmq_producer() -> None:
    """Close RabbitMQ producer connection"""
    global _rabbitmq_producer
    with _producer_lock:
        if _rabbitmq_producer:
            _rabbitmq_producer.disconnect()
            _rabbitmq_producer = None
