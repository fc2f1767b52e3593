"""
Publishes recordings and a live view of the player's car to Kafka, for
dashboards and anything else that wants to follow along.

See - https://kafka.apache.org/
"""
import logging
from typing import Optional

from kafka import KafkaProducer
from kafka.errors import KafkaError, NoBrokersAvailable

from lap_recorder.config import KafkaConfiguration

logger = logging.getLogger(__name__)


class KafkaConnector:
    def __init__(self, configuration: KafkaConfiguration) -> None:
        self.config = configuration
        self.in_error = False
        self._producer: Optional[KafkaProducer] = None

        try:
            self._producer = KafkaProducer(
                bootstrap_servers=self.config.bootstrap_servers,
                client_id='lap_recorder',
                acks=1,
                linger_ms=20,
            )
        except NoBrokersAvailable:
            logger.warning('No Kafka brokers available at %s, not publishing', self.config.bootstrap_servers)
            self.in_error = True

    def topic(self, name: str) -> str:
        return f'{self.config.topic_prefix}.{name}'

    def send(self, topic: str, data: bytes, key: str = None) -> bool:
        """
        Fire and forget, delivery happens on the producer's own thread.
        """
        if self.in_error:
            return False

        try:
            future = self._producer.send(
                self.topic(topic),
                value=data,
                key=key.encode('utf-8') if key else None,
            )
        except KafkaError as error:
            logger.error('Failed sending to Kafka topic %s: %s', topic, error)
            return False

        future.add_errback(self._on_error, topic)
        return True

    def close(self) -> None:
        if self._producer:
            self._producer.flush()
            self._producer.close()
            self._producer = None

    @staticmethod
    def _on_error(topic, error) -> None:
        logger.error('Kafka delivery to %s failed: %s', topic, error)
