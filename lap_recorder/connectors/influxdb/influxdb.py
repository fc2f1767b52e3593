"""
Connector for sending data to the time series database InfluxDB.

See - https://www.influxdata.com/
"""
import logging
from typing import List

from influxdb_client import InfluxDBClient, Point
from influxdb_client.client.write_api import WriteOptions

from lap_recorder.config import InfluxDBConfiguration

logger = logging.getLogger(__name__)


class InfluxDBConnector:
    """
    Writes go through the client's batching api, points are buffered and
    flushed from a background thread which also retries failed batches with
    an exponential backoff. Nothing here blocks the packet loop.
    """

    def __init__(self, configuration: InfluxDBConfiguration) -> None:
        self.config = configuration
        self._connection = None
        self._write_api = None

    @property
    def connection(self) -> InfluxDBClient:
        if not self._connection:
            self._connection = InfluxDBClient(
                url=self.config.host, token=self.config.token, org=self.config.org
            )
        return self._connection

    @property
    def write_options(self) -> WriteOptions:
        return WriteOptions(
            batch_size=self.config.batch_size,
            flush_interval=self.config.flush_interval,
            retry_interval=self.config.retry_interval,
            max_retries=self.config.max_retries,
            max_retry_delay=self.config.max_retry_delay,
            exponential_base=self.config.exponential_base,
        )

    @property
    def write_api(self):
        if not self._write_api:
            self._write_api = self.connection.write_api(
                write_options=self.write_options,
                error_callback=self._on_error,
            )
        return self._write_api

    def write(self, data: List[Point]) -> None:
        if not data:
            return
        self.write_api.write(bucket=self.config.bucket, org=self.config.org, record=data)

    def is_ready(self) -> bool:
        try:
            return self.connection.ping()
        except Exception as error:
            logger.warning('InfluxDB at %s unreachable: %s', self.config.host, error)
            return False

    def close(self) -> None:
        if self._write_api:
            # flushes whatever is still buffered
            self._write_api.close()
            self._write_api = None
        if self._connection:
            self._connection.close()
            self._connection = None

    def _on_error(self, conf, data, error) -> None:
        logger.error('Failed writing batch to InfluxDB bucket %s: %s', self.config.bucket, error)
