import logging
import threading
from typing import List, Optional, Union

from lap_recorder.config import RecorderConfiguration
from lap_recorder.connectors.influxdb.influxdb import InfluxDBConnector
from lap_recorder.connectors.influxdb.influxdb_processor import InfluxDBProcessor
from lap_recorder.connectors.kafka.kafka_connection import KafkaConnector
from lap_recorder.connectors.kafka.kafka_processor import KafkaProcessor
from lap_recorder.exceptions import PacketError
from lap_recorder.session.controller import SessionController
from lap_recorder.session.events import Event
from lap_recorder.session.session import Session, SessionStatus
from lap_recorder.telemetry.codec import decode_header, decode_lap_data_packet, decode_telemetry_packet
from lap_recorder.telemetry.constants import MAX_CARS, PacketType
from lap_recorder.telemetry.listener import TelemetryFeed

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s.%(msecs)03d %(levelname)s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
)
logger = logging.getLogger(__name__)

BYPASS_PACKETS = frozenset(PacketType) - {PacketType.CAR_TELEMETRY, PacketType.LAP_DATA}


class DataRecorder:
    """
    Reads the game's UDP stream and records the player's laps.

    The packet loop and the HTTP handlers run on different threads, every
    call into the session controller happens under one lock.
    """

    _kafka: Union[KafkaConnector, None] = None
    _kafka_unavailable: bool = False
    _influxdb: Union[InfluxDBConnector, None] = None

    def __init__(self, configuration: RecorderConfiguration, feed: TelemetryFeed = None) -> None:
        self.configuration: RecorderConfiguration = configuration
        self.feed = feed or TelemetryFeed(port=configuration.port, host=configuration.host)
        self.controller = SessionController(laps_per_session=configuration.laps_per_session)
        self.influxdb_processor = InfluxDBProcessor()
        self.kafka_processor = KafkaProcessor()
        self.packets_received = 0
        self.packets_dropped = 0
        self._lock = threading.Lock()
        # connectors are created on first use from both the packet loop and http threads
        self._connector_lock = threading.Lock()
        self._running = threading.Event()

        self.controller.subscribe(self.write_to_influxdb)
        self.controller.subscribe(self.write_to_kafka)

    @property
    def kafka(self) -> Optional[KafkaConnector]:
        with self._connector_lock:
            if not self._kafka and self.configuration.kafka and not self._kafka_unavailable:
                self._kafka = KafkaConnector(configuration=self.configuration.kafka)
                if self._kafka.in_error:
                    self._kafka_unavailable = True
                    self._kafka = None
        return self._kafka

    @property
    def influxdb(self) -> Optional[InfluxDBConnector]:
        with self._connector_lock:
            if not self._influxdb and self.configuration.influxdb:
                self._influxdb = InfluxDBConnector(
                    configuration=self.configuration.influxdb
                )

        return self._influxdb

    def write_to_influxdb(self, event: Event) -> bool:
        if not self.influxdb:
            return False

        self.influxdb.write(self.influxdb_processor.convert(event))
        return True

    def write_to_kafka(self, event: Event) -> bool:
        if not self.kafka:
            return False

        for topic, key, data in self.kafka_processor.convert(event):
            self.kafka.send(topic, data, key=key)
        return True

    def start_session(self, name: str, player_name: str, **options) -> Session:
        with self._lock:
            return self.controller.start_session(name, player_name, **options)

    def end_session(self) -> Session:
        with self._lock:
            return self.controller.end_session()

    def status(self) -> SessionStatus:
        with self._lock:
            return self.controller.get_status()

    def process_packet(self, data: bytes) -> List[Event]:
        """
        Decode one datagram and hand it to the controller.

        A packet that cannot be decoded is logged and dropped, the stream
        carries on with the next one.
        """
        self.packets_received += 1

        try:
            header = decode_header(data)
        except PacketError as error:
            self.packets_dropped += 1
            logger.warning('Dropping malformed packet of %s bytes: %s', len(data), error)
            return []

        if header.packet_id == PacketType.CAR_TELEMETRY:
            packet = decode_telemetry_packet(data, header)
            self._check_complete(header, len(packet.car_telemetry_data))
            if self.kafka:
                self.publish_live(self.kafka_processor.live_telemetry(packet, header.player_car_index))
            with self._lock:
                return self.controller.on_telemetry_packet(packet)
        elif header.packet_id == PacketType.LAP_DATA:
            packet = decode_lap_data_packet(data, header)
            self._check_complete(header, len(packet.lap_data))
            if self.kafka:
                self.publish_live(self.kafka_processor.live_lap_data(packet, header.player_car_index))
            with self._lock:
                return self.controller.on_lap_data_packet(packet)
        elif header.packet_id not in BYPASS_PACKETS:
            logger.debug('Unknown packet id %s', header.packet_id)

        return []

    def publish_live(self, message) -> None:
        if message:
            topic, key, data = message
            self.kafka.send(topic, data, key=key)

    def collect(self) -> None:
        self._running.set()
        while self._running.is_set():
            try:
                data = self.feed.get_latest()
            except OSError as error:
                if not self._running.is_set() or self.feed.closed:
                    break
                logger.error('Error reading telemetry socket: %s', error)
                continue

            try:
                self.process_packet(data)
            except Exception:
                self.packets_dropped += 1
                logger.exception('Dropping packet of %s bytes that failed processing', len(data))

    def start(self) -> threading.Thread:
        thread = threading.Thread(target=self.collect, name='telemetry-collector', daemon=True)
        thread.start()
        return thread

    def stop(self) -> None:
        self._running.clear()
        self.feed.close()
        if self._influxdb:
            self._influxdb.close()
        if self._kafka:
            self._kafka.close()

    @staticmethod
    def _check_complete(header, cars: int) -> None:
        if cars < MAX_CARS:
            logger.debug('Packet %s frame %s only held %s cars', header.packet_id, header.frame_identifier, cars)
