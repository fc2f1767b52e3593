import logging
import socket
import time
from typing import Optional

from lap_recorder.telemetry.constants import DEFAULT_PORT

logger = logging.getLogger(__name__)

# Largest F1 25 packet (motion ex / lap positions) is well under this
MAX_DATAGRAM_SIZE = 2048


class TelemetryFeed:
    """
    UDP socket the game broadcasts to.
    """

    def __init__(self, port: int = None, host: str = None, bind_attempts: int = 5,
                 retry_delay: float = 1.0) -> None:
        if not port:
            port = DEFAULT_PORT

        if not host:
            host = ''

        self.port = port
        self.host = host
        self.bind_attempts = bind_attempts
        self.retry_delay = retry_delay
        self._socket: Optional[socket.socket] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def is_listening(self) -> bool:
        return self._socket is not None

    @property
    def connection(self) -> socket.socket:
        if self._closed:
            raise OSError(f'telemetry feed on port {self.port} is closed')
        if not self._socket:
            self._socket = self._bind()
        return self._socket

    def _bind(self) -> socket.socket:
        for attempt in range(1, self.bind_attempts + 1):
            sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            try:
                sock.bind((self.host, self.port))
            except OSError as error:
                sock.close()
                if attempt == self.bind_attempts:
                    raise
                logger.warning(
                    'Unable to bind UDP port %s (attempt %s/%s): %s',
                    self.port, attempt, self.bind_attempts, error
                )
                time.sleep(self.retry_delay)
            else:
                logger.info('Listening for telemetry on %s:%s', self.host or '0.0.0.0', self.port)
                return sock

    def get_latest(self) -> bytes:
        data, _ = self.connection.recvfrom(MAX_DATAGRAM_SIZE)
        return data

    def close(self) -> None:
        self._closed = True
        if self._socket:
            self._socket.close()
            self._socket = None
