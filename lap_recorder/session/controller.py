import logging
from typing import Callable, List, Optional

from lap_recorder.session import tracker
from lap_recorder.session.events import Event, SessionEnded, SessionStarted
from lap_recorder.session.session import Session, SessionStatus
from lap_recorder.telemetry.packets import (
    CarTelemetryData,
    LapData,
    PacketCarTelemetryData,
    PacketHeader,
    PacketLapData,
)

logger = logging.getLogger(__name__)

Subscriber = Callable[[Event], None]


class SessionController:
    """
    Owns the one recording session and feeds it the player's car.

    Telemetry and lap data arrive in separate packets, an update only goes
    to the tracker once one of each has been seen for the player. The last
    frame of each kind is kept for the life of the stream, not per session.
    """

    def __init__(self, laps_per_session: Optional[int] = 1) -> None:
        self.state = tracker.TrackerState(laps_per_session=laps_per_session)
        self.player_car_index: int = 0
        self.latest_telemetry: Optional[CarTelemetryData] = None
        self.latest_lap: Optional[LapData] = None
        self.latest_header: Optional[PacketHeader] = None
        self._subscribers: List[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> None:
        self._subscribers.append(subscriber)

    def publish(self, events: List[Event]) -> List[Event]:
        for event in events:
            for subscriber in self._subscribers:
                try:
                    subscriber(event)
                except Exception:
                    logger.exception('Subscriber %r failed handling %s', subscriber, event.name)
        return events

    def start_session(self, name: str, player_name: str, track: str = None, car: str = None,
                      session_type: str = None, metadata: dict = None) -> Session:
        events = tracker.start_session(
            self.state, name, player_name,
            track=track, car=car, session_type=session_type, metadata=metadata
        )
        self.publish(events)
        return _session_from(events, SessionStarted)

    def end_session(self) -> Session:
        events = tracker.end_session(self.state)
        self.publish(events)
        return _session_from(events, SessionEnded)

    def on_telemetry_packet(self, packet: PacketCarTelemetryData) -> List[Event]:
        telemetry = self._player_entry(packet.header, packet.car_telemetry_data)
        if telemetry is None:
            return []

        self.latest_telemetry = telemetry
        self.latest_header = packet.header
        return self._forward()

    def on_lap_data_packet(self, packet: PacketLapData) -> List[Event]:
        lap = self._player_entry(packet.header, packet.lap_data)
        if lap is None:
            return []

        self.latest_lap = lap
        self.latest_header = packet.header
        return self._forward()

    def get_status(self) -> SessionStatus:
        return tracker.get_status(self.state)

    def _player_entry(self, header: PacketHeader, cars):
        # spectating moves the player index around
        self.player_car_index = header.player_car_index

        if not header.has_player_car or self.player_car_index >= len(cars):
            logger.debug(
                'Player car %s not available in frame %s (%s cars decoded)',
                self.player_car_index, header.frame_identifier, len(cars)
            )
            return None
        return cars[self.player_car_index]

    def _forward(self) -> List[Event]:
        if self.latest_telemetry is None or self.latest_lap is None:
            return []

        events = tracker.on_update(self.state, self.latest_telemetry, self.latest_lap, self.latest_header)
        return self.publish(events)


def _session_from(events: List[Event], event_type) -> Session:
    return next(event.session for event in events if isinstance(event, event_type))
