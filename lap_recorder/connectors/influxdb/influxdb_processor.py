import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List

from influxdb_client import Point, WritePrecision

from lap_recorder.connectors.processor import Processor
from lap_recorder.session.events import (
    LAP_EVENTS,
    SESSION_EVENTS,
    Event,
    SessionEnded,
    TelemetryStored,
)
from lap_recorder.session.session import Lap, Session, TelemetrySample

logger = logging.getLogger(__name__)

SESSION_MEASUREMENT = 'session'
LAP_MEASUREMENT = 'lap'
TELEMETRY_MEASUREMENT = 'telemetry'

TELEMETRY_TAGS = ('session_id', 'lap_id')

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def epoch_ms(value: datetime) -> int:
    """Whole milliseconds since the epoch, exact for any microseconds."""
    return (value - EPOCH) // timedelta(milliseconds=1)


class InfluxDBProcessor(Processor):
    """
    Points are keyed so that writing the same record again replaces it:
    sessions and laps by their id and creation time, telemetry samples by
    lap and distance. A session update or a re-delivered sample overwrites
    rather than duplicates.
    """

    def __init__(self) -> None:
        self.laps: Dict[str, Lap] = {}

    def convert(self, event: Event) -> List[Point]:
        if isinstance(event, SESSION_EVENTS):
            if isinstance(event, SessionEnded):
                self._forget_laps(event.session.id)
            return [self.session_point(event.session)]
        elif isinstance(event, LAP_EVENTS):
            self.laps[event.lap.id] = event.lap
            return [self.lap_point(event.lap)]
        elif isinstance(event, TelemetryStored):
            return self.telemetry_points(event.sample)
        return []

    def session_point(self, session: Session) -> Point:
        point = Point(SESSION_MEASUREMENT) \
            .tag('session_id', session.id) \
            .field('name', session.name) \
            .field('player_name', session.player_name) \
            .field('session_type', session.session_type) \
            .field('total_laps', session.total_laps) \
            .field('is_active', session.is_active) \
            .field('metadata', json.dumps(session.metadata)) \
            .time(epoch_ms(session.created_at), WritePrecision.MS)

        for name in ('track', 'car'):
            value = getattr(session, name)
            if value is not None:
                point.field(name, value)

        if session.ended_at:
            point.field('ended_at', session.ended_at.isoformat())

        return point

    def lap_point(self, lap: Lap) -> Point:
        point = Point(LAP_MEASUREMENT) \
            .tag('session_id', lap.session_id) \
            .tag('lap_id', lap.id) \
            .field('lap_number', lap.lap_number) \
            .field('is_valid', lap.is_valid) \
            .time(epoch_ms(lap.created_at), WritePrecision.MS)

        for name in ('lap_time_ms', 'sector_1_time_ms', 'sector_2_time_ms', 'sector_3_time_ms'):
            value = getattr(lap, name)
            if value is not None:
                point.field(name, value)

        return point

    def telemetry_points(self, sample: TelemetrySample) -> List[Point]:
        lap = self.laps.get(sample.lap_id)
        if not lap:
            logger.warning('Dropping sample at %sm for unknown lap %s', sample.distance_from_start, sample.lap_id)
            return []

        point = Point(TELEMETRY_MEASUREMENT) \
            .tag('session_id', sample.session_id) \
            .tag('lap_id', sample.lap_id) \
            .time(epoch_ms(lap.created_at) + sample.distance_from_start, WritePrecision.MS)

        for name, value in sample._asdict().items():
            if name in TELEMETRY_TAGS:
                continue
            point.field(name, value)

        return [point]

    def _forget_laps(self, session_id: str) -> None:
        self.laps = {lap_id: lap for lap_id, lap in self.laps.items() if lap.session_id != session_id}
