"""
Lifecycle events produced by the tracker.

Tracker operations return a list of these in the order they happened, the
controller hands them on to whoever subscribed.
"""
from typing import NamedTuple, Union

from lap_recorder.session.session import Lap, Session, TelemetrySample


class SessionStarted(NamedTuple):
    session: Session
    name: str = 'session_started'


class SessionEnded(NamedTuple):
    session: Session
    name: str = 'session_ended'


class LapStarted(NamedTuple):
    lap: Lap
    name: str = 'lap_started'


class LapCompleted(NamedTuple):
    lap: Lap
    name: str = 'lap_completed'


class TelemetryStored(NamedTuple):
    sample: TelemetrySample
    name: str = 'telemetry_stored'


Event = Union[SessionStarted, SessionEnded, LapStarted, LapCompleted, TelemetryStored]

SESSION_EVENTS = (SessionStarted, SessionEnded)
LAP_EVENTS = (LapStarted, LapCompleted)
