"""
Session and lap state machine for the player's car.

All state lives in a TrackerState which the caller owns and passes to every
operation. Operations return the events they produced, in order. Nothing in
here locks, the caller serialises access.
"""
import logging
import math
from dataclasses import dataclass, replace
from typing import List, Optional

from lap_recorder.exceptions import NoActiveSession, SessionAlreadyActive
from lap_recorder.session.events import (
    Event,
    LapCompleted,
    LapStarted,
    SessionEnded,
    SessionStarted,
    TelemetryStored,
)
from lap_recorder.session.session import Lap, Session, SessionStatus, TelemetrySample, utc_now
from lap_recorder.telemetry.constants import DRIVER_STATUS, DriverStatus
from lap_recorder.telemetry.packets import CarTelemetryData, LapData, PacketHeader

logger = logging.getLogger(__name__)

# metres travelled between stored samples
DISTANCE_INTERVAL = 1


@dataclass
class TrackerState:
    # auto end the session after this many completed laps, None or 0 never
    laps_per_session: Optional[int] = 1

    active_session: Optional[Session] = None
    current_lap: Optional[Lap] = None
    last_observed_lap_number: int = 0
    is_in_flying_lap: bool = False
    last_stored_distance: int = -1
    # largest lap distance seen, informational only
    track_length_estimate: float = 0.0
    sector_1_time_ms: Optional[int] = None
    sector_2_time_ms: Optional[int] = None

    @property
    def has_active_session(self) -> bool:
        return bool(self.active_session and self.active_session.is_active)

    def reset_lap_tracking(self) -> None:
        self.current_lap = None
        self.last_observed_lap_number = 0
        self.is_in_flying_lap = False
        self.last_stored_distance = -1
        self.sector_1_time_ms = None
        self.sector_2_time_ms = None


def start_session(state: TrackerState, name: str, player_name: str, track: str = None,
                  car: str = None, session_type: str = None, metadata: dict = None) -> List[Event]:
    if state.has_active_session:
        raise SessionAlreadyActive(state.active_session.name)

    session = Session(
        name=name,
        player_name=player_name,
        track=track,
        car=car,
        session_type=session_type or 'custom',
        metadata=metadata or {},
    )
    state.active_session = session
    state.reset_lap_tracking()

    logger.info('Session "%s" started for %s', session.name, session.player_name)
    return [SessionStarted(replace(session))]


def end_session(state: TrackerState) -> List[Event]:
    if not state.has_active_session:
        raise NoActiveSession()

    session = state.active_session
    session.ended_at = utc_now()
    session.is_active = False

    state.active_session = None
    state.reset_lap_tracking()

    logger.info('Session "%s" ended with %s laps', session.name, session.total_laps)
    return [SessionEnded(replace(session))]


def on_update(state: TrackerState, telemetry: CarTelemetryData, lap: LapData,
              header: PacketHeader) -> List[Event]:
    """
    Feed one paired telemetry and lap frame for the player's car.

    Telemetry keeps arriving whether or not anything is being recorded, so
    without an active session this does nothing.
    """
    if not state.has_active_session:
        return []

    events: List[Event] = []

    state.is_in_flying_lap = lap.driver_status == DriverStatus.FLYING_LAP
    if math.isfinite(lap.lap_distance):
        state.track_length_estimate = max(state.track_length_estimate, lap.lap_distance)

    if lap.current_lap_num != state.last_observed_lap_number and lap.current_lap_num > 0:
        logger.debug(
            'Lap number %s -> %s at frame %s (%s)',
            state.last_observed_lap_number, lap.current_lap_num, header.frame_identifier,
            DRIVER_STATUS.get(lap.driver_status, lap.driver_status)
        )
        events.extend(_handle_lap_change(state, lap))

    if state.current_lap:
        _remember_sectors(state, lap)

    if state.is_in_flying_lap and state.current_lap:
        stored = sample_if_due(state, telemetry, lap)
        if stored:
            events.append(stored)

    state.last_observed_lap_number = lap.current_lap_num
    return events


def _handle_lap_change(state: TrackerState, lap: LapData) -> List[Event]:
    events: List[Event] = []
    session = state.active_session

    if state.current_lap and lap.last_lap_time_in_ms > 0:
        events.append(_complete_lap(state, lap))
        session.total_laps += 1

        if state.laps_per_session and session.total_laps >= state.laps_per_session:
            events.extend(end_session(state))
            return events

    new_lap = Lap(session_id=session.id, lap_number=lap.current_lap_num)
    state.current_lap = new_lap
    state.last_stored_distance = -1
    state.sector_1_time_ms = None
    state.sector_2_time_ms = None

    logger.info('Lap %s started in session "%s"', new_lap.lap_number, session.name)
    events.append(LapStarted(replace(new_lap)))
    return events


def _complete_lap(state: TrackerState, lap: LapData) -> LapCompleted:
    completed = state.current_lap
    completed.lap_time_ms = lap.last_lap_time_in_ms
    completed.is_valid = not lap.current_lap_invalid
    completed.sector_1_time_ms = state.sector_1_time_ms
    completed.sector_2_time_ms = state.sector_2_time_ms

    if state.sector_1_time_ms and state.sector_2_time_ms:
        sector_3 = completed.lap_time_ms - state.sector_1_time_ms - state.sector_2_time_ms
        if sector_3 > 0:
            completed.sector_3_time_ms = sector_3

    logger.info(
        'Lap %s completed in %sms (%s)',
        completed.lap_number, completed.lap_time_ms, 'valid' if completed.is_valid else 'invalid'
    )
    return LapCompleted(replace(completed))


def _remember_sectors(state: TrackerState, lap: LapData) -> None:
    # splits read zero until the sector is done and reset when the lap does
    if lap.sector1_time_in_ms:
        state.sector_1_time_ms = lap.sector1_time_in_ms
    if lap.sector2_time_in_ms:
        state.sector_2_time_ms = lap.sector2_time_in_ms


def sample_if_due(state: TrackerState, telemetry: CarTelemetryData, lap: LapData) -> Optional[TelemetryStored]:
    """
    Distance sampler, at most one sample per DISTANCE_INTERVAL metres.

    Only moves forward: a car that stops or reverses stores nothing until it
    passes the last stored distance again. Gaps are left as they are. A
    distance that is not a finite number stores nothing.
    """
    if not math.isfinite(lap.lap_distance):
        return None

    distance = math.floor(lap.lap_distance)
    if distance < state.last_stored_distance + DISTANCE_INTERVAL:
        return None

    sample = build_sample(state.active_session, state.current_lap, telemetry, lap, distance)
    state.last_stored_distance = distance
    logger.debug('Sample at %sm of lap %s', distance, state.current_lap.lap_number)
    return TelemetryStored(sample)


def build_sample(session: Session, current_lap: Lap, telemetry: CarTelemetryData,
                 lap: LapData, distance: int) -> TelemetrySample:
    brakes = telemetry.brakes_temperature
    surface_temp = telemetry.tyres_surface_temperature
    inner_temp = telemetry.tyres_inner_temperature
    pressure = telemetry.tyres_pressure
    surface = telemetry.surface_type

    return TelemetrySample(
        session_id=session.id,
        lap_id=current_lap.id,
        distance_from_start=distance,
        lap_distance=lap.lap_distance,
        speed=telemetry.speed,
        throttle=telemetry.throttle,
        brake=telemetry.brake,
        steer=telemetry.steer,
        gear=telemetry.gear,
        engine_rpm=telemetry.engine_rpm,
        drs=telemetry.drs,
        engine_temp=telemetry.engine_temperature,
        brake_temp_rl=brakes[0],
        brake_temp_rr=brakes[1],
        brake_temp_fl=brakes[2],
        brake_temp_fr=brakes[3],
        tyre_surface_temp_rl=surface_temp[0],
        tyre_surface_temp_rr=surface_temp[1],
        tyre_surface_temp_fl=surface_temp[2],
        tyre_surface_temp_fr=surface_temp[3],
        tyre_inner_temp_rl=inner_temp[0],
        tyre_inner_temp_rr=inner_temp[1],
        tyre_inner_temp_fl=inner_temp[2],
        tyre_inner_temp_fr=inner_temp[3],
        tyre_pressure_rl=pressure[0],
        tyre_pressure_rr=pressure[1],
        tyre_pressure_fl=pressure[2],
        tyre_pressure_fr=pressure[3],
        rev_lights_percent=telemetry.rev_lights_percent,
        clutch=telemetry.clutch,
        surface_type_rl=surface[0],
        surface_type_rr=surface[1],
        surface_type_fl=surface[2],
        surface_type_fr=surface[3],
    )


def get_status(state: TrackerState) -> SessionStatus:
    session = state.active_session if state.has_active_session else None
    return SessionStatus(
        has_active_session=session is not None,
        current_session_name=session.name if session else None,
        current_lap_number=state.current_lap.lap_number if state.current_lap else None,
        is_in_flying_lap=state.is_in_flying_lap,
        total_laps=session.total_laps if session else 0,
        track_length_estimate=state.track_length_estimate,
    )
