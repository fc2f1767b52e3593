from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, NamedTuple, Optional
from uuid import uuid4


def generate_id() -> str:
    return str(uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Session:
    """
    A recording started by the operator, one lap by default.
    """
    name: str
    player_name: str
    track: Optional[str] = None
    car: Optional[str] = None
    session_type: str = 'custom'
    metadata: Dict = field(default_factory=dict)
    id: str = field(default_factory=generate_id)
    created_at: datetime = field(default_factory=utc_now)
    ended_at: Optional[datetime] = None
    total_laps: int = 0
    is_active: bool = True


@dataclass
class Lap:
    session_id: str
    lap_number: int
    lap_time_ms: Optional[int] = None
    sector_1_time_ms: Optional[int] = None
    sector_2_time_ms: Optional[int] = None
    sector_3_time_ms: Optional[int] = None
    is_valid: bool = True
    id: str = field(default_factory=generate_id)
    created_at: datetime = field(default_factory=utc_now)

    @property
    def is_complete(self) -> bool:
        return self.lap_time_ms is not None


class TelemetrySample(NamedTuple):
    """
    Snapshot of the player's car taken at a whole metre of a flying lap.
    """
    session_id: str
    lap_id: str
    distance_from_start: int
    lap_distance: float
    speed: int
    throttle: float
    brake: float
    steer: float
    gear: int
    engine_rpm: int
    drs: int
    engine_temp: int
    brake_temp_rl: int
    brake_temp_rr: int
    brake_temp_fl: int
    brake_temp_fr: int
    tyre_surface_temp_rl: int
    tyre_surface_temp_rr: int
    tyre_surface_temp_fl: int
    tyre_surface_temp_fr: int
    tyre_inner_temp_rl: int
    tyre_inner_temp_rr: int
    tyre_inner_temp_fl: int
    tyre_inner_temp_fr: int
    tyre_pressure_rl: float
    tyre_pressure_rr: float
    tyre_pressure_fl: float
    tyre_pressure_fr: float
    rev_lights_percent: int
    clutch: int
    surface_type_rl: int
    surface_type_rr: int
    surface_type_fl: int
    surface_type_fr: int


class SessionStatus(NamedTuple):
    has_active_session: bool
    current_session_name: Optional[str]
    current_lap_number: Optional[int]
    is_in_flying_lap: bool
    total_laps: int
    track_length_estimate: float
