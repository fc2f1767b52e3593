"""
Decoded F1 25 packets.

Everything here is immutable and rebuilt from every packet, a car's entry has
no identity across packets. Four element tuples are per wheel, ordered
RL, RR, FL, FR.
"""
from typing import NamedTuple, Tuple

from lap_recorder.telemetry.constants import NO_CAR_INDEX, PacketType

Wheels = Tuple[int, int, int, int]
WheelsFloat = Tuple[float, float, float, float]


class PacketHeader(NamedTuple):
    packet_format: int
    game_year: int
    game_major_version: int
    game_minor_version: int
    packet_version: int
    packet_id: int
    session_uid: int
    session_time: float
    frame_identifier: int
    overall_frame_identifier: int
    player_car_index: int
    secondary_player_car_index: int

    @property
    def packet_type(self):
        """PacketType for known ids, the raw id otherwise."""
        try:
            return PacketType(self.packet_id)
        except ValueError:
            return self.packet_id

    @property
    def has_player_car(self) -> bool:
        return self.player_car_index != NO_CAR_INDEX


class CarTelemetryData(NamedTuple):
    speed: int
    throttle: float
    steer: float
    brake: float
    clutch: int
    gear: int
    engine_rpm: int
    drs: int
    rev_lights_percent: int
    rev_lights_bit_value: int
    brakes_temperature: Wheels
    tyres_surface_temperature: Wheels
    tyres_inner_temperature: Wheels
    engine_temperature: int
    tyres_pressure: WheelsFloat
    surface_type: Wheels


class PacketCarTelemetryData(NamedTuple):
    header: PacketHeader
    car_telemetry_data: Tuple[CarTelemetryData, ...]
    mfd_panel_index: int = 0
    mfd_panel_index_secondary_player: int = 0
    suggested_gear: int = 0


class LapData(NamedTuple):
    last_lap_time_in_ms: int
    current_lap_time_in_ms: int
    sector1_time_ms_part: int
    sector1_time_minutes_part: int
    sector2_time_ms_part: int
    sector2_time_minutes_part: int
    delta_to_car_in_front_ms_part: int
    delta_to_car_in_front_minutes_part: int
    delta_to_race_leader_ms_part: int
    delta_to_race_leader_minutes_part: int
    lap_distance: float
    total_distance: float
    safety_car_delta: float
    car_position: int
    current_lap_num: int
    pit_status: int
    num_pit_stops: int
    sector: int
    current_lap_invalid: int
    penalties: int
    total_warnings: int
    corner_cutting_warnings: int
    num_unserved_drive_through_pens: int
    num_unserved_stop_go_pens: int
    grid_position: int
    driver_status: int
    result_status: int
    pit_lane_timer_active: int
    pit_lane_time_in_lane_in_ms: int
    pit_stop_timer_in_ms: int
    pit_stop_should_serve_pen: int
    speed_trap_fastest_speed: float
    speed_trap_fastest_lap: int

    @property
    def sector1_time_in_ms(self) -> int:
        return self.sector1_time_minutes_part * 60_000 + self.sector1_time_ms_part

    @property
    def sector2_time_in_ms(self) -> int:
        return self.sector2_time_minutes_part * 60_000 + self.sector2_time_ms_part


class PacketLapData(NamedTuple):
    header: PacketHeader
    lap_data: Tuple[LapData, ...]
    time_trial_pb_car_idx: int = NO_CAR_INDEX
    time_trial_rival_car_idx: int = NO_CAR_INDEX
