"""
Sends a synthetic flying lap to a recorder, for trying things out without
the game running.
"""
import logging
import socket
import time
from typing import Iterator

from lap_recorder.telemetry.codec import build_header, encode_lap_data_packet, encode_telemetry_packet
from lap_recorder.telemetry.constants import MAX_CARS, DriverStatus, PacketType
from lap_recorder.telemetry.packets import (
    CarTelemetryData,
    LapData,
    PacketCarTelemetryData,
    PacketLapData,
)

logger = logging.getLogger(__name__)

SESSION_UID = 12345


def car_telemetry(speed: int = 0, gear: int = 0, engine_rpm: int = 0, throttle: float = 0.0,
                  brake: float = 0.0) -> CarTelemetryData:
    return CarTelemetryData(
        speed=speed,
        throttle=throttle,
        steer=0.0,
        brake=brake,
        clutch=0,
        gear=gear,
        engine_rpm=engine_rpm,
        drs=0,
        rev_lights_percent=min(engine_rpm // 130, 100),
        rev_lights_bit_value=0,
        brakes_temperature=(450, 450, 520, 520),
        tyres_surface_temperature=(95, 95, 98, 98),
        tyres_inner_temperature=(100, 100, 102, 102),
        engine_temperature=110,
        tyres_pressure=(21.5, 21.5, 23.0, 23.0),
        surface_type=(0, 0, 0, 0),
    )


def lap_data(current_lap_num: int = 1, lap_distance: float = 0.0, last_lap_time_in_ms: int = 0,
             current_lap_time_in_ms: int = 0, driver_status: int = DriverStatus.FLYING_LAP,
             current_lap_invalid: int = 0, car_position: int = 1) -> LapData:
    return LapData(
        last_lap_time_in_ms=last_lap_time_in_ms,
        current_lap_time_in_ms=current_lap_time_in_ms,
        sector1_time_ms_part=0,
        sector1_time_minutes_part=0,
        sector2_time_ms_part=0,
        sector2_time_minutes_part=0,
        delta_to_car_in_front_ms_part=0,
        delta_to_car_in_front_minutes_part=0,
        delta_to_race_leader_ms_part=0,
        delta_to_race_leader_minutes_part=0,
        lap_distance=lap_distance,
        total_distance=lap_distance,
        safety_car_delta=0.0,
        car_position=car_position,
        current_lap_num=current_lap_num,
        pit_status=0,
        num_pit_stops=0,
        sector=0,
        current_lap_invalid=current_lap_invalid,
        penalties=0,
        total_warnings=0,
        corner_cutting_warnings=0,
        num_unserved_drive_through_pens=0,
        num_unserved_stop_go_pens=0,
        grid_position=car_position,
        driver_status=driver_status,
        result_status=2,
        pit_lane_timer_active=0,
        pit_lane_time_in_lane_in_ms=0,
        pit_stop_timer_in_ms=0,
        pit_stop_should_serve_pen=0,
        speed_trap_fastest_speed=0.0,
        speed_trap_fastest_lap=255,
    )


def telemetry_packet(car: CarTelemetryData, frame: int = 0, player_car_index: int = 0) -> bytes:
    header = build_header(PacketType.CAR_TELEMETRY, SESSION_UID, frame / 60, frame, player_car_index)
    return encode_telemetry_packet(PacketCarTelemetryData(header, (car,) * MAX_CARS))


def lap_data_packet(lap: LapData, frame: int = 0, player_car_index: int = 0) -> bytes:
    header = build_header(PacketType.LAP_DATA, SESSION_UID, frame / 60, frame, player_car_index)
    return encode_lap_data_packet(PacketLapData(header, (lap,) * MAX_CARS))


def synthetic_lap(lap_number: int = 1, track_length: int = 5000, step: float = 5.0,
                  lap_time_ms: int = 90_000) -> Iterator[bytes]:
    """
    Lap data and telemetry packets for one flying lap, then the lap data
    that crosses the line into the next one.
    """
    frames = int(track_length / step)
    for frame in range(frames):
        distance = frame * step
        elapsed = int(lap_time_ms * distance / track_length)
        speed = 180 + int(120 * abs(((distance / 800) % 2) - 1))

        yield lap_data_packet(
            lap_data(current_lap_num=lap_number, lap_distance=distance, current_lap_time_in_ms=elapsed), frame
        )
        yield telemetry_packet(
            car_telemetry(speed=speed, gear=min(8, 1 + speed // 40), engine_rpm=9000 + speed * 10, throttle=1.0),
            frame,
        )

    yield lap_data_packet(lap_data(current_lap_num=lap_number + 1, last_lap_time_in_ms=lap_time_ms), frames)


def send(packets: Iterator[bytes], host: str = '127.0.0.1', port: int = 20777, interval: float = 1 / 60) -> int:
    sent = 0
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        for packet in packets:
            sock.sendto(packet, (host, port))
            sent += 1
            if interval:
                time.sleep(interval)
    finally:
        sock.close()

    logger.info('Sent %s packets to %s:%s', sent, host, port)
    return sent
