"""
Decoder and encoder for the F1 25 UDP packets lap_recorder cares about.

The layout is dictated by the game, fixed width, little-endian and packed.
Per car arrays degrade rather than fail: a datagram that stops part way
through the car array decodes to fewer than 22 cars, callers must check the
length before indexing.
"""
import struct
from typing import Optional, Tuple

from lap_recorder.exceptions import MalformedPacket
from lap_recorder.telemetry.constants import (
    CAR_TELEMETRY_SIZE,
    GAME_YEAR,
    HEADER_SIZE,
    LAP_DATA_SIZE,
    MAX_CARS,
    NO_CAR_INDEX,
    PACKET_FORMAT,
)
from lap_recorder.telemetry.packets import (
    CarTelemetryData,
    LapData,
    PacketCarTelemetryData,
    PacketHeader,
    PacketLapData,
)
from lap_recorder.telemetry.reader import PacketReader

HEADER = struct.Struct(
    '<H'  # packet format
    'BBBB'  # game year, major, minor, packet version
    'B'  # packet id
    'Q'  # session uid
    'f'  # session time
    'II'  # frame identifier, overall frame identifier
    'BB'  # player car index, secondary player car index
)

CAR_TELEMETRY = struct.Struct(
    '<H'  # speed
    'fff'  # throttle, steer, brake
    'Bb'  # clutch, gear
    'H'  # engine rpm
    'BB'  # drs, rev lights percent
    'H'  # rev lights bit value
    '4H'  # brakes temperature
    '4B4B'  # tyres surface, inner temperature
    'H'  # engine temperature
    '4f'  # tyres pressure
    '4B'  # surface type
)

LAP_DATA = struct.Struct(
    '<II'  # last, current lap time ms
    'HB'  # sector 1 ms part, minutes part
    'HB'  # sector 2 ms part, minutes part
    'HB'  # delta to car in front ms part, minutes part
    'HB'  # delta to race leader ms part, minutes part
    'fff'  # lap distance, total distance, safety car delta
    '15B'  # car position .. pit lane timer active
    'HH'  # pit lane time in lane, pit stop timer
    'B'  # pit stop should serve pen
    'f'  # speed trap fastest speed
    'B'  # speed trap fastest lap
)

UINT8 = struct.Struct('<B')
INT8 = struct.Struct('<b')


def decode_header(buffer: bytes) -> PacketHeader:
    """
    Read the 29 byte header every packet starts with.

    Format and game year are not checked, the packet id alone decides which
    body decoder runs.
    """
    reader = PacketReader(buffer)
    return PacketHeader._make(reader.unpack(HEADER, error=MalformedPacket))


def decode_car_telemetry(buffer: bytes, offset: int = 0) -> CarTelemetryData:
    """Decode one 60 byte car record, TruncatedRecord if the region is short."""
    return _read_car_telemetry(PacketReader(buffer, offset))


def decode_lap_data(buffer: bytes, offset: int = 0) -> LapData:
    """Decode one 57 byte lap record, TruncatedRecord if the region is short."""
    return _read_lap_data(PacketReader(buffer, offset))


def _read_car_telemetry(reader: PacketReader) -> CarTelemetryData:
    values = reader.unpack(CAR_TELEMETRY)
    return CarTelemetryData(
        *values[:10],
        brakes_temperature=values[10:14],
        tyres_surface_temperature=values[14:18],
        tyres_inner_temperature=values[18:22],
        engine_temperature=values[22],
        tyres_pressure=values[23:27],
        surface_type=values[27:31],
    )


def _read_lap_data(reader: PacketReader) -> LapData:
    return LapData._make(reader.unpack(LAP_DATA))


def _read_cars(reader: PacketReader, record_size: int, read_record) -> Tuple:
    cars = []
    for _ in range(MAX_CARS):
        if not reader.can_read(record_size):
            break
        cars.append(read_record(reader))
    return tuple(cars)


def decode_telemetry_packet(buffer: bytes, header: Optional[PacketHeader] = None) -> PacketCarTelemetryData:
    if header is None:
        header = decode_header(buffer)

    reader = PacketReader(buffer, HEADER_SIZE)
    cars = _read_cars(reader, CAR_TELEMETRY_SIZE, _read_car_telemetry)

    return PacketCarTelemetryData(
        header=header,
        car_telemetry_data=cars,
        mfd_panel_index=reader.unpack_or_default(UINT8, 0),
        mfd_panel_index_secondary_player=reader.unpack_or_default(UINT8, 0),
        suggested_gear=reader.unpack_or_default(INT8, 0),
    )


def decode_lap_data_packet(buffer: bytes, header: Optional[PacketHeader] = None) -> PacketLapData:
    if header is None:
        header = decode_header(buffer)

    reader = PacketReader(buffer, HEADER_SIZE)
    cars = _read_cars(reader, LAP_DATA_SIZE, _read_lap_data)

    return PacketLapData(
        header=header,
        lap_data=cars,
        time_trial_pb_car_idx=reader.unpack_or_default(UINT8, NO_CAR_INDEX),
        time_trial_rival_car_idx=reader.unpack_or_default(UINT8, NO_CAR_INDEX),
    )


def decode_telemetry_body(buffer: bytes, header: Optional[PacketHeader] = None) -> Tuple[CarTelemetryData, ...]:
    return decode_telemetry_packet(buffer, header).car_telemetry_data


def decode_lap_data_body(buffer: bytes, header: Optional[PacketHeader] = None) -> Tuple[LapData, ...]:
    return decode_lap_data_packet(buffer, header).lap_data


def build_header(packet_id: int, session_uid: int = 0, session_time: float = 0.0,
                 frame_identifier: int = 0, player_car_index: int = 0) -> PacketHeader:
    return PacketHeader(
        packet_format=PACKET_FORMAT,
        game_year=GAME_YEAR,
        game_major_version=1,
        game_minor_version=0,
        packet_version=1,
        packet_id=packet_id,
        session_uid=session_uid,
        session_time=session_time,
        frame_identifier=frame_identifier,
        overall_frame_identifier=frame_identifier,
        player_car_index=player_car_index,
        secondary_player_car_index=NO_CAR_INDEX,
    )


def encode_header(header: PacketHeader) -> bytes:
    return HEADER.pack(*header)


def encode_car_telemetry(car: CarTelemetryData) -> bytes:
    return CAR_TELEMETRY.pack(
        car.speed, car.throttle, car.steer, car.brake, car.clutch, car.gear,
        car.engine_rpm, car.drs, car.rev_lights_percent, car.rev_lights_bit_value,
        *car.brakes_temperature,
        *car.tyres_surface_temperature,
        *car.tyres_inner_temperature,
        car.engine_temperature,
        *car.tyres_pressure,
        *car.surface_type,
    )


def encode_lap_data(lap: LapData) -> bytes:
    return LAP_DATA.pack(*lap)


def encode_telemetry_packet(packet: PacketCarTelemetryData) -> bytes:
    return b''.join([
        encode_header(packet.header),
        *(encode_car_telemetry(car) for car in packet.car_telemetry_data),
        UINT8.pack(packet.mfd_panel_index),
        UINT8.pack(packet.mfd_panel_index_secondary_player),
        INT8.pack(packet.suggested_gear),
    ])


def encode_lap_data_packet(packet: PacketLapData) -> bytes:
    return b''.join([
        encode_header(packet.header),
        *(encode_lap_data(lap) for lap in packet.lap_data),
        UINT8.pack(packet.time_trial_pb_car_idx),
        UINT8.pack(packet.time_trial_rival_car_idx),
    ])
