import pytest

from lap_recorder.exceptions import MalformedPacket, TruncatedRecord
from lap_recorder.telemetry.codec import (
    CAR_TELEMETRY,
    HEADER,
    LAP_DATA,
    decode_car_telemetry,
    decode_header,
    decode_lap_data,
    decode_lap_data_body,
    decode_lap_data_packet,
    decode_telemetry_body,
    decode_telemetry_packet,
    encode_car_telemetry,
    encode_header,
    encode_lap_data,
    encode_lap_data_packet,
    encode_telemetry_packet,
)
from lap_recorder.telemetry.constants import (
    CAR_TELEMETRY_SIZE,
    HEADER_SIZE,
    LAP_DATA_PACKET_SIZE,
    LAP_DATA_SIZE,
    MAX_CARS,
    NO_CAR_INDEX,
    TELEMETRY_PACKET_SIZE,
    PacketType,
)


def test_record_layout_sizes():
    assert HEADER.size == HEADER_SIZE == 29
    assert CAR_TELEMETRY.size == CAR_TELEMETRY_SIZE == 60
    assert LAP_DATA.size == LAP_DATA_SIZE == 57


def test_encoded_sizes(telemetry_packet, lap_data_packet):
    assert len(encode_header(telemetry_packet.header)) == HEADER_SIZE
    assert len(encode_car_telemetry(telemetry_packet.car_telemetry_data[0])) == CAR_TELEMETRY_SIZE
    assert len(encode_lap_data(lap_data_packet.lap_data[0])) == LAP_DATA_SIZE
    assert len(encode_telemetry_packet(telemetry_packet)) == TELEMETRY_PACKET_SIZE == 1352
    assert len(encode_lap_data_packet(lap_data_packet)) == LAP_DATA_PACKET_SIZE == 1285


def test_decode_header(telemetry_packet):
    header = decode_header(encode_telemetry_packet(telemetry_packet))

    assert header == telemetry_packet.header
    assert header.packet_format == 2025
    assert header.packet_type == PacketType.CAR_TELEMETRY
    assert header.session_uid == 17302876543210987654
    assert header.session_time == 123.5
    assert header.has_player_car


def test_decode_header_ignores_trailing_bytes(telemetry_packet):
    data = encode_header(telemetry_packet.header) + b'\x01\x02\x03'
    assert decode_header(data) == telemetry_packet.header


def test_unknown_packet_id_is_kept_raw(telemetry_packet):
    header = telemetry_packet.header._replace(packet_id=99)
    assert decode_header(encode_header(header)).packet_type == 99


@pytest.mark.parametrize('size', [0, 1, 20, HEADER_SIZE - 1])
def test_short_header_is_malformed(size):
    with pytest.raises(MalformedPacket):
        decode_header(bytes(size))


def test_decode_telemetry_packet(telemetry_packet):
    packet = decode_telemetry_packet(encode_telemetry_packet(telemetry_packet))

    assert packet == telemetry_packet
    assert len(packet.car_telemetry_data) == MAX_CARS
    assert packet.suggested_gear == -1

    car = packet.car_telemetry_data[0]
    assert car.speed == 287
    assert car.steer == -0.25
    assert car.gear == 7
    # rear left, rear right, front left, front right
    assert car.brakes_temperature == (410, 415, 530, 535)
    assert car.tyres_pressure == (21.5, 21.25, 23.0, 23.5)
    assert car.surface_type == (0, 0, 1, 0)


def test_decode_lap_data_packet(lap_data_packet):
    packet = decode_lap_data_packet(encode_lap_data_packet(lap_data_packet))

    assert packet == lap_data_packet
    assert len(packet.lap_data) == MAX_CARS
    assert packet.time_trial_pb_car_idx == 3
    assert packet.time_trial_rival_car_idx == 4

    lap = packet.lap_data[0]
    assert lap.lap_distance == 1234.5
    assert lap.current_lap_num == 1
    assert lap.driver_status == 1
    assert lap.sector1_time_in_ms == 28500
    assert lap.speed_trap_fastest_speed == 312.5


def test_sector_time_adds_minutes(lap_data):
    lap = lap_data._replace(sector2_time_minutes_part=1, sector2_time_ms_part=2500)
    assert lap.sector2_time_in_ms == 62500


def test_each_car_slot_is_decoded_separately(telemetry_packet, car_telemetry):
    cars = tuple(car_telemetry._replace(speed=index) for index in range(MAX_CARS))
    packet = decode_telemetry_packet(encode_telemetry_packet(telemetry_packet._replace(car_telemetry_data=cars)))

    assert [car.speed for car in packet.car_telemetry_data] == list(range(MAX_CARS))


def test_missing_telemetry_trailer_defaults(telemetry_packet):
    data = encode_telemetry_packet(telemetry_packet)[:HEADER_SIZE + MAX_CARS * CAR_TELEMETRY_SIZE]
    packet = decode_telemetry_packet(data)

    assert len(packet.car_telemetry_data) == MAX_CARS
    assert packet.mfd_panel_index == 0
    assert packet.mfd_panel_index_secondary_player == 0
    assert packet.suggested_gear == 0


def test_missing_lap_data_trailer_defaults(lap_data_packet):
    data = encode_lap_data_packet(lap_data_packet)[:HEADER_SIZE + MAX_CARS * LAP_DATA_SIZE + 1]
    packet = decode_lap_data_packet(data)

    assert len(packet.lap_data) == MAX_CARS
    assert packet.time_trial_pb_car_idx == 3
    assert packet.time_trial_rival_car_idx == NO_CAR_INDEX


def test_ten_car_datagram_decodes_ten_cars(telemetry_packet):
    data = encode_telemetry_packet(telemetry_packet)[:HEADER_SIZE + 10 * CAR_TELEMETRY_SIZE]
    cars = decode_telemetry_body(data)

    assert len(cars) == 10
    assert cars[9] == telemetry_packet.car_telemetry_data[9]


@pytest.mark.parametrize('cars', range(MAX_CARS))
def test_truncated_telemetry_degrades(telemetry_packet, cars):
    # a partial record at the end is dropped, never half decoded
    data = encode_telemetry_packet(telemetry_packet)[:HEADER_SIZE + cars * CAR_TELEMETRY_SIZE + 7]
    assert len(decode_telemetry_body(data)) == cars


@pytest.mark.parametrize('cars', range(MAX_CARS))
def test_truncated_lap_data_degrades(lap_data_packet, cars):
    data = encode_lap_data_packet(lap_data_packet)[:HEADER_SIZE + cars * LAP_DATA_SIZE + 11]
    assert len(decode_lap_data_body(data)) == cars


def test_header_only_packet_has_no_cars(telemetry_packet):
    data = encode_header(telemetry_packet.header)
    packet = decode_telemetry_packet(data)

    assert packet.car_telemetry_data == ()
    assert packet.suggested_gear == 0


def test_single_record_decode(telemetry_packet, lap_data_packet):
    car = telemetry_packet.car_telemetry_data[0]
    lap = lap_data_packet.lap_data[0]

    assert decode_car_telemetry(encode_car_telemetry(car)) == car
    assert decode_lap_data(b'\x00' * 5 + encode_lap_data(lap), offset=5) == lap


def test_single_record_decode_raises_when_short(telemetry_packet, lap_data_packet):
    with pytest.raises(TruncatedRecord):
        decode_car_telemetry(encode_car_telemetry(telemetry_packet.car_telemetry_data[0])[:-1])

    with pytest.raises(TruncatedRecord):
        decode_lap_data(encode_lap_data(lap_data_packet.lap_data[0]), offset=1)


def test_reencoding_gives_the_same_bytes(telemetry_packet, lap_data_packet):
    telemetry = encode_telemetry_packet(telemetry_packet)
    lap_data = encode_lap_data_packet(lap_data_packet)

    assert encode_telemetry_packet(decode_telemetry_packet(telemetry)) == telemetry
    assert encode_lap_data_packet(decode_lap_data_packet(lap_data)) == lap_data
