import json

import pytest
from pathlib import Path

from lap_recorder.config import InfluxDBConfiguration, KafkaConfiguration, RecorderConfiguration
from lap_recorder.recorder import DataRecorder
from lap_recorder.session.controller import SessionController
from lap_recorder.session.tracker import TrackerState
from lap_recorder.telemetry.constants import MAX_CARS
from lap_recorder.telemetry.packets import (
    CarTelemetryData,
    LapData,
    PacketCarTelemetryData,
    PacketHeader,
    PacketLapData,
)

PACKET_DATA_ROOT = Path(__file__).parent / 'example_packets'


class DummyFeed:
    """Stands in for the UDP socket, hands out queued datagrams."""

    def __init__(self, packets=None):
        self.port = 20777
        self.packets = list(packets or [])
        self.closed = False
        self.is_listening = True

    def get_latest(self):
        if self.closed or not self.packets:
            self.closed = True
            raise OSError('feed exhausted')
        return self.packets.pop(0)

    def close(self):
        self.closed = True


def load_packet(name):
    with open(PACKET_DATA_ROOT / name) as file:
        return json.load(file)


def car_from_dict(data):
    return CarTelemetryData(**{
        key: tuple(value) if isinstance(value, list) else value
        for key, value in data.items()
    })


@pytest.fixture
def car_telemetry_dict():
    return load_packet('car_telemetry.json')


@pytest.fixture
def lap_data_dict():
    return load_packet('lap_data.json')


@pytest.fixture
def car_telemetry(car_telemetry_dict):
    return car_from_dict(car_telemetry_dict['car'])


@pytest.fixture
def lap_data(lap_data_dict):
    return LapData(**lap_data_dict['lap'])


@pytest.fixture
def telemetry_packet(car_telemetry_dict, car_telemetry):
    return PacketCarTelemetryData(
        header=PacketHeader(**car_telemetry_dict['header']),
        car_telemetry_data=(car_telemetry,) * MAX_CARS,
        mfd_panel_index=car_telemetry_dict['mfd_panel_index'],
        mfd_panel_index_secondary_player=car_telemetry_dict['mfd_panel_index_secondary_player'],
        suggested_gear=car_telemetry_dict['suggested_gear'],
    )


@pytest.fixture
def lap_data_packet(lap_data_dict, lap_data):
    return PacketLapData(
        header=PacketHeader(**lap_data_dict['header']),
        lap_data=(lap_data,) * MAX_CARS,
        time_trial_pb_car_idx=lap_data_dict['time_trial_pb_car_idx'],
        time_trial_rival_car_idx=lap_data_dict['time_trial_rival_car_idx'],
    )


@pytest.fixture
def header(telemetry_packet):
    return telemetry_packet.header


@pytest.fixture
def tracker_state():
    return TrackerState()


@pytest.fixture
def controller():
    return SessionController()


@pytest.fixture
def data_recorder():
    return DataRecorder(RecorderConfiguration(), feed=DummyFeed())


@pytest.fixture
def influxdb_config():
    return InfluxDBConfiguration(
        host='127.0.0.1',
        token='tokennn',
        org='org',
        bucket='la_bucket'
    )


@pytest.fixture
def kafka_config():
    return KafkaConfiguration(bootstrap_servers='127.0.0.1:9092', topic_prefix='la_topic')
