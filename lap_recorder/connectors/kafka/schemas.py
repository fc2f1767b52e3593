"""
Avro schemas for everything published to Kafka.
"""
from fastavro import parse_schema

from lap_recorder.session.session import TelemetrySample

NAMESPACE = 'lap_recorder'

TIMESTAMP = {'type': 'long', 'logicalType': 'timestamp-millis'}

AVRO_TYPES = {
    str: 'string',
    int: 'int',
    float: 'float',
}

SESSION_SCHEMA = parse_schema({
    'type': 'record',
    'name': 'Session',
    'namespace': NAMESPACE,
    'fields': [
        {'name': 'event', 'type': 'string'},
        {'name': 'id', 'type': 'string'},
        {'name': 'name', 'type': 'string'},
        {'name': 'player_name', 'type': 'string'},
        {'name': 'track', 'type': ['null', 'string'], 'default': None},
        {'name': 'car', 'type': ['null', 'string'], 'default': None},
        {'name': 'session_type', 'type': 'string'},
        {'name': 'created_at', 'type': TIMESTAMP},
        {'name': 'ended_at', 'type': ['null', TIMESTAMP], 'default': None},
        {'name': 'total_laps', 'type': 'int'},
        {'name': 'is_active', 'type': 'boolean'},
        # free form, json encoded
        {'name': 'metadata', 'type': 'string'},
    ],
})

LAP_SCHEMA = parse_schema({
    'type': 'record',
    'name': 'Lap',
    'namespace': NAMESPACE,
    'fields': [
        {'name': 'event', 'type': 'string'},
        {'name': 'id', 'type': 'string'},
        {'name': 'session_id', 'type': 'string'},
        {'name': 'lap_number', 'type': 'int'},
        {'name': 'lap_time_ms', 'type': ['null', 'long'], 'default': None},
        {'name': 'sector_1_time_ms', 'type': ['null', 'long'], 'default': None},
        {'name': 'sector_2_time_ms', 'type': ['null', 'long'], 'default': None},
        {'name': 'sector_3_time_ms', 'type': ['null', 'long'], 'default': None},
        {'name': 'is_valid', 'type': 'boolean'},
        {'name': 'created_at', 'type': TIMESTAMP},
    ],
})

TELEMETRY_SCHEMA = parse_schema({
    'type': 'record',
    'name': 'TelemetrySample',
    'namespace': NAMESPACE,
    'fields': [
        {'name': name, 'type': AVRO_TYPES[python_type]}
        for name, python_type in TelemetrySample.__annotations__.items()
    ],
})

LIVE_TELEMETRY_SCHEMA = parse_schema({
    'type': 'record',
    'name': 'LiveTelemetry',
    'namespace': NAMESPACE,
    'fields': [
        {'name': 'timestamp', 'type': TIMESTAMP},
        {'name': 'player_car_index', 'type': 'int'},
        {'name': 'speed', 'type': 'int'},
        {'name': 'gear', 'type': 'int'},
        {'name': 'engine_rpm', 'type': 'int'},
        {'name': 'drs', 'type': 'int'},
        {'name': 'engine_temperature', 'type': 'int'},
        {'name': 'brakes_temperature', 'type': {'type': 'array', 'items': 'int'}},
        {'name': 'tyres_surface_temperature', 'type': {'type': 'array', 'items': 'int'}},
        {'name': 'suggested_gear', 'type': 'int'},
    ],
})

LIVE_LAP_DATA_SCHEMA = parse_schema({
    'type': 'record',
    'name': 'LiveLapData',
    'namespace': NAMESPACE,
    'fields': [
        {'name': 'timestamp', 'type': TIMESTAMP},
        {'name': 'player_car_index', 'type': 'int'},
        {'name': 'current_lap_num', 'type': 'int'},
        {'name': 'car_position', 'type': 'int'},
        {'name': 'current_lap_time_in_ms', 'type': 'long'},
        {'name': 'driver_status', 'type': 'int'},
        {'name': 'pit_status', 'type': 'int'},
    ],
})
