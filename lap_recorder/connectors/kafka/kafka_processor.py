import json
from io import BytesIO
from typing import Dict, List, Optional, Tuple

from fastavro import schemaless_writer

from lap_recorder.connectors.kafka.schemas import (
    LAP_SCHEMA,
    LIVE_LAP_DATA_SCHEMA,
    LIVE_TELEMETRY_SCHEMA,
    SESSION_SCHEMA,
    TELEMETRY_SCHEMA,
)
from lap_recorder.connectors.processor import Processor
from lap_recorder.session.events import LAP_EVENTS, SESSION_EVENTS, Event, TelemetryStored
from lap_recorder.session.session import utc_now
from lap_recorder.telemetry.packets import PacketCarTelemetryData, PacketLapData

SESSIONS_TOPIC = 'sessions'
LAPS_TOPIC = 'laps'
TELEMETRY_TOPIC = 'telemetry'
LIVE_TELEMETRY_TOPIC = 'live.telemetry'
LIVE_LAP_DATA_TOPIC = 'live.lap_data'

# (topic, key, avro encoded value)
Message = Tuple[str, Optional[str], bytes]


def encode(schema: Dict, record: Dict) -> bytes:
    buffer = BytesIO()
    schemaless_writer(buffer, schema, record)
    return buffer.getvalue()


class KafkaProcessor(Processor):
    """
    Lifecycle events are keyed by session so a consumer sees one session's
    records in order.
    """

    def convert(self, event: Event) -> List[Message]:
        if isinstance(event, SESSION_EVENTS):
            session = event.session
            record = {
                'event': event.name,
                'id': session.id,
                'name': session.name,
                'player_name': session.player_name,
                'track': session.track,
                'car': session.car,
                'session_type': session.session_type,
                'created_at': session.created_at,
                'ended_at': session.ended_at,
                'total_laps': session.total_laps,
                'is_active': session.is_active,
                'metadata': json.dumps(session.metadata),
            }
            return [(SESSIONS_TOPIC, session.id, encode(SESSION_SCHEMA, record))]
        elif isinstance(event, LAP_EVENTS):
            lap = event.lap
            record = {
                'event': event.name,
                'id': lap.id,
                'session_id': lap.session_id,
                'lap_number': lap.lap_number,
                'lap_time_ms': lap.lap_time_ms,
                'sector_1_time_ms': lap.sector_1_time_ms,
                'sector_2_time_ms': lap.sector_2_time_ms,
                'sector_3_time_ms': lap.sector_3_time_ms,
                'is_valid': lap.is_valid,
                'created_at': lap.created_at,
            }
            return [(LAPS_TOPIC, lap.session_id, encode(LAP_SCHEMA, record))]
        elif isinstance(event, TelemetryStored):
            sample = event.sample
            return [(TELEMETRY_TOPIC, sample.session_id, encode(TELEMETRY_SCHEMA, sample._asdict()))]
        return []

    def live_telemetry(self, packet: PacketCarTelemetryData, player_car_index: int) -> Optional[Message]:
        """Reduced view of the player's car for live dashboards."""
        if player_car_index >= len(packet.car_telemetry_data):
            return None

        car = packet.car_telemetry_data[player_car_index]
        record = {
            'timestamp': utc_now(),
            'player_car_index': player_car_index,
            'speed': car.speed,
            'gear': car.gear,
            'engine_rpm': car.engine_rpm,
            'drs': car.drs,
            'engine_temperature': car.engine_temperature,
            'brakes_temperature': list(car.brakes_temperature),
            'tyres_surface_temperature': list(car.tyres_surface_temperature),
            'suggested_gear': packet.suggested_gear,
        }
        return LIVE_TELEMETRY_TOPIC, None, encode(LIVE_TELEMETRY_SCHEMA, record)

    def live_lap_data(self, packet: PacketLapData, player_car_index: int) -> Optional[Message]:
        if player_car_index >= len(packet.lap_data):
            return None

        lap = packet.lap_data[player_car_index]
        record = {
            'timestamp': utc_now(),
            'player_car_index': player_car_index,
            'current_lap_num': lap.current_lap_num,
            'car_position': lap.car_position,
            'current_lap_time_in_ms': lap.current_lap_time_in_ms,
            'driver_status': lap.driver_status,
            'pit_status': lap.pit_status,
        }
        return LIVE_LAP_DATA_TOPIC, None, encode(LIVE_LAP_DATA_SCHEMA, record)
