"""
Reads recorded sessions back out of InfluxDB for the history pages.
"""
from typing import Dict, List, Optional

from influxdb_client import InfluxDBClient

from lap_recorder.config import InfluxDBConfiguration
from lap_recorder.connectors.influxdb.influxdb_processor import (
    LAP_MEASUREMENT,
    SESSION_MEASUREMENT,
    TELEMETRY_MEASUREMENT,
)

SESSIONS_QUERY = """
from(bucket: params.bucket)
  |> range(start: duration(v: params.range))
  |> filter(fn: (r) => r["_measurement"] == "{measurement}")
  |> last()
  |> pivot(rowKey: ["_time", "session_id"], columnKey: ["_field"], valueColumn: "_value")
  |> group()
  |> sort(columns: ["_time"], desc: true)
""".format(measurement=SESSION_MEASUREMENT)

SESSION_QUERY = """
from(bucket: params.bucket)
  |> range(start: duration(v: params.range))
  |> filter(fn: (r) => r["_measurement"] == "{measurement}")
  |> filter(fn: (r) => r["session_id"] == params.session_id)
  |> last()
  |> pivot(rowKey: ["_time", "session_id"], columnKey: ["_field"], valueColumn: "_value")
""".format(measurement=SESSION_MEASUREMENT)

LAPS_QUERY = """
from(bucket: params.bucket)
  |> range(start: duration(v: params.range))
  |> filter(fn: (r) => r["_measurement"] == "{measurement}")
  |> filter(fn: (r) => r["session_id"] == params.session_id)
  |> last()
  |> pivot(rowKey: ["_time", "lap_id"], columnKey: ["_field"], valueColumn: "_value")
  |> group()
  |> sort(columns: ["lap_number"])
""".format(measurement=LAP_MEASUREMENT)

TELEMETRY_QUERY = """
from(bucket: params.bucket)
  |> range(start: duration(v: params.range))
  |> filter(fn: (r) => r["_measurement"] == "{measurement}")
  |> filter(fn: (r) => r["session_id"] == params.session_id)
  |> pivot(rowKey: ["_time", "lap_id"], columnKey: ["_field"], valueColumn: "_value")
  |> group()
  |> sort(columns: ["lap_id", "distance_from_start"])
""".format(measurement=TELEMETRY_MEASUREMENT)

# columns flux adds to every record
FLUX_COLUMNS = ('result', 'table', '_start', '_stop', '_measurement')


class SessionHistory:
    def __init__(self, configuration: InfluxDBConfiguration, look_back: str = '-30d') -> None:
        self.config = configuration
        self.look_back = look_back
        self._connection = None

    @property
    def connection(self) -> InfluxDBClient:
        if not self._connection:
            self._connection = InfluxDBClient(
                url=self.config.host, token=self.config.token, org=self.config.org
            )
        return self._connection

    def _query(self, query: str, **params) -> List[Dict]:
        params.update(bucket=self.config.bucket, range=self.look_back)
        tables = self.connection.query_api().query(query, org=self.config.org, params=params)

        rows = []
        for table in tables:
            for record in table.records:
                rows.append(_row(record.values))
        return rows

    def list_sessions(self) -> List[Dict]:
        return self._query(SESSIONS_QUERY)

    def session_details(self, session_id: str) -> Optional[Dict]:
        sessions = self._query(SESSION_QUERY, session_id=session_id)
        if not sessions:
            return None

        return {
            'session': sessions[0],
            'laps': self._query(LAPS_QUERY, session_id=session_id),
            'telemetry_data': self._query(TELEMETRY_QUERY, session_id=session_id),
        }

    def close(self) -> None:
        if self._connection:
            self._connection.close()
            self._connection = None


def _row(values: Dict) -> Dict:
    row = {key: value for key, value in values.items() if key not in FLUX_COLUMNS}
    created_at = row.pop('_time', None)
    if created_at is not None:
        row['created_at'] = created_at.isoformat()
    return row
