"""
Recorder configuration.

Read from an ini file (~/.lap_recorder/config.ini or $LAP_RECORDER_CONFIG)
with environment variables taking precedence, e.g.

    [recorder]
    port = 20777
    laps_per_session = 1

    [influxdb]
    host = http://localhost:8086
    token = my-token
    org = f1
    bucket = f1

    [kafka]
    bootstrap_servers = localhost:9092

InfluxDB and Kafka are only used when configured.
"""
import os
from configparser import ConfigParser
from pathlib import Path
from typing import Dict, Mapping, NamedTuple, Optional

from lap_recorder.telemetry.constants import DEFAULT_PORT

CONFIG_PATH = Path.home() / '.lap_recorder' / 'config.ini'

ENVIRONMENT_OVERRIDES = {
    'LAP_RECORDER_PORT': ('recorder', 'port'),
    'LAP_RECORDER_HTTP_PORT': ('recorder', 'http_port'),
    'LAP_RECORDER_LAPS_PER_SESSION': ('recorder', 'laps_per_session'),
    'INFLUXDB_HOST': ('influxdb', 'host'),
    'INFLUXDB_TOKEN': ('influxdb', 'token'),
    'INFLUXDB_ORG': ('influxdb', 'org'),
    'INFLUXDB_BUCKET': ('influxdb', 'bucket'),
    'KAFKA_BOOTSTRAP_SERVERS': ('kafka', 'bootstrap_servers'),
    'KAFKA_TOPIC_PREFIX': ('kafka', 'topic_prefix'),
}


class InfluxDBConfiguration(NamedTuple):
    host: str
    token: str
    org: str
    bucket: str
    # batching write api, intervals in milliseconds
    batch_size: int = 500
    flush_interval: int = 1_000
    retry_interval: int = 5_000
    max_retries: int = 5
    max_retry_delay: int = 30_000
    exponential_base: int = 2


class KafkaConfiguration(NamedTuple):
    bootstrap_servers: str
    topic_prefix: str = 'lap_recorder'


class RecorderConfiguration(NamedTuple):
    port: int = DEFAULT_PORT
    host: str = ''
    http_port: int = 5000
    laps_per_session: Optional[int] = 1
    influxdb: Optional[InfluxDBConfiguration] = None
    kafka: Optional[KafkaConfiguration] = None


def load_config(path: Path = None, environ: Mapping[str, str] = None) -> RecorderConfiguration:
    if environ is None:
        environ = os.environ

    if path is None:
        path = Path(environ.get('LAP_RECORDER_CONFIG', CONFIG_PATH))

    parser = ConfigParser()
    parser.read(path)

    sections: Dict[str, Dict[str, str]] = {
        name: dict(parser.items(name)) for name in parser.sections()
    }
    for variable, (section, option) in ENVIRONMENT_OVERRIDES.items():
        if environ.get(variable):
            sections.setdefault(section, {})[option] = environ[variable]

    recorder = sections.get('recorder', {})
    laps_per_session = int(recorder.get('laps_per_session', 1))

    return RecorderConfiguration(
        port=int(recorder.get('port', DEFAULT_PORT)),
        host=recorder.get('host', ''),
        http_port=int(recorder.get('http_port', 5000)),
        laps_per_session=laps_per_session or None,
        influxdb=_influxdb_config(sections.get('influxdb')),
        kafka=_kafka_config(sections.get('kafka')),
    )


def _influxdb_config(section: Optional[Dict[str, str]]) -> Optional[InfluxDBConfiguration]:
    if not section or not section.get('host'):
        return None

    defaults = InfluxDBConfiguration._field_defaults
    return InfluxDBConfiguration(
        host=section['host'],
        token=section.get('token', ''),
        org=section.get('org', ''),
        bucket=section.get('bucket', ''),
        **{
            name: int(section.get(name, default))
            for name, default in defaults.items()
        }
    )


def _kafka_config(section: Optional[Dict[str, str]]) -> Optional[KafkaConfiguration]:
    if not section or not section.get('bootstrap_servers'):
        return None

    return KafkaConfiguration(
        bootstrap_servers=section['bootstrap_servers'],
        topic_prefix=section.get('topic_prefix', KafkaConfiguration._field_defaults['topic_prefix']),
    )
