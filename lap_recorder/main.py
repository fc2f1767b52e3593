import click

from lap_recorder.config import load_config
from lap_recorder.frontend.app import create_app
from lap_recorder.recorder import DataRecorder
from lap_recorder import simulator


@click.group()
def cli():
    """Record F1 25 laps from the game's UDP telemetry."""


@cli.command()
@click.option('--port', default=None, type=int, help='UDP port to listen on')
@click.option('--host', default=None, help='address to listen on')
@click.option('--http-port', default=None, type=int, help='port for the HTTP api')
@click.option('--laps-per-session', default=None, type=int,
              help='end a session after this many laps, 0 to keep recording')
@click.option('--session', 'session_name', default=None, help='start recording a session straight away')
@click.option('--player', 'player_name', default='', help='driver name for --session')
def record(port: int, host: str, http_port: int, laps_per_session: int, session_name: str, player_name: str):
    config = load_config()
    overrides = {
        'port': port,
        'host': host,
        'http_port': http_port,
        'laps_per_session': laps_per_session,
    }
    config = config._replace(**{name: value for name, value in overrides.items() if value is not None})
    if config.laps_per_session == 0:
        config = config._replace(laps_per_session=None)

    recorder = DataRecorder(config)
    if session_name:
        recorder.start_session(session_name, player_name)

    recorder.start()
    try:
        create_app(recorder).run(host='0.0.0.0', port=config.http_port)
    finally:
        recorder.stop()


@cli.command()
@click.option('--port', default=20777, help='port the recorder listens on')
@click.option('--host', default='127.0.0.1', help='address of the recorder')
@click.option('--laps', default=1, help='number of laps to send')
@click.option('--track-length', default=5000, help='lap length in metres')
@click.option('--step', default=5.0, help='metres travelled between packets')
def simulate(port: int, host: str, laps: int, track_length: int, step: float):
    for lap_number in range(1, laps + 1):
        packets = simulator.synthetic_lap(lap_number=lap_number, track_length=track_length, step=step)
        sent = simulator.send(packets, host=host, port=port)
        click.echo(f'Lap {lap_number}: sent {sent} packets to {host}:{port}')


if __name__ == '__main__':
    cli()
