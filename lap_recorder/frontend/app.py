from dataclasses import asdict
from datetime import datetime, timezone
from typing import Dict

from flask import Flask, jsonify, request

from lap_recorder.exceptions import NoActiveSession, SessionAlreadyActive
from lap_recorder.frontend.connectors.influxdb import SessionHistory
from lap_recorder.recorder import DataRecorder
from lap_recorder.session.session import Session


def convert_lap_time(lap_time: int) -> str:
    seconds, milliseconds = divmod(lap_time, 1000)
    minutes, seconds = divmod(seconds, 60)
    return f'{int(minutes):02d}:{int(seconds):02d}.{int(milliseconds):03d}'


def session_to_dict(session: Session) -> Dict:
    data = asdict(session)
    for key, value in data.items():
        if isinstance(value, datetime):
            data[key] = value.isoformat()
    return data


def failure(message: str, error: str, status: int):
    return jsonify({'message': message, 'success': False, 'error': error}), status


def create_app(recorder: DataRecorder, history: SessionHistory = None) -> Flask:
    app = Flask(__name__)

    if history is None and recorder.configuration.influxdb:
        history = SessionHistory(recorder.configuration.influxdb)

    @app.errorhandler(SessionAlreadyActive)
    def session_already_active(error):
        return failure('Failed to start recording session', str(error), 409)

    @app.errorhandler(NoActiveSession)
    def no_active_session(error):
        return failure('No active session to end', str(error), 400)

    @app.route('/health')
    def health():
        return jsonify({
            'status': 'OK!',
            'timestamp': datetime.now(timezone.utc).isoformat(),
        })

    @app.route('/api/telemetry/status')
    def status():
        return jsonify({
            'udp': {
                'port': recorder.feed.port,
                'is_listening': recorder.feed.is_listening,
            },
            'player_car_index': recorder.controller.player_car_index,
            'packets_received': recorder.packets_received,
            'packets_dropped': recorder.packets_dropped,
            'session': recorder.status()._asdict(),
            'database': {
                'is_connected': bool(recorder.influxdb and recorder.influxdb.is_ready()),
            },
        })

    @app.route('/api/session/start', methods=['POST'])
    def start_session():
        body = request.get_json(silent=True) or {}
        session_name = body.get('sessionName')

        if not session_name:
            return failure('Session name is required', 'Missing sessionName in request body', 400)

        session = recorder.start_session(
            session_name,
            body.get('playerName', ''),
            track=body.get('track'),
            car=body.get('car'),
            session_type=body.get('sessionType'),
            metadata=body.get('metadata'),
        )
        return jsonify({
            'message': f'Recording session "{session.name}" started',
            'success': True,
            'session': session_to_dict(session),
        })

    @app.route('/api/session/end', methods=['POST'])
    def end_session():
        session = recorder.end_session()
        return jsonify({
            'message': f'Recording session "{session.name}" ended with {session.total_laps} laps',
            'success': True,
            'session': session_to_dict(session),
        })

    @app.route('/api/sessions')
    def sessions():
        if not history:
            return failure('Failed to fetch sessions', 'No session history configured', 503)
        return jsonify({'sessions': history.list_sessions(), 'success': True})

    @app.route('/api/sessions/<session_id>')
    def session_details(session_id: str):
        if not history:
            return failure('Failed to fetch session details', 'No session history configured', 503)

        details = history.session_details(session_id)
        if not details:
            return failure('Session not found', f'Session with ID {session_id} not found', 404)

        for lap in details['laps']:
            if lap.get('lap_time_ms'):
                lap['lap_time'] = convert_lap_time(lap['lap_time_ms'])

        return jsonify({**details, 'success': True})

    return app
