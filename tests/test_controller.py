from lap_recorder.session.controller import SessionController
from lap_recorder.telemetry.constants import NO_CAR_INDEX


def flying(lap_data_packet, lap_num=1, distance=0.0, last_lap_time=0, player_car_index=0):
    lap = lap_data_packet.lap_data[0]._replace(
        current_lap_num=lap_num,
        lap_distance=distance,
        last_lap_time_in_ms=last_lap_time,
        sector1_time_ms_part=0,
    )
    return lap_data_packet._replace(
        header=lap_data_packet.header._replace(player_car_index=player_car_index),
        lap_data=(lap,) * len(lap_data_packet.lap_data),
    )


def test_start_and_end_session(controller):
    received = []
    controller.subscribe(received.append)

    session = controller.start_session('Monza', 'Chris', session_type='practice')
    assert session.session_type == 'practice'
    assert controller.get_status().current_session_name == 'Monza'

    ended = controller.end_session()
    assert ended.id == session.id
    assert not ended.is_active
    assert [event.name for event in received] == ['session_started', 'session_ended']


def test_needs_both_packet_types(controller, telemetry_packet, lap_data_packet):
    controller.start_session('Monza', 'Chris')

    assert controller.on_telemetry_packet(telemetry_packet) == []
    assert controller.get_status().current_lap_number is None

    events = controller.on_lap_data_packet(flying(lap_data_packet))
    assert [event.name for event in events] == ['lap_started', 'telemetry_stored']


def test_lap_data_first(controller, telemetry_packet, lap_data_packet):
    controller.start_session('Monza', 'Chris')

    assert controller.on_lap_data_packet(flying(lap_data_packet)) == []

    events = controller.on_telemetry_packet(telemetry_packet)
    assert [event.name for event in events] == ['lap_started', 'telemetry_stored']


def test_records_a_lap(controller, telemetry_packet, lap_data_packet):
    received = []
    controller.subscribe(received.append)
    controller.start_session('Monza', 'Chris')

    controller.on_telemetry_packet(telemetry_packet)
    for distance in range(0, 50, 5):
        controller.on_lap_data_packet(flying(lap_data_packet, distance=float(distance)))
    controller.on_lap_data_packet(flying(lap_data_packet, lap_num=2, last_lap_time=88000))

    names = [event.name for event in received]
    assert names[:2] == ['session_started', 'lap_started']
    assert names.count('telemetry_stored') == 10
    assert names[-2:] == ['lap_completed', 'session_ended']
    assert received[-1].session.total_laps == 1
    assert not controller.get_status().has_active_session


def test_pairing_survives_sessions(controller, telemetry_packet, lap_data_packet):
    controller.start_session('Monza', 'Chris')
    controller.on_telemetry_packet(telemetry_packet)
    controller.on_lap_data_packet(flying(lap_data_packet))
    controller.end_session()

    controller.start_session('Spa', 'Chris')
    events = controller.on_telemetry_packet(telemetry_packet)

    assert [event.name for event in events] == ['lap_started', 'telemetry_stored']


def test_player_index_follows_header(controller, telemetry_packet, lap_data_packet, car_telemetry):
    cars = tuple(car_telemetry._replace(speed=100 + index) for index in range(len(telemetry_packet.car_telemetry_data)))
    packet = telemetry_packet._replace(
        header=telemetry_packet.header._replace(player_car_index=5),
        car_telemetry_data=cars,
    )
    controller.start_session('Monza', 'Chris')

    controller.on_telemetry_packet(packet)
    events = controller.on_lap_data_packet(flying(lap_data_packet, player_car_index=5))

    assert controller.player_car_index == 5
    assert events[-1].sample.speed == 105


def test_no_player_car(controller, telemetry_packet, lap_data_packet):
    controller.start_session('Monza', 'Chris')
    spectating = telemetry_packet._replace(
        header=telemetry_packet.header._replace(player_car_index=NO_CAR_INDEX)
    )

    assert controller.on_telemetry_packet(spectating) == []
    assert controller.on_lap_data_packet(flying(lap_data_packet, player_car_index=NO_CAR_INDEX)) == []
    assert controller.latest_telemetry is None
    assert controller.latest_lap is None


def test_player_car_missing_from_short_packet(controller, telemetry_packet, lap_data_packet):
    controller.start_session('Monza', 'Chris')
    short = telemetry_packet._replace(
        header=telemetry_packet.header._replace(player_car_index=12),
        car_telemetry_data=telemetry_packet.car_telemetry_data[:10],
    )

    assert controller.on_telemetry_packet(short) == []
    assert controller.latest_telemetry is None


def test_subscribers_called_in_order(controller):
    calls = []
    controller.subscribe(lambda event: calls.append(('first', event.name)))
    controller.subscribe(lambda event: calls.append(('second', event.name)))

    controller.start_session('Monza', 'Chris')

    assert calls == [('first', 'session_started'), ('second', 'session_started')]


def test_failing_subscriber_does_not_stop_others(controller, caplog):
    received = []

    def broken(event):
        raise RuntimeError('database went away')

    controller.subscribe(broken)
    controller.subscribe(received.append)

    session = controller.start_session('Monza', 'Chris')

    assert session.name == 'Monza'
    assert [event.name for event in received] == ['session_started']
    assert 'failed handling session_started' in caplog.text


def test_auto_end_disabled():
    controller = SessionController(laps_per_session=None)
    controller.start_session('Monza', 'Chris')

    assert controller.state.laps_per_session is None


def test_recording_a_single_lap(controller, telemetry_packet, lap_data_packet, car_telemetry):
    controller.start_session('S1', 'Alice')
    telemetry = telemetry_packet._replace(
        car_telemetry_data=(car_telemetry._replace(speed=200),) * len(telemetry_packet.car_telemetry_data)
    )

    assert controller.on_lap_data_packet(flying(lap_data_packet, distance=0.0)) == []
    events = controller.on_telemetry_packet(telemetry)
    assert [event.name for event in events] == ['lap_started', 'telemetry_stored']
    assert events[0].lap.lap_number == 1
    assert events[1].sample.distance_from_start == 0
    assert events[1].sample.speed == 200

    events = controller.on_lap_data_packet(flying(lap_data_packet, distance=1.4))
    events += controller.on_telemetry_packet(telemetry)
    assert [event.name for event in events] == ['telemetry_stored']
    assert events[0].sample.distance_from_start == 1

    events = controller.on_lap_data_packet(flying(lap_data_packet, lap_num=2, last_lap_time=85000))
    assert [event.name for event in events] == ['lap_completed', 'session_ended']
    assert events[0].lap.lap_number == 1
    assert events[0].lap.lap_time_ms == 85000
    assert events[0].lap.is_valid
    assert not controller.get_status().has_active_session
