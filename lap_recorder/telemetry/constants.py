"""
Constants for the F1 25 UDP telemetry format.

More info is available here:
https://forums.ea.com/discussions/f1-25-general-discussion-en/f1-25-udp-specification/
"""
from enum import IntEnum

DEFAULT_PORT = 20777

# Every per-car array in the game's packets has this many slots
MAX_CARS = 22

# m_playerCarIndex / m_secondaryPlayerCarIndex when there is no such car
NO_CAR_INDEX = 255

HEADER_SIZE = 29
CAR_TELEMETRY_SIZE = 60
LAP_DATA_SIZE = 57

# mfd panel, secondary mfd panel, suggested gear
TELEMETRY_TRAILER_SIZE = 3
# time trial personal best car index, rival car index
LAP_DATA_TRAILER_SIZE = 2

TELEMETRY_PACKET_SIZE = HEADER_SIZE + MAX_CARS * CAR_TELEMETRY_SIZE + TELEMETRY_TRAILER_SIZE
LAP_DATA_PACKET_SIZE = HEADER_SIZE + MAX_CARS * LAP_DATA_SIZE + LAP_DATA_TRAILER_SIZE

PACKET_FORMAT = 2025
GAME_YEAR = 25


class PacketType(IntEnum):
    MOTION = 0
    SESSION = 1
    LAP_DATA = 2
    EVENT = 3
    PARTICIPANTS = 4
    CAR_SETUPS = 5
    CAR_TELEMETRY = 6
    CAR_STATUS = 7
    FINAL_CLASSIFICATION = 8
    LOBBY_INFO = 9
    CAR_DAMAGE = 10
    SESSION_HISTORY = 11
    TYRE_SETS = 12
    MOTION_EX = 13
    TIME_TRIAL = 14
    LAP_POSITIONS = 15


class DriverStatus(IntEnum):
    IN_GARAGE = 0
    FLYING_LAP = 1
    IN_LAP = 2
    OUT_LAP = 3
    ON_TRACK = 4


DRIVER_STATUS = {
    0: 'in_garage',
    1: 'flying_lap',
    2: 'in_lap',
    3: 'out_lap',
    4: 'on_track',
}
