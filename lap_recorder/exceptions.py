class LapRecorderError(Exception):
    """Base class for everything raised by lap_recorder."""


class PacketError(LapRecorderError):
    pass


class MalformedPacket(PacketError):
    """Buffer is too short to hold even the packet header."""


class TruncatedRecord(PacketError):
    """Buffer region is shorter than one fixed size car record."""


class SessionError(LapRecorderError):
    pass


class SessionAlreadyActive(SessionError):
    def __init__(self, session_name: str):
        self.session_name = session_name
        super().__init__(
            f'Session "{session_name}" is already active, end the current session first.'
        )


class NoActiveSession(SessionError):
    def __init__(self):
        super().__init__('No active session to end.')
