import struct
from typing import Tuple, Type

from lap_recorder.exceptions import PacketError, TruncatedRecord


class PacketReader:
    """
    Forward only cursor over a received datagram.

    Every read is bounds checked against the datagram, nothing is read past
    its end. Callers that want to degrade rather than fail check
    `can_read` first.
    """

    def __init__(self, buffer: bytes, offset: int = 0) -> None:
        self._view = memoryview(buffer).toreadonly()
        self.offset = offset

    @property
    def remaining(self) -> int:
        return max(len(self._view) - self.offset, 0)

    def can_read(self, size: int) -> bool:
        return self.remaining >= size

    def unpack(self, layout: struct.Struct, error: Type[PacketError] = TruncatedRecord) -> Tuple:
        if not self.can_read(layout.size):
            raise error(
                f'need {layout.size} bytes at offset {self.offset}, '
                f'only {self.remaining} available'
            )
        values = layout.unpack_from(self._view, self.offset)
        self.offset += layout.size
        return values

    def unpack_or_default(self, layout: struct.Struct, default):
        """Single value read which falls back to `default` past the end."""
        if not self.can_read(layout.size):
            return default
        return self.unpack(layout)[0]
