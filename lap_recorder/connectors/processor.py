from abc import ABC, abstractmethod
from typing import List

from lap_recorder.session.events import Event


class Processor(ABC):
    """
    Turns lifecycle events into whatever a connector writes.
    """

    @abstractmethod
    def convert(self, event: Event) -> List:
        pass
