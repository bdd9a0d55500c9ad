from abc import ABC, abstractmethod

from quakekml.models import Event

class EventSource(ABC):
    name: str

    @abstractmethod
    def fetch_events(self) -> list[Event]:
        """
        Return the events currently published by the source, in feed order.
        Raise FetchError when the source cannot be read.
        """
        raise NotImplementedError
