"""Progress observers for pipeline runs."""

import logging
from typing import Callable, List, Optional, Protocol

from techdocs.models import ProgressEvent

logger = logging.getLogger(__name__)


class ProgressObserver(Protocol):
    def on_progress(self, event: ProgressEvent) -> None:
        ...


class CallbackObserver:
    """Adapts a plain ``(label, percent)`` function to ProgressObserver."""

    def __init__(self, callback: Callable[[str, float], None]):
        self.callback = callback

    def on_progress(self, event: ProgressEvent) -> None:
        self.callback(event.label, event.percent)


class LoggingObserver:
    def on_progress(self, event: ProgressEvent) -> None:
        logger.info(f"Progress: {event.label} - {event.percent:.0f}%")


class RecordingObserver:
    """Keeps every event; used by the API response and by tests."""

    def __init__(self):
        self.events: List[ProgressEvent] = []

    def on_progress(self, event: ProgressEvent) -> None:
        self.events.append(event)


class ScaledObserver:
    """Maps an inner 0-100 range onto ``offset + percent * scale``."""

    def __init__(self, inner: Optional[ProgressObserver], offset: float, scale: float):
        self.inner = inner
        self.offset = offset
        self.scale = scale

    def on_progress(self, event: ProgressEvent) -> None:
        if self.inner is None:
            return
        percent = min(100.0, self.offset + event.percent * self.scale)
        self.inner.on_progress(ProgressEvent(label=event.label, percent=percent))


class FanOutObserver:
    def __init__(self, *observers: Optional[ProgressObserver]):
        self.observers = [o for o in observers if o is not None]

    def on_progress(self, event: ProgressEvent) -> None:
        for observer in self.observers:
            observer.on_progress(event)
