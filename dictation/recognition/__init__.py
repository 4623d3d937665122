"""Speech recognition: injected engine capability and restart scheduling."""
from .base import ErrorKind, RecognitionEvent, RecognitionResult, SpeechEngine, classify_error
from .remote import RemoteSpeechEngine
from .scheduler import AsyncioScheduler, Scheduler, TimerHandle

__all__ = [
    "ErrorKind",
    "RecognitionEvent",
    "RecognitionResult",
    "SpeechEngine",
    "classify_error",
    "RemoteSpeechEngine",
    "AsyncioScheduler",
    "Scheduler",
    "TimerHandle",
]
