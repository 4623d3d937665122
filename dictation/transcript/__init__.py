"""Transcript handling: committed (append-only) vs interim dictation text."""
from .accumulator import AccumulatorState, CommitResult, TranscriptAccumulator

__all__ = ["AccumulatorState", "CommitResult", "TranscriptAccumulator"]
