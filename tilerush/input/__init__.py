"""Input Module - Gesture resolution at the UI boundary."""

from .interpreter import MoveInterpreter

__all__ = ["MoveInterpreter"]
