"""Podium: trophy evaluation and awarding engine."""

__version__ = "0.1.0"
