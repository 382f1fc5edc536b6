"""Fitness RPG backend: workout tracking with EXP, levels and ranks."""

__version__ = "1.0.0"
