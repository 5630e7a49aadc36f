"""UI screen modules for GymTrack."""

from .gym_screen import GymScreen

__all__ = ["GymScreen"]
