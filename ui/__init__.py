"""Kivy widgets and screens for GymTrack."""
