"""Encode plans and the ffmpeg executor."""
