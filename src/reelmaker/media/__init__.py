"""Scratch storage, duration probing and audio source resolution."""
