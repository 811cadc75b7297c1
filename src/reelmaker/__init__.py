"""Reelmaker: compose still images or a video clip with an audio track into an MP4."""
