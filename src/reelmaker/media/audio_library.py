"""Built-in audio tracks shipped with the service."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

AUDIO_EXTENSIONS = frozenset({".mp3", ".m4a", ".aac", ".wav", ".ogg", ".flac"})


@dataclass(slots=True)
class AudioTrack:
    file_name: str
    path: Path
    size_bytes: int


@dataclass(slots=True)
class AudioLibrary:
    """Flat directory of named tracks, addressed by exact file name."""

    root: Path

    def lookup(self, file_name: str) -> Path | None:
        # Only bare names are accepted: no separators, no parent references.
        if not file_name or Path(file_name).name != file_name or file_name in {".", ".."}:
            return None
        candidate = self.root / file_name
        if not candidate.is_file():
            return None
        return candidate

    def list_tracks(self) -> list[AudioTrack]:
        if not self.root.is_dir():
            return []
        tracks = [
            AudioTrack(file_name=path.name, path=path, size_bytes=path.stat().st_size)
            for path in self.root.iterdir()
            if path.is_file() and path.suffix.lower() in AUDIO_EXTENSIONS
        ]
        return sorted(tracks, key=lambda track: track.file_name)
