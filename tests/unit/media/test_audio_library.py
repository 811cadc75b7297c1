from src.reelmaker.media.audio_library import AudioLibrary


def test_lookup_accepts_bare_existing_names(tmp_path) -> None:
    (tmp_path / "calm.mp3").write_bytes(b"ID3")
    library = AudioLibrary(root=tmp_path)

    assert library.lookup("calm.mp3") == tmp_path / "calm.mp3"
    assert library.lookup("missing.mp3") is None


def test_lookup_rejects_path_traversal(tmp_path) -> None:
    root = tmp_path / "music"
    root.mkdir()
    (tmp_path / "secret.mp3").write_bytes(b"ID3")
    library = AudioLibrary(root=root)

    assert library.lookup("../secret.mp3") is None
    assert library.lookup("..") is None
    assert library.lookup("") is None
    assert library.lookup(str(tmp_path / "secret.mp3")) is None


def test_list_tracks_filters_and_sorts(tmp_path) -> None:
    (tmp_path / "b.wav").write_bytes(b"RIFF1234")
    (tmp_path / "a.MP3").write_bytes(b"ID3")
    (tmp_path / "notes.txt").write_text("not audio")
    (tmp_path / "nested").mkdir()

    tracks = AudioLibrary(root=tmp_path).list_tracks()

    assert [track.file_name for track in tracks] == ["a.MP3", "b.wav"]
    assert tracks[1].size_bytes == 8


def test_list_tracks_on_missing_root_is_empty(tmp_path) -> None:
    assert AudioLibrary(root=tmp_path / "absent").list_tracks() == []
