from __future__ import annotations

from demucs_cli.core.file_utils import collect_audio_files, filter_valid_audio_files, find_audio_files, is_audio_file


def test_is_audio_file_case_insensitive():
    assert is_audio_file("a/B.MP3")
    assert is_audio_file("x.aif")
    assert not is_audio_file("notes.txt")


def test_find_audio_files_recursive(tmp_path):
    (tmp_path / "sub").mkdir()
    (tmp_path / "a.wav").write_bytes(b"x")
    (tmp_path / "sub" / "b.FLAC").write_bytes(b"x")
    (tmp_path / "sub" / "c.txt").write_text("x")
    assert find_audio_files(tmp_path) == sorted([tmp_path / "a.wav", tmp_path / "sub" / "b.FLAC"])
    assert find_audio_files(tmp_path, recursive=False) == [tmp_path / "a.wav"]


def test_find_audio_files_missing_dir(tmp_path):
    assert find_audio_files(tmp_path / "nope") == []


def test_filter_valid(tmp_path):
    song = tmp_path / "a.mp3"
    song.write_bytes(b"x")
    assert filter_valid_audio_files([song, tmp_path / "missing.mp3", tmp_path]) == [str(song)]


def test_collect_mixed_inputs(tmp_path):
    album = tmp_path / "album"
    album.mkdir()
    (album / "1.mp3").write_bytes(b"x")
    (album / "2.mp3").write_bytes(b"x")
    single = tmp_path / "single.wav"
    single.write_bytes(b"x")

    files = collect_audio_files([str(single), str(album), str(tmp_path / "ghost")])
    assert files == [str(single), str(album / "1.mp3"), str(album / "2.mp3")]
