from __future__ import annotations

from typing import List

from demucs_cli import cli
from demucs_cli.core.config import ProcessOptions
from demucs_cli.separation.batch import BatchProcessResult
from demucs_cli.separation.checker import EnvironmentStatus
from demucs_cli.separation.demucs_sep import FileProcessResult

GOOD = EnvironmentStatus(env_name="demucs", manager_available=True, env_exists=True,
                         tool_available=True, overall_success=True)
BAD = EnvironmentStatus(env_name="demucs", manager_available=True)


def _status(status):
    async def fake(env_name, runner=None):
        return status
    return fake


def test_check_only(monkeypatch, capsys):
    monkeypatch.setattr(cli, "check_environment", _status(GOOD))
    assert cli.main(["--check"]) == 0
    assert "Environment check passed" in capsys.readouterr().out

    monkeypatch.setattr(cli, "check_environment", _status(BAD))
    assert cli.main(["--check"]) == 1
    assert "does not exist" in capsys.readouterr().out


def test_dry_run_prints_commands_without_check(monkeypatch, tmp_path, capsys):
    async def must_not_check(*_args, **_kwargs):
        raise AssertionError("environment check during dry run")

    monkeypatch.setattr(cli, "check_environment", must_not_check)
    song = tmp_path / "song.mp3"
    song.write_bytes(b"x")

    assert cli.main([str(song), "--dry-run", "-o", "out", "--format", "mp3", "--mp3-bitrate", "320k"]) == 0
    out = capsys.readouterr().out
    assert "[DRY RUN] conda run -n demucs --no-capture-output demucs" in out
    assert "--mp3-bitrate 320 " in out
    assert "-n htdemucs" in out


def test_failed_check_blocks_batch(monkeypatch, tmp_path):
    monkeypatch.setattr(cli, "check_environment", _status(BAD))

    async def must_not_run(*_args, **_kwargs):
        raise AssertionError("batch ran")

    monkeypatch.setattr(cli, "process_audio_files_with_progress", must_not_run)
    song = tmp_path / "song.mp3"
    song.write_bytes(b"x")
    assert cli.main([str(song)]) == 1


def test_no_inputs(monkeypatch):
    monkeypatch.setattr(cli, "check_environment", _status(GOOD))
    assert cli.main([]) == 1


def test_batch_exit_code_and_options(monkeypatch, tmp_path):
    monkeypatch.setattr(cli, "check_environment", _status(GOOD))
    seen: List[ProcessOptions] = []

    async def fake_batch(files, options, runner=None, on_result=None):
        seen.append(options)
        results = [FileProcessResult(file=f, success=i == 0) for i, f in enumerate(files)]
        for i, r in enumerate(results, 1):
            on_result(i, len(results), r)
        return BatchProcessResult(success=all(r.success for r in results), results=results)

    monkeypatch.setattr(cli, "process_audio_files_with_progress", fake_batch)
    (tmp_path / "a.wav").write_bytes(b"x")
    (tmp_path / "b.wav").write_bytes(b"x")

    assert cli.main([str(tmp_path), "-j", "2", "-d", "cuda"]) == 1
    assert seen[0].concurrency == 2
    assert seen[0].device == "cuda"
    assert seen[0].output_dir == "./output"


def test_config_file_with_flag_override(monkeypatch, tmp_path, capsys):
    cfg = tmp_path / "cfg.yaml"
    ProcessOptions(env_name="sep", model="mdx_extra", output_dir="stems").to_yaml(cfg)
    song = tmp_path / "song.wav"
    song.write_bytes(b"x")

    assert cli.main([str(song), "--config", str(cfg), "--env", "other", "--dry-run"]) == 0
    out = capsys.readouterr().out
    assert "conda run -n other" in out
    assert "-n mdx_extra -o stems" in out


def test_generate_config(tmp_path):
    path = tmp_path / "gen.yaml"
    assert cli.main(["--generate-config", str(path), "-j", "4"]) == 0
    assert ProcessOptions.from_yaml(path).concurrency == 4


def test_invalid_bitrate_is_reported(tmp_path):
    assert cli.main([str(tmp_path), "--mp3-bitrate", "loud", "--dry-run"]) == 1


def test_bad_config_value_is_reported(tmp_path):
    cfg = tmp_path / "cfg.yaml"
    cfg.write_text("processing:\n  jobs: many\n")
    assert cli.main(["--config", str(cfg), "--dry-run", str(tmp_path)]) == 1


def test_null_jobs_in_config(tmp_path, capsys):
    cfg = tmp_path / "cfg.yaml"
    cfg.write_text("processing:\n  jobs: null\n")
    song = tmp_path / "song.wav"
    song.write_bytes(b"x")
    assert cli.main(["--config", str(cfg), "--dry-run", str(song)]) == 0
    assert " -j " not in capsys.readouterr().out
