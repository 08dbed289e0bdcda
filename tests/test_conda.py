from __future__ import annotations

import asyncio
import sys

import pytest

from demucs_cli.core.conda import CommandTimeout, CondaRunner, SpawnError, run_command


def test_env_command_wraps_conda_run():
    runner = CondaRunner(conda="mamba")
    assert runner.env_command("demucs", "demucs", ["-d", "cpu", "a.mp3"]) == [
        "mamba", "run", "-n", "demucs", "--no-capture-output", "demucs", "-d", "cpu", "a.mp3",
    ]


def test_run_command_captures_streams_and_exit_code():
    code = "import sys; print('out'); print('err', file=sys.stderr); sys.exit(3)"
    result = asyncio.run(run_command([sys.executable, "-c", code]))
    assert result.exit_code == 3
    assert not result.ok
    assert result.stdout.strip() == "out"
    assert result.stderr.strip() == "err"


def test_run_command_success():
    result = asyncio.run(run_command([sys.executable, "-c", "print('hi')"]))
    assert result.ok
    assert result.stdout.strip() == "hi"


def test_missing_binary_raises_spawn_error():
    with pytest.raises(SpawnError):
        asyncio.run(run_command(["definitely-not-a-real-binary-xyz", "--version"]))


def test_timeout_kills_process():
    with pytest.raises(CommandTimeout):
        asyncio.run(run_command([sys.executable, "-c", "import time; time.sleep(30)"], timeout=0.5))


def test_runner_run_prefixes_conda(fake_runner):
    asyncio.run(fake_runner.run("env", "list"))
    assert fake_runner.calls == [["conda", "env", "list"]]
