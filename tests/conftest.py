from __future__ import annotations

import asyncio
from typing import Callable, List, Optional, Sequence

import pytest

from demucs_cli.core.conda import CommandResult, CondaRunner

ENV_PREFIX_LEN = 5  # conda run -n <env> --no-capture-output


def ok(stdout: str = "", stderr: str = "") -> CommandResult:
    return CommandResult(0, stdout, stderr)


def fail(stderr: str = "", stdout: str = "", code: int = 1) -> CommandResult:
    return CommandResult(code, stdout, stderr)


class FakeRunner(CondaRunner):
    """Records commands instead of spawning them.

    ``responder(cmd)`` returns a CommandResult or an exception to raise.
    ``delays`` maps an input path to seconds to sleep before answering.
    """

    def __init__(self, responder: Optional[Callable[[List[str]], object]] = None, delays=None, timeout=None):
        super().__init__(conda="conda", timeout=timeout)
        self.responder = responder or (lambda cmd: ok())
        self.delays = delays or {}
        self.calls: List[List[str]] = []
        self.timeouts: List[Optional[float]] = []
        self.in_flight = 0
        self.peak = 0

    async def execute(self, cmd: Sequence[str], timeout=None) -> CommandResult:
        cmd = list(cmd)
        self.calls.append(cmd)
        self.timeouts.append(timeout if timeout is not None else self.timeout)
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            delay = self.delays.get(cmd[-1], 0)
            if delay:
                await asyncio.sleep(delay)
            else:
                await asyncio.sleep(0)
            response = self.responder(cmd)
        finally:
            self.in_flight -= 1
        if isinstance(response, BaseException):
            raise response
        return response

    def env_calls(self, command: str) -> List[List[str]]:
        """Arguments of every in-environment call of ``command``."""
        return [c[ENV_PREFIX_LEN + 1:] for c in self.calls
                if len(c) > ENV_PREFIX_LEN and c[1] == "run" and c[ENV_PREFIX_LEN] == command]


def in_env(cmd: List[str]) -> Optional[List[str]]:
    """``[command, *args]`` for a conda-run command, else None."""
    if len(cmd) > ENV_PREFIX_LEN and cmd[1] == "run":
        return cmd[ENV_PREFIX_LEN:]
    return None


@pytest.fixture
def fake_runner():
    return FakeRunner()


def make_stems(stem_dir, ext="wav", names=("drums", "bass", "other", "vocals")):
    stem_dir.mkdir(parents=True, exist_ok=True)
    for name in names:
        (stem_dir / f"{name}.{ext}").write_bytes(b"RIFF")
    return stem_dir
