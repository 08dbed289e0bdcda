"""
Conda command layer.

Every external program (conda itself, demucs, ffmpeg, the environment's
python) is started through ``CondaRunner.execute``. Output is captured in
full, never streamed, and a non-zero exit code is an ordinary result.

Only failures to run at all are raised:
- SpawnError: the executable could not be started (missing binary, OS error)
- CommandTimeout: a timeout was configured and elapsed; the child is killed
"""

import asyncio
import logging
import shlex
from dataclasses import dataclass
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)


class CommandError(RuntimeError):
    """Base class for commands that did not produce an exit code."""


class SpawnError(CommandError):
    """The subprocess could not be started."""


class CommandTimeout(CommandError):
    """The subprocess outlived its timeout and was killed."""


@dataclass(frozen=True)
class CommandResult:
    """Exit code and fully captured output of one finished command."""
    exit_code: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


def _decode(data: Optional[bytes]) -> str:
    return data.decode('utf-8', errors='replace') if data else ''


async def run_command(cmd: Sequence[str], timeout: Optional[float] = None) -> CommandResult:
    """
    Run ``cmd`` and wait for it to exit, capturing stdout and stderr.

    Args:
        cmd: Program and arguments (no shell)
        timeout: Seconds to wait before killing the process (None = no limit)

    Raises:
        SpawnError: If the program cannot be started
        CommandTimeout: If ``timeout`` elapses first
    """
    cmd = [str(c) for c in cmd]
    logger.debug(f"Running: {shlex.join(cmd)}")

    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise SpawnError(f"Failed to start {cmd[0]}: {e}") from e

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        raise CommandTimeout(f"{cmd[0]} timed out after {timeout}s") from None

    return CommandResult(proc.returncode, _decode(stdout), _decode(stderr))


class CondaRunner:
    """
    Runs conda and commands inside named conda environments.

    Args:
        conda: conda executable (``mamba``/``micromamba`` work as drop-ins)
        timeout: Default timeout for every command (None = no limit)
    """

    def __init__(self, conda: str = 'conda', timeout: Optional[float] = None):
        self.conda = conda
        self.timeout = timeout

    def env_command(self, env_name: str, command: str, args: Sequence[str] = ()) -> List[str]:
        """Build ``conda run -n <env> --no-capture-output <command> <args...>``."""
        return [self.conda, 'run', '-n', env_name, '--no-capture-output', command, *[str(a) for a in args]]

    async def execute(self, cmd: Sequence[str], timeout: Optional[float] = None) -> CommandResult:
        """Single spawn point; tests replace this to avoid real processes."""
        return await run_command(cmd, timeout=timeout if timeout is not None else self.timeout)

    async def run(self, *args: str, timeout: Optional[float] = None) -> CommandResult:
        """Run ``conda <args...>``."""
        return await self.execute([self.conda, *args], timeout=timeout)

    async def run_in_env(self,
                         env_name: str,
                         command: str,
                         args: Sequence[str] = (),
                         timeout: Optional[float] = None) -> CommandResult:
        """Run ``command`` inside ``env_name``; non-zero exit codes are returned, not raised."""
        return await self.execute(self.env_command(env_name, command, args), timeout=timeout)


async def run_in_env(env_name: str,
                     command: str,
                     args: Sequence[str] = (),
                     conda: str = 'conda',
                     timeout: Optional[float] = None) -> CommandResult:
    """Convenience wrapper around ``CondaRunner.run_in_env``."""
    return await CondaRunner(conda, timeout).run_in_env(env_name, command, args)
