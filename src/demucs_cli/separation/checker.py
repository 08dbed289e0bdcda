"""
Environment check for demucs-cli.

Verifies, in order, that conda is installed, the named environment exists,
demucs runs inside it, and its key Python packages import. The first three
are hard prerequisites and end the check early when missing. ffmpeg is
probed last and only affects instrumental track generation, never the
overall result.

Usage:
    status = asyncio.run(check_environment('demucs'))
    if not status.overall_success:
        ...
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from demucs_cli.core.common import PROBE_TIMEOUT, PYTHON_DEPENDENCIES, DependencySpec
from demucs_cli.core.conda import CommandError, CondaRunner

logger = logging.getLogger(__name__)

DEMUCS_VERSION_RE = re.compile(r'demucs\s+(\d+\.\d+\.\d+)', re.IGNORECASE)
FFMPEG_VERSION_RE = re.compile(r'ffmpeg version\s+(\S+)', re.IGNORECASE)

# Exit 1 when the module is not importable, otherwise print where it lives
IMPORT_PROBE = (
    "import importlib.util, sys\n"
    "spec = importlib.util.find_spec({module!r})\n"
    "sys.exit(1) if spec is None else print(spec.origin)"
)
VERSION_PROBE = (
    "import {module}\n"
    "print(getattr({module}, '__version__', 'unknown'))"
)


@dataclass(frozen=True)
class ToolStatus:
    available: bool
    version: Optional[str] = None


@dataclass(frozen=True)
class DependencyStatus:
    name: str
    installed: bool
    version: Optional[str] = None
    critical: bool = True


@dataclass(frozen=True)
class EnvironmentStatus:
    """Result of one environment check. Fields after a failed prerequisite keep their defaults."""
    env_name: str
    manager_available: bool = False
    manager_version: Optional[str] = None
    env_exists: bool = False
    tool_available: bool = False
    tool_version: Optional[str] = None
    dependencies: Tuple[DependencyStatus, ...] = field(default_factory=tuple)
    encoder_available: bool = False
    encoder_version: Optional[str] = None
    overall_success: bool = False

    @property
    def missing_critical(self) -> List[str]:
        return [d.name for d in self.dependencies if d.critical and not d.installed]

    @property
    def all_installed(self) -> bool:
        return all(d.installed for d in self.dependencies)


async def _probe_run(runner: CondaRunner, *args: str):
    """``runner.run`` with probe timeout; None when conda could not be run."""
    try:
        return await runner.run(*args, timeout=PROBE_TIMEOUT)
    except CommandError as e:
        logger.debug(f"conda {' '.join(args)} failed: {e}")
        return None


async def _probe_in_env(runner: CondaRunner, env_name: str, command: str, args):
    try:
        return await runner.run_in_env(env_name, command, args, timeout=PROBE_TIMEOUT)
    except CommandError as e:
        logger.debug(f"{command} in '{env_name}' failed: {e}")
        return None


class CondaProbe:
    """conda itself: installed version and environment listing."""

    def __init__(self, runner: CondaRunner):
        self.runner = runner

    async def probe(self) -> ToolStatus:
        result = await _probe_run(self.runner, '--version')
        if result is None or not result.ok:
            return ToolStatus(False)
        return ToolStatus(True, result.stdout.strip() or None)

    async def env_exists(self, env_name: str) -> bool:
        result = await _probe_run(self.runner, 'env', 'list')
        if result is None or not result.ok:
            return False
        return env_name in result.stdout


class DemucsProbe:
    """demucs inside the environment."""

    def __init__(self, runner: CondaRunner, env_name: str):
        self.runner = runner
        self.env_name = env_name

    async def probe(self) -> ToolStatus:
        result = await _probe_in_env(self.runner, self.env_name, 'demucs', ['--help'])
        if result is None or not result.ok:
            return ToolStatus(False)

        result = await _probe_in_env(self.runner, self.env_name, 'demucs', ['--version'])
        if result is None or not result.ok:
            return ToolStatus(True)

        match = DEMUCS_VERSION_RE.search(result.stdout)
        return ToolStatus(True, match.group(1) if match else (result.stdout.strip() or None))


class FfmpegProbe:
    """ffmpeg inside the environment, used for instrumental mixing."""

    def __init__(self, runner: CondaRunner, env_name: str):
        self.runner = runner
        self.env_name = env_name

    async def probe(self) -> ToolStatus:
        result = await _probe_in_env(self.runner, self.env_name, 'ffmpeg', ['-version'])
        if result is None or not result.ok:
            return ToolStatus(False)
        match = FFMPEG_VERSION_RE.search(result.stdout)
        return ToolStatus(True, match.group(1) if match else None)


class PythonModuleProbe:
    """Importability and version of Python packages inside the environment."""

    def __init__(self, runner: CondaRunner, env_name: str):
        self.runner = runner
        self.env_name = env_name

    async def check(self, dep: DependencySpec) -> DependencyStatus:
        script = IMPORT_PROBE.format(module=dep.module)
        result = await _probe_in_env(self.runner, self.env_name, 'python', ['-c', script])
        if result is None or not result.ok:
            return DependencyStatus(dep.name, False, None, dep.critical)

        version = None
        script = VERSION_PROBE.format(module=dep.module)
        result = await _probe_in_env(self.runner, self.env_name, 'python', ['-c', script])
        if result is not None and result.ok:
            lines = result.stdout.strip().splitlines()
            text = lines[-1].strip() if lines else ''
            if text and text != 'unknown':
                version = text

        return DependencyStatus(dep.name, True, version, dep.critical)


async def check_environment(env_name: str = 'demucs',
                            runner: Optional[CondaRunner] = None,
                            dependencies: Optional[List[DependencySpec]] = None) -> EnvironmentStatus:
    """
    Check that everything needed to run demucs through conda is in place.

    Never raises for a missing or broken tool; the returned status says
    what is missing.

    Args:
        env_name: conda environment expected to hold demucs
        runner: Command runner (default: ``CondaRunner()``)
        dependencies: Packages to probe (default: PYTHON_DEPENDENCIES)

    Returns:
        EnvironmentStatus with ``overall_success`` False if conda, the
        environment, demucs or a critical package is missing
    """
    runner = runner or CondaRunner()
    if dependencies is None:
        dependencies = PYTHON_DEPENDENCIES

    conda_probe = CondaProbe(runner)
    conda = await conda_probe.probe()
    if not conda.available:
        logger.debug("conda not available")
        return EnvironmentStatus(env_name=env_name)

    env_exists = await conda_probe.env_exists(env_name)
    if not env_exists:
        logger.debug(f"conda environment '{env_name}' not found")
        return EnvironmentStatus(
            env_name=env_name,
            manager_available=True,
            manager_version=conda.version,
        )

    demucs = await DemucsProbe(runner, env_name).probe()
    if not demucs.available:
        logger.debug(f"demucs not runnable in '{env_name}'")
        return EnvironmentStatus(
            env_name=env_name,
            manager_available=True,
            manager_version=conda.version,
            env_exists=True,
        )

    module_probe = PythonModuleProbe(runner, env_name)
    dep_results = []
    for dep in dependencies:
        status = await module_probe.check(dep)
        logger.debug(f"{dep.name}: {'ok' if status.installed else 'missing'}"
                     f"{' ' + status.version if status.version else ''}")
        dep_results.append(status)

    success = not any(d.critical and not d.installed for d in dep_results)

    # ffmpeg only gates instrumental generation
    ffmpeg = await FfmpegProbe(runner, env_name).probe()

    return EnvironmentStatus(
        env_name=env_name,
        manager_available=True,
        manager_version=conda.version,
        env_exists=True,
        tool_available=True,
        tool_version=demucs.version,
        dependencies=tuple(dep_results),
        encoder_available=ffmpeg.available,
        encoder_version=ffmpeg.version,
        overall_success=success,
    )
