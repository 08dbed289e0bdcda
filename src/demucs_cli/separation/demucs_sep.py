"""
Demucs Stem Separation for demucs-cli

Runs demucs inside a conda environment for one audio file and, when it
succeeds, mixes drums + bass + other into an instrumental track.

Demucs output layout:
    <output_dir>/<model>/<track name>/{drums,bass,other,vocals}.<ext>
    <output_dir>/<model>/<track name>/instrumental.<ext>   (added here)

Failures never raise out of ``process_audio_file``; they come back as a
ProcessResult with ``success=False``.
"""

import logging
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from demucs_cli.core.common import DEMUCS_DEFAULTS
from demucs_cli.core.conda import CondaRunner
from demucs_cli.core.config import ProcessOptions, normalize_bitrate
from demucs_cli.separation.merge import find_stem_files, get_instrumental_path, merge_audio_files

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessResult:
    success: bool
    output: Optional[str] = None
    error: Optional[str] = None
    instrumental: Optional[Path] = None


@dataclass(frozen=True, kw_only=True)
class FileProcessResult(ProcessResult):
    file: str

    @classmethod
    def from_result(cls, file: str, result: ProcessResult) -> 'FileProcessResult':
        return cls(
            file=str(file),
            success=result.success,
            output=result.output,
            error=result.error,
            instrumental=result.instrumental,
        )


def build_demucs_args(file_path: str | Path, options: ProcessOptions) -> List[str]:
    """
    Translate options into demucs command line arguments.

    The device is always passed, everything else only when set. The input
    file is always last.
    """
    args = ['-d', options.device]

    if options.model:
        args.extend(['-n', options.model])

    if options.output_dir:
        args.extend(['-o', str(options.output_dir)])

    if options.format == 'mp3':
        args.append('--mp3')
        if options.mp3_bitrate:
            args.extend(['--mp3-bitrate', normalize_bitrate(options.mp3_bitrate)])
    elif options.format:
        args.extend(['--format', options.format])

    if options.concurrency > 1:
        args.extend(['-j', str(options.concurrency)])

    args.append(str(file_path))
    return args


def build_runner(options: ProcessOptions) -> CondaRunner:
    return CondaRunner(conda=options.conda, timeout=options.timeout)


async def create_instrumental(file_path: str | Path,
                              options: ProcessOptions,
                              runner: CondaRunner) -> Optional[Path]:
    """
    Mix the non-vocal stems of ``file_path`` into ``instrumental.<ext>``.

    Best effort: a missing stem or an ffmpeg failure is logged and None is
    returned.
    """
    output_dir = options.output_dir or DEMUCS_DEFAULTS['output_dir']
    model = options.model or DEMUCS_DEFAULTS['model']
    fmt = options.format or DEMUCS_DEFAULTS['format']
    name = Path(file_path).stem

    stems = find_stem_files(output_dir, model, name, fmt)
    if stems is None:
        logger.info(f"Stems not found for {name}, skipping instrumental")
        return None

    target = get_instrumental_path(output_dir, model, name, fmt)
    result = await merge_audio_files(stems.instrumental_inputs(), target, options.env_name, runner)
    if not result.success:
        logger.warning(f"Instrumental generation failed for {name}: {result.error}")
        return None

    logger.info(f"Created instrumental: {target}")
    return target


async def process_audio_file(file_path: str | Path,
                             options: ProcessOptions,
                             runner: Optional[CondaRunner] = None) -> ProcessResult:
    """
    Separate one audio file with demucs.

    Args:
        file_path: Input audio file
        options: Processing options
        runner: Command runner (default: built from ``options``)

    Returns:
        ProcessResult. With ``options.dry_run`` nothing is run and ``output``
        holds the exact command line that would have been executed.
    """
    runner = runner or build_runner(options)

    try:
        args = build_demucs_args(file_path, options)

        if options.dry_run:
            return ProcessResult(True, output=shlex.join(runner.env_command(options.env_name, 'demucs', args)))

        result = await runner.run_in_env(options.env_name, 'demucs', args)
        if not result.ok:
            return ProcessResult(False, error=result.stderr or result.stdout)

        instrumental = None
        try:
            instrumental = await create_instrumental(file_path, options, runner)
        except Exception as e:
            logger.warning(f"Instrumental generation failed for {file_path}: {e}")

        return ProcessResult(True, output=result.stdout, instrumental=instrumental)

    except Exception as e:
        logger.debug(f"Processing {file_path} raised: {e}")
        return ProcessResult(False, error=str(e))
