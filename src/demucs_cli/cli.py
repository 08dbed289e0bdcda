"""
demucs-cli command line interface.

Usage:
    # Check the conda environment only
    demucs-cli --check

    # Separate files and folders (folders are searched recursively)
    demucs-cli song.mp3 albums/ -o ./output --format mp3 --mp3-bitrate 320k -j 2

    # Show the commands without running them
    demucs-cli albums/ --dry-run

    # Options from a YAML file, flags override it
    demucs-cli --config demucs-cli.yaml albums/
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Iterable, List, Optional

import yaml
from tqdm import tqdm

from demucs_cli import __version__
from demucs_cli.core.common import (
    DEFAULT_DEVICE, DEFAULT_ENV_NAME, DEFAULT_OUTPUT_DIR, DEMUCS_DEFAULTS, DEVICES, OUTPUT_FORMATS,
    add_log_file, setup_logging,
)
from demucs_cli.core.conda import CondaRunner
from demucs_cli.core.config import ProcessOptions
from demucs_cli.core.file_utils import collect_audio_files
from demucs_cli.core.terminal import (
    fmt_dim, fmt_error, fmt_filename, fmt_header, fmt_success, fmt_warning, setup_colored_logging,
)
from demucs_cli.separation.batch import process_audio_files_with_progress
from demucs_cli.separation.checker import EnvironmentStatus, check_environment
from demucs_cli.separation.demucs_sep import FileProcessResult, process_audio_file

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="demucs-cli",
        description="Friendly wrapper around Demucs running in a conda environment",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  demucs-cli --check
  demucs-cli song.mp3 -d cuda
  demucs-cli music/ -o ./stems --format mp3 --mp3-bitrate 320k -j 2
  demucs-cli music/ --dry-run
""",
    )
    p.add_argument('inputs', nargs='*', help='Audio files or directories')

    p.add_argument('--output', '-o', help=f'Output directory (default: {DEFAULT_OUTPUT_DIR})')
    p.add_argument('--device', '-d', choices=list(DEVICES), help=f'Device (default: {DEFAULT_DEVICE})')
    p.add_argument('--jobs', '-j', type=int, help='Files processed concurrently (default: 1)')
    p.add_argument('--model', '-m', help=f"Demucs model (default: {DEMUCS_DEFAULTS['model']})")
    p.add_argument('--env', help=f'Conda environment name (default: {DEFAULT_ENV_NAME})')
    p.add_argument('--format', choices=list(OUTPUT_FORMATS), help='Output format')
    p.add_argument('--mp3-bitrate', help='MP3 bitrate, e.g. 320 or 320k (with --format mp3)')
    p.add_argument('--timeout', type=float,
                   help='Seconds before a demucs/ffmpeg run is killed (default: no timeout)')
    p.add_argument('--conda', help='conda executable (default: conda)')

    p.add_argument('--config', '-c', type=Path, help='YAML config file')
    p.add_argument('--generate-config', type=Path, metavar='PATH',
                   help='Write a config file with the current options to PATH and exit')
    p.add_argument('--log-file', help='Also write the full log to this file')

    p.add_argument('--verbose', '-v', action='store_true', default=None, help='Verbose output')
    p.add_argument('--check', action='store_true', help='Only check the environment')
    p.add_argument('--dry-run', action='store_true', default=None,
                   help='Print the commands that would run')
    p.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return p


def build_options(args: argparse.Namespace) -> ProcessOptions:
    """Defaults, then the config file, then explicit flags."""
    if args.config:
        options = ProcessOptions.from_yaml(args.config)
    else:
        options = ProcessOptions(output_dir=DEFAULT_OUTPUT_DIR, model=DEMUCS_DEFAULTS['model'])

    return options.replace(
        env_name=args.env,
        device=args.device,
        model=args.model,
        output_dir=args.output,
        format=args.format,
        mp3_bitrate=args.mp3_bitrate,
        concurrency=args.jobs,
        verbose=args.verbose,
        dry_run=args.dry_run,
        timeout=args.timeout,
        conda=args.conda,
    )


def format_check_result(status: EnvironmentStatus) -> List[str]:
    """Human readable report for an environment check."""
    env = status.env_name
    lines = [fmt_header("Environment check:"), ""]

    if status.manager_available:
        lines.append(fmt_success("✓ conda is installed"))
        if status.manager_version:
            lines.append(fmt_dim(f"  version: {status.manager_version}"))
    else:
        lines.append(fmt_error("✗ conda is not installed"))
        lines.append(fmt_dim("  Install Miniconda: https://docs.conda.io/en/latest/miniconda.html"))
        return lines

    if status.env_exists:
        lines.append(fmt_success(f"✓ conda environment '{env}' exists"))
    else:
        lines.append(fmt_error(f"✗ conda environment '{env}' does not exist"))
        lines.append(fmt_dim(f"  Run: conda create -n {env} python=3.10"))
        return lines

    if status.tool_available:
        lines.append(fmt_success("✓ demucs is installed"))
        if status.tool_version:
            lines.append(fmt_dim(f"  version: {status.tool_version}"))
    else:
        lines.append(fmt_error("✗ demucs is not installed or not runnable"))
        lines.append(fmt_dim(f"  Run: conda activate {env} && pip install demucs"))
        return lines

    if status.dependencies:
        lines.extend(["", fmt_header("Python packages:")])
        for dep in status.dependencies:
            tag = " [critical]" if dep.critical else " [optional]"
            if dep.installed:
                version = f" ({dep.version})" if dep.version else ""
                lines.append(fmt_success(f"  ✓ {dep.name}{version}") + fmt_dim(tag))
            else:
                lines.append(fmt_error(f"  ✗ {dep.name}") + fmt_dim(tag))
        if status.missing_critical:
            lines.append("")
            lines.append(fmt_error(f"Missing critical packages: {', '.join(status.missing_critical)}"))
            lines.append(fmt_dim(f"  Run: conda activate {env} && pip install {' '.join(status.missing_critical)}"))

    lines.append("")
    if status.encoder_available:
        lines.append(fmt_success("✓ ffmpeg is installed"))
        if status.encoder_version:
            lines.append(fmt_dim(f"  version: {status.encoder_version}"))
    else:
        lines.append(fmt_warning("⚠ ffmpeg is not installed (needed for instrumental tracks)"))
        lines.append(fmt_dim(f"  Run: conda install ffmpeg -c conda-forge -n {env}"))

    return lines


def print_check_result(status: EnvironmentStatus) -> None:
    print("\n".join(format_check_result(status)))
    print()
    if status.overall_success:
        print(fmt_success("Environment check passed."))
    else:
        print(fmt_error("Environment check failed. Fix the problems above and retry."))


async def _dry_run(files: List[str], options: ProcessOptions) -> int:
    for path in files:
        result = await process_audio_file(path, options)
        if result.output:
            print(fmt_dim(f"[DRY RUN] {result.output}"))
    return 0


async def _separate(files: List[str], options: ProcessOptions) -> int:
    with tqdm(total=len(files), desc="Separating", unit="file") as bar:
        def on_result(index: int, total: int, result: FileProcessResult) -> None:
            if result.success:
                bar.write(fmt_success(f"✓ [{index}/{total}] {result.file}"))
            else:
                bar.write(fmt_error(f"✗ [{index}/{total}] {result.file}"))
                if result.error and options.verbose:
                    bar.write(fmt_dim(f"  {result.error.strip()}"))
            bar.update(1)

        batch = await process_audio_files_with_progress(files, options, on_result=on_result)

    total = len(batch.results)
    if batch.success:
        print(fmt_success(f"\nAll done! ({total}/{total})"))
        return 0
    print(fmt_warning(f"\nFinished: {batch.succeeded}/{total} succeeded"))
    return 1


async def run(args: argparse.Namespace, parser: argparse.ArgumentParser) -> int:
    options = build_options(args)
    if options.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.generate_config:
        options.to_yaml(args.generate_config)
        print(f"Config written: {args.generate_config}")
        return 0

    if args.check:
        status = await check_environment(options.env_name, runner=_runner(options))
        print_check_result(status)
        return 0 if status.overall_success else 1

    if not options.dry_run:
        logger.info("Checking environment...")
        status = await check_environment(options.env_name, runner=_runner(options))
        if not status.overall_success:
            print_check_result(status)
            return 1
        logger.info("Environment check passed")

    if not args.inputs:
        print(fmt_warning("Please provide audio files or directories\n"))
        parser.print_help()
        return 1

    files = collect_audio_files(args.inputs)
    if not files:
        print(fmt_error("No valid audio files found"))
        print(fmt_dim("Supported: mp3, wav, flac, m4a, aac, ogg, wma, aiff"))
        return 1

    logger.info(f"Found {len(files)} audio files")
    for path in files:
        logger.debug(f"  {fmt_filename(path)}")

    if options.dry_run:
        return await _dry_run(files, options)
    return await _separate(files, options)


def _runner(options: ProcessOptions) -> CondaRunner:
    return CondaRunner(conda=options.conda)


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    if sys.stdout.isatty():
        setup_colored_logging(level=level)
    else:
        setup_logging(level=level)
    if args.log_file:
        add_log_file(args.log_file)

    try:
        return asyncio.run(run(args, parser))
    except (ValueError, OSError, yaml.YAMLError) as e:
        logger.error(f"Error: {e}")
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
