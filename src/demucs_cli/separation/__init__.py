"""
Separation Module

Environment checking, demucs separation and instrumental mixing.

Modules:
- checker: conda / demucs / package / ffmpeg checks
- demucs_sep: separation of a single file
- merge: stem lookup and instrumental mixing with ffmpeg
- batch: grouped concurrent processing of many files

Usage:
    import asyncio
    from demucs_cli.core.config import ProcessOptions
    from demucs_cli.separation import check_environment, process_audio_files_with_progress

    options = ProcessOptions(device='cuda', concurrency=2)
    status = asyncio.run(check_environment(options.env_name))
    batch = asyncio.run(process_audio_files_with_progress(files, options))
"""

from .batch import BatchProcessResult, process_audio_files_with_progress
from .checker import DependencyStatus, EnvironmentStatus, check_environment
from .demucs_sep import FileProcessResult, ProcessResult, process_audio_file
from .merge import StemFiles, find_stem_files, merge_audio_files

__all__ = [
    'BatchProcessResult',
    'process_audio_files_with_progress',
    'DependencyStatus',
    'EnvironmentStatus',
    'check_environment',
    'FileProcessResult',
    'ProcessResult',
    'process_audio_file',
    'StemFiles',
    'find_stem_files',
    'merge_audio_files',
]
