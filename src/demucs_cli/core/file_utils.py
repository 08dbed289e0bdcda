"""
File Utilities for demucs-cli

Audio file discovery for the command line front-end.

Dependencies:
- None (standard library only)

Functions:
- is_audio_file(path): Extension check against AUDIO_EXTENSIONS
- find_audio_files(directory): Recursively find audio files
- filter_valid_audio_files(paths): Keep existing audio files only
- collect_audio_files(inputs): Expand CLI inputs (files and directories)
"""

import os
from pathlib import Path
from typing import Iterable, List, Optional
import logging

from demucs_cli.core.common import AUDIO_EXTENSIONS

logger = logging.getLogger(__name__)


def is_audio_file(path: str | Path) -> bool:
    """Return True if ``path`` has a supported audio extension (case-insensitive)."""
    return Path(path).suffix.lower() in AUDIO_EXTENSIONS


def find_audio_files(directory: str | Path,
                     extensions: Optional[set] = None,
                     recursive: bool = True) -> List[Path]:
    """
    Find all audio files in a directory.

    Unreadable subdirectories are skipped rather than aborting the walk.

    Args:
        directory: Root directory to search
        extensions: Set of file extensions to search for (default: AUDIO_EXTENSIONS)
        recursive: Whether to search recursively (default: True)

    Returns:
        Sorted list of Path objects for found audio files
    """
    directory = Path(directory)
    if not directory.is_dir():
        logger.error(f"Directory does not exist: {directory}")
        return []

    if extensions is None:
        extensions = AUDIO_EXTENSIONS

    # Normalize extensions (ensure they start with .)
    extensions = {(ext if ext.startswith('.') else f'.{ext}').lower() for ext in extensions}

    audio_files = []
    for root, dirs, files in os.walk(directory, onerror=lambda e: logger.debug(f"Skipping: {e}")):
        for name in files:
            if Path(name).suffix.lower() in extensions:
                audio_files.append(Path(root) / name)
        if not recursive:
            break

    logger.debug(f"Found {len(audio_files)} audio files in {directory}")
    return sorted(audio_files)


def filter_valid_audio_files(paths: Iterable[str | Path]) -> List[str]:
    """Keep paths that are existing regular files with an audio extension."""
    valid = []
    for path in paths:
        try:
            if Path(path).is_file() and is_audio_file(path):
                valid.append(str(path))
        except OSError:
            continue
    return valid


def collect_audio_files(inputs: Iterable[str | Path]) -> List[str]:
    """
    Expand CLI inputs into a list of audio file paths.

    Files are kept as given, directories are searched recursively, and
    anything else is logged and skipped. Input order is preserved.
    """
    collected: List[str] = []
    for item in inputs:
        path = Path(item)
        if path.is_file():
            collected.append(str(path))
        elif path.is_dir():
            collected.extend(str(p) for p in find_audio_files(path))
        else:
            logger.warning(f"Skipping invalid path: {item}")
    return filter_valid_audio_files(collected)
