"""
Common Constants and Utilities for demucs-cli

This module provides shared constants, defaults, and the logging setup used
across the separation pipeline.

Dependencies:
- None (standard library only)

Constants:
- Audio file extensions
- Stem names
- Demucs defaults (where demucs writes when a flag is omitted)
- Python dependencies probed inside the conda environment
"""

from dataclasses import dataclass
from typing import List
import logging

# Logging configuration
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_LEVEL = logging.INFO

# Audio file extensions accepted as input
AUDIO_EXTENSIONS = {'.mp3', '.wav', '.flac', '.m4a', '.aac', '.ogg', '.wma', '.aiff', '.aif'}

# Demucs stem names
DEMUCS_STEMS = ['drums', 'bass', 'other', 'vocals']

# Stems mixed back together into the instrumental track
INSTRUMENTAL_STEMS = ['drums', 'bass', 'other']
INSTRUMENTAL_NAME = 'instrumental'

DEVICES = ('cpu', 'cuda', 'mps')
OUTPUT_FORMATS = ('wav', 'mp3', 'flac')

# What demucs does when -n / -o / --format are not passed
DEMUCS_DEFAULTS = {
    'model': 'htdemucs',
    'output_dir': 'separated',
    'format': 'wav',
}

# CLI defaults
DEFAULT_ENV_NAME = 'demucs'
DEFAULT_OUTPUT_DIR = './output'
DEFAULT_DEVICE = 'cpu'

# Read-only diagnostics should never hang a check
PROBE_TIMEOUT = 120.0

# amix smoothing when an input stream ends early (seconds)
AMIX_DROPOUT_TRANSITION = 2


@dataclass(frozen=True)
class DependencySpec:
    """A Python package probed inside the environment."""
    name: str
    module: str
    critical: bool = True


# Hand-picked set; transitive dependencies are not probed
PYTHON_DEPENDENCIES: List[DependencySpec] = [
    DependencySpec('torch', 'torch', critical=True),
    DependencySpec('torchaudio', 'torchaudio', critical=True),
    DependencySpec('julius', 'julius', critical=True),
    DependencySpec('einops', 'einops', critical=True),
    DependencySpec('soundfile', 'soundfile', critical=False),
    DependencySpec('diffq', 'diffq', critical=False),
    DependencySpec('hydra-core', 'hydra', critical=False),
    DependencySpec('openunmix', 'openunmix', critical=False),
    DependencySpec('lameenc', 'lameenc', critical=False),
]


def setup_logging(level: int = LOG_LEVEL, log_file: str = None) -> None:
    """
    Set up logging configuration for the project.

    Args:
        level: Logging level (default: INFO)
        log_file: Optional file path to write logs to
    """
    handlers = [logging.StreamHandler()]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=handlers
    )


def add_log_file(log_file: str, level: int = logging.DEBUG) -> logging.Handler:
    """Attach a plain-format file handler to the root logger."""
    handler = logging.FileHandler(log_file)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.getLogger().addHandler(handler)
    return handler
