"""demucs-cli: run Demucs stem separation through a conda environment."""

__version__ = "1.0.0"
