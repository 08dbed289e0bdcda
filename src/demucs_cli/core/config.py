"""
Processing options for demucs-cli.

``ProcessOptions`` is built once per invocation (defaults, then an optional
YAML file, then CLI flags) and handed read-only to every stage.

Config file layout:

    environment:
      name: demucs
      conda: conda
    demucs:
      device: cpu
      model: htdemucs
      output_dir: ./output
      format: mp3
      mp3_bitrate: 320k
    processing:
      jobs: 2
      verbose: false
      dry_run: false
      timeout: null
"""

import dataclasses
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from demucs_cli.core.common import DEFAULT_DEVICE, DEFAULT_ENV_NAME, DEVICES, OUTPUT_FORMATS

_BITRATE_RE = re.compile(r'^\s*(\d+)')


def normalize_bitrate(bitrate: str | int) -> str:
    """
    Strip a trailing unit from an MP3 bitrate ("320k" -> "320").

    Demucs only accepts a bare kbps number for ``--mp3-bitrate``.

    Raises:
        ValueError: If the value does not start with digits
    """
    match = _BITRATE_RE.match(str(bitrate))
    if match is None:
        raise ValueError(f"Invalid MP3 bitrate: {bitrate!r}")
    return match.group(1)


def _config_value(section: Dict[str, Any], key: str, kind: type, default: Any) -> Any:
    """
    Read ``section[key]`` as ``kind``; a missing or null value gives ``default``.

    Raises:
        ValueError: If the value has another type (bools are not numbers)
    """
    value = section.get(key)
    if value is None:
        return default
    if isinstance(value, bool) and kind is not bool:
        raise ValueError(f"Config key '{key}' must be {kind.__name__}, got {value!r}")
    if kind is float and isinstance(value, int):
        return float(value)
    if not isinstance(value, kind):
        raise ValueError(f"Config key '{key}' must be {kind.__name__}, got {value!r}")
    return value


@dataclass(frozen=True)
class ProcessOptions:
    """Options for one demucs-cli invocation."""
    env_name: str = DEFAULT_ENV_NAME
    device: str = DEFAULT_DEVICE
    model: Optional[str] = None
    output_dir: Optional[str] = None
    format: Optional[str] = None
    mp3_bitrate: Optional[str] = None
    concurrency: int = 1
    verbose: bool = False
    dry_run: bool = False

    # Seconds before a separation/merge subprocess is killed (None = wait forever)
    timeout: Optional[float] = None
    conda: str = 'conda'

    def __post_init__(self):
        if not self.env_name:
            raise ValueError("Environment name must not be empty")
        if self.device not in DEVICES:
            raise ValueError(f"Unsupported device: {self.device}. Supported: {list(DEVICES)}")
        if self.format is not None and self.format not in OUTPUT_FORMATS:
            raise ValueError(f"Unsupported output format: {self.format}. "
                             f"Supported: {list(OUTPUT_FORMATS)}")
        if not isinstance(self.concurrency, int) or isinstance(self.concurrency, bool) \
                or self.concurrency < 1:
            raise ValueError(f"Concurrency must be a positive integer, got {self.concurrency!r}")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"Timeout must be positive, got {self.timeout!r}")
        if self.mp3_bitrate is not None:
            normalize_bitrate(self.mp3_bitrate)

    def replace(self, **changes: Any) -> 'ProcessOptions':
        """Return a validated copy with ``changes`` applied (None values ignored)."""
        changes = {k: v for k, v in changes.items() if v is not None}
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProcessOptions':
        """Build options from the nested config-file structure."""
        data = data or {}
        environment = data.get('environment', {}) or {}
        demucs = data.get('demucs', {}) or {}
        processing = data.get('processing', {}) or {}

        bitrate = demucs.get('mp3_bitrate')
        output_dir = demucs.get('output_dir')

        return cls(
            env_name=environment.get('name', DEFAULT_ENV_NAME),
            conda=environment.get('conda', 'conda'),

            device=demucs.get('device', DEFAULT_DEVICE),
            model=demucs.get('model'),
            output_dir=str(output_dir) if output_dir is not None else None,
            format=demucs.get('format'),
            mp3_bitrate=str(bitrate) if bitrate is not None else None,

            concurrency=_config_value(processing, 'jobs', int, 1),
            verbose=_config_value(processing, 'verbose', bool, False),
            dry_run=_config_value(processing, 'dry_run', bool, False),
            timeout=_config_value(processing, 'timeout', float, None),
        )

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> 'ProcessOptions':
        """Load options from a YAML file."""
        with open(yaml_path, 'r') as f:
            data = yaml.safe_load(f)
        if data is not None and not isinstance(data, dict):
            raise ValueError(f"Config file must contain a mapping: {yaml_path}")
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'environment': {
                'name': self.env_name,
                'conda': self.conda,
            },
            'demucs': {
                'device': self.device,
                'model': self.model,
                'output_dir': self.output_dir,
                'format': self.format,
                'mp3_bitrate': self.mp3_bitrate,
            },
            'processing': {
                'jobs': self.concurrency,
                'verbose': self.verbose,
                'dry_run': self.dry_run,
                'timeout': self.timeout,
            },
        }

    def to_yaml(self, yaml_path: Path):
        """Save options to a YAML file."""
        with open(yaml_path, 'w') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)
