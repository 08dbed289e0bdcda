"""
Instrumental track generation.

Demucs writes stems to ``<output_dir>/<model>/<track>/<stem>.<ext>``. Once
drums, bass and other exist they are mixed with ffmpeg's ``amix`` filter
into ``instrumental.<ext>`` beside them. Vocals are located but never
required.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Sequence

from demucs_cli.core.common import AMIX_DROPOUT_TRANSITION, INSTRUMENTAL_NAME, INSTRUMENTAL_STEMS
from demucs_cli.core.conda import CondaRunner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StemFiles:
    drums: Path
    bass: Path
    other: Path
    vocals: Path

    @property
    def directory(self) -> Path:
        return self.drums.parent

    def as_dict(self) -> Dict[str, Path]:
        return {'drums': self.drums, 'bass': self.bass, 'other': self.other, 'vocals': self.vocals}

    def instrumental_inputs(self) -> list:
        stems = self.as_dict()
        return [stems[name] for name in INSTRUMENTAL_STEMS]


@dataclass(frozen=True)
class MergeResult:
    success: bool
    error: Optional[str] = None


def _extension(fmt: str) -> str:
    return fmt if fmt.startswith('.') else f'.{fmt}'


def get_stem_dir(output_dir: str | Path, model: str, filename: str) -> Path:
    return Path(output_dir) / model / filename


def get_instrumental_path(output_dir: str | Path, model: str, filename: str, fmt: str = 'wav') -> Path:
    return get_stem_dir(output_dir, model, filename) / f"{INSTRUMENTAL_NAME}{_extension(fmt)}"


def find_stem_files(output_dir: str | Path,
                    model: str,
                    filename: str,
                    fmt: str = 'wav') -> Optional[StemFiles]:
    """
    Locate the stems demucs wrote for one track.

    Args:
        output_dir: Base output directory passed to demucs
        model: Demucs model name (first directory level)
        filename: Source file name without extension
        fmt: Stem extension, with or without the leading dot

    Returns:
        StemFiles, or None unless drums, bass and other all exist
    """
    stem_dir = get_stem_dir(output_dir, model, filename)
    ext = _extension(fmt)

    stems = StemFiles(
        drums=stem_dir / f"drums{ext}",
        bass=stem_dir / f"bass{ext}",
        other=stem_dir / f"other{ext}",
        vocals=stem_dir / f"vocals{ext}",
    )

    for path in stems.instrumental_inputs():
        if not path.exists():
            logger.debug(f"Stem not found: {path}")
            return None

    return stems


def build_amix_filter(num_inputs: int) -> str:
    """e.g. 3 inputs -> ``[0:a][1:a][2:a]amix=inputs=3:duration=longest:dropout_transition=2[aout]``"""
    labels = ''.join(f"[{i}:a]" for i in range(num_inputs))
    return (f"{labels}amix=inputs={num_inputs}:duration=longest:"
            f"dropout_transition={AMIX_DROPOUT_TRANSITION}[aout]")


def build_merge_args(input_paths: Sequence[str | Path], output_path: str | Path) -> list:
    args = ['-y']
    for path in input_paths:
        args.extend(['-i', str(path)])
    args.extend([
        '-filter_complex', build_amix_filter(len(input_paths)),
        '-map', '[aout]',
        str(output_path),
    ])
    return args


async def merge_audio_files(input_paths: Sequence[str | Path],
                            output_path: str | Path,
                            env_name: str,
                            runner: Optional[CondaRunner] = None) -> MergeResult:
    """
    Mix several audio files into one with ffmpeg (run inside ``env_name``).

    All inputs are checked before ffmpeg is started; an existing output is
    overwritten.

    Returns:
        MergeResult, with ffmpeg's stderr as the error on failure
    """
    if not input_paths:
        return MergeResult(False, "No input files to merge")

    for path in input_paths:
        if not Path(path).exists():
            return MergeResult(False, f"Input file does not exist: {path}")

    runner = runner or CondaRunner()
    args = build_merge_args(input_paths, output_path)

    try:
        result = await runner.run_in_env(env_name, 'ffmpeg', args)
    except Exception as e:
        return MergeResult(False, str(e))

    if result.ok:
        return MergeResult(True)
    return MergeResult(False, result.stderr.strip() or "ffmpeg merge failed")
