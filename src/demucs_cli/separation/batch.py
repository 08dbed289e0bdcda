"""
Batch separation.

Files are processed in consecutive groups of ``options.concurrency``; every
file in a group runs at once and the next group starts only when the whole
group has finished. A concurrency of 1 is plain sequential processing.
Results always come back in input order and a failed file never stops the
batch.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from demucs_cli.core.conda import CondaRunner
from demucs_cli.core.config import ProcessOptions
from demucs_cli.separation.demucs_sep import FileProcessResult, build_runner, process_audio_file

logger = logging.getLogger(__name__)

# (index, total, result); index is 1-based
ResultCallback = Callable[[int, int, FileProcessResult], None]


@dataclass(frozen=True)
class BatchProcessResult:
    success: bool
    results: List[FileProcessResult] = field(default_factory=list)
    elapsed: float = 0.0

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return len(self.results) - self.succeeded


def chunk_files(file_paths: Sequence[str], size: int) -> List[List[str]]:
    """Split into consecutive groups of ``size``; the last group may be smaller."""
    size = max(1, size)
    return [list(file_paths[i:i + size]) for i in range(0, len(file_paths), size)]


async def _process_one(file_path: str, options: ProcessOptions, runner: CondaRunner) -> FileProcessResult:
    result = await process_audio_file(file_path, options, runner)
    return FileProcessResult.from_result(file_path, result)


async def process_audio_files_with_progress(file_paths: Sequence[str],
                                            options: ProcessOptions,
                                            runner: Optional[CondaRunner] = None,
                                            on_result: Optional[ResultCallback] = None) -> BatchProcessResult:
    """
    Separate a list of files, at most ``options.concurrency`` at a time.

    Args:
        file_paths: Input audio files
        options: Processing options (shared read-only by every file)
        runner: Command runner (default: built from ``options``)
        on_result: Called once per file, in input order, as results are recorded

    Returns:
        BatchProcessResult; ``success`` is True only if every file succeeded
    """
    runner = runner or build_runner(options)
    file_paths = [str(p) for p in file_paths]
    total = len(file_paths)
    groups = chunk_files(file_paths, options.concurrency)

    results: List[FileProcessResult] = []
    start = time.time()

    for group_index, group in enumerate(groups, 1):
        group_results = await asyncio.gather(
            *(_process_one(path, options, runner) for path in group)
        )

        for result in group_results:
            results.append(result)
            index = len(results)
            if result.success:
                logger.debug(f"[{index}/{total}] Done: {result.file}")
            else:
                logger.warning(f"[{index}/{total}] Failed: {result.file}")
                if result.error:
                    logger.debug(f"  Error: {result.error}")
            if on_result is not None:
                on_result(index, total, result)

        if len(groups) > 1 and options.concurrency > 1:
            ok = sum(1 for r in group_results if r.success)
            logger.info(f"[Group {group_index}/{len(groups)}] {ok}/{len(group_results)} succeeded")

    batch = BatchProcessResult(
        success=all(r.success for r in results),
        results=results,
        elapsed=time.time() - start,
    )

    logger.info("=" * 60)
    logger.info("Batch Separation Summary:")
    logger.info(f"  Total files:  {total}")
    logger.info(f"  Successful:   {batch.succeeded}")
    logger.info(f"  Failed:       {batch.failed}")
    logger.info(f"  Elapsed:      {batch.elapsed:.1f}s")
    logger.info("=" * 60)

    return batch
