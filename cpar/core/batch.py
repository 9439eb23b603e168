"""
Batch processing for CPAR.

Files are handed to a bounded pool of worker processes. Each worker runs the
whole per-image pipeline independently; the only shared step is creating the
output directory, which happens once before any worker starts.
"""

import logging
import os
import threading
from concurrent.futures import FIRST_COMPLETED, ProcessPoolExecutor, wait
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from tqdm import tqdm

from .config import CropConfig
from .image import ensure_output_directory
from .pipeline import FileResult, process_file

logger = logging.getLogger(__name__)


@dataclass
class BatchReport:
    """Per-file results of a batch, in input order."""
    results: List[FileResult] = field(default_factory=list)
    cancelled: bool = False

    @property
    def succeeded(self) -> List[FileResult]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> List[FileResult]:
        return [r for r in self.results if not r.success]

    @property
    def ok(self) -> bool:
        return not self.cancelled and not self.failed

    def failures_by_kind(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for r in self.failed:
            counts[r.error_kind] = counts.get(r.error_kind, 0) + 1
        return counts

    def summary(self) -> str:
        """Human-readable summary of failures."""
        lines = [f"{len(self.failed)} of {len(self.results)} files failed:"]
        for r in self.failed:
            lines.append(f"  {r.describe()}")
        return "\n".join(lines)


class BatchProcessor:
    """Runs the cropping pipeline over many files."""

    def __init__(self, config: CropConfig, output_dir: Path, workers: Optional[int] = None,
                 show_progress: bool = False):
        """
        Initialize batch processor.

        Args:
            config: Resolved crop configuration
            output_dir: Directory to write results into
            workers: Number of worker processes (defaults to the CPU count)
            show_progress: Display a tqdm progress bar
        """
        if workers is not None and workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")

        self.config = config
        self.output_dir = Path(output_dir)
        self.workers = workers or os.cpu_count() or 1
        self.show_progress = show_progress
        self._stop = threading.Event()

    def prepare(self) -> Path:
        """
        Create the output directory.

        Raises:
            IoError: If the directory cannot be created
        """
        return ensure_output_directory(self.output_dir)

    def cancel(self):
        """Stop handing out new files. Work already running is allowed to finish."""
        self._stop.set()

    @property
    def cancelled(self) -> bool:
        return self._stop.is_set()

    def run(self, sources: Iterable[Path]) -> BatchReport:
        """
        Process all sources.

        Returns:
            BatchReport with one FileResult per processed source

        Raises:
            IoError: If the output directory becomes unusable (fatal)
        """
        sources = [Path(s) for s in sources]
        self.prepare()

        if not sources:
            return BatchReport()

        logger.debug(f"Processing {len(sources)} files with {self.workers} worker(s)")

        with tqdm(total=len(sources), desc="Cropping", unit="image",
                  disable=not self.show_progress) as pbar:
            if self.workers == 1 or len(sources) == 1:
                results = self._run_sequential(sources, pbar)
            else:
                results = self._run_pool(sources, pbar)

        ordered = [results[i] for i in sorted(results)]
        return BatchReport(results=ordered, cancelled=self.cancelled)

    def _record(self, result: FileResult, pbar) -> None:
        if result.success:
            logger.debug(result.describe())
        else:
            logger.error(result.describe())
        pbar.update(1)

    def _run_sequential(self, sources: List[Path], pbar) -> Dict[int, FileResult]:
        results: Dict[int, FileResult] = {}
        for index, source in enumerate(sources):
            if self._stop.is_set():
                break
            try:
                result = process_file(source, self.output_dir, self.config)
            except BaseException:
                self.cancel()
                raise
            results[index] = result
            self._record(result, pbar)
        return results

    def _run_pool(self, sources: List[Path], pbar) -> Dict[int, FileResult]:
        results: Dict[int, FileResult] = {}
        queue = iter(enumerate(sources))
        max_in_flight = 2 * self.workers

        with ProcessPoolExecutor(max_workers=self.workers) as executor:
            in_flight = {}

            def fill():
                while not self._stop.is_set() and len(in_flight) < max_in_flight:
                    item = next(queue, None)
                    if item is None:
                        return
                    index, source = item
                    future = executor.submit(process_file, source, self.output_dir, self.config)
                    in_flight[future] = index

            try:
                fill()
                while in_flight:
                    done, _ = wait(in_flight, return_when=FIRST_COMPLETED)
                    for future in done:
                        index = in_flight.pop(future)
                        result = future.result()
                        results[index] = result
                        self._record(result, pbar)
                    fill()
            except BaseException:
                self.cancel()
                for future in in_flight:
                    future.cancel()
                raise

        return results
