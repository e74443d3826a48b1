"""
Merge Orchestrator - Runs merge jobs with bounded parallelism
"""

import concurrent.futures
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from gopro_join.config import MergeConfig
from gopro_join.exceptions import ClassificationError, InspectionError, MergeError
from gopro_join.grouping import JobState, MergeJob, group_directory
from gopro_join.merger import Merger
from gopro_join.progress import ProgressAggregator, ProgressEvent
from gopro_join.utils.logger import get_logger


@dataclass
class JobResult:
    """Final outcome of one merge job"""
    job: MergeJob
    state: JobState
    error: Optional[str] = None
    diagnostic: Optional[str] = None
    duration: Optional[float] = None
    elapsed: float = 0.0


@dataclass
class MergeReport:
    """Outcome of a whole run"""
    results: List[JobResult] = field(default_factory=list)
    classification_errors: List[ClassificationError] = field(default_factory=list)
    ignored: List[str] = field(default_factory=list)

    @property
    def completed(self) -> List[JobResult]:
        return [r for r in self.results if r.state == JobState.COMPLETED]

    @property
    def failed(self) -> List[JobResult]:
        return [r for r in self.results if r.state == JobState.FAILED]

    @property
    def skipped(self) -> List[JobResult]:
        return [r for r in self.results if not r.state.is_terminal]

    @property
    def success(self) -> bool:
        return not self.failed and not self.skipped and not self.classification_errors

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1

    def to_dict(self) -> Dict:
        """Outcome per group, for machine-readable output"""
        return {
            'success': self.success,
            'completed': [r.job.group_id for r in self.completed],
            'failed': [
                {'group': r.job.group_id, 'output': str(r.job.output_path), 'error': r.error}
                for r in self.failed
            ],
            'skipped': [r.job.group_id for r in self.skipped],
            'rejected': [
                {'group': e.group_id, 'reason': e.reason}
                for e in self.classification_errors
            ],
            'ignored': len(self.ignored)
        }


class MergeOrchestrator:
    """Drives every MergeJob to Completed or Failed, at most `parallel` at a time"""

    def __init__(
        self,
        merger: Merger,
        aggregator: ProgressAggregator,
        parallel: int = 1,
        cleanup_partial: bool = False,
        diagnostics_dir: Optional[Path] = None,
        keep_diagnostics: bool = False
    ):
        """
        Initialize merge orchestrator

        Args:
            merger: External merge collaborator
            aggregator: Receives progress events of all jobs
            parallel: Maximum number of concurrently running jobs
            cleanup_partial: Delete the output file of a failed job
            diagnostics_dir: Where ffmpeg logs go (default: next to each output)
            keep_diagnostics: Keep ffmpeg logs of successful jobs
        """
        if parallel < 1:
            raise ValueError(f"parallel must be a positive integer, got {parallel}")

        self.merger = merger
        self.aggregator = aggregator
        self.parallel = parallel
        self.cleanup_partial = cleanup_partial
        self.diagnostics_dir = Path(diagnostics_dir) if diagnostics_dir else None
        self.keep_diagnostics = keep_diagnostics
        self.logger = get_logger(f"gopro_join.{self.__class__.__name__}")

        self._failures = 0
        self._failures_lock = threading.Lock()
        self._cancelled = threading.Event()

    @property
    def failures(self) -> int:
        with self._failures_lock:
            return self._failures

    def cancel(self):
        """Stop running merges and leave jobs that have not started pending"""
        if self._cancelled.is_set():
            return
        self.logger.warning("Cancelling merge run")
        self._cancelled.set()
        self.merger.terminate()

    def run(self, jobs: List[MergeJob]) -> MergeReport:
        """
        Run all jobs and collect their results

        Args:
            jobs: Validated merge jobs, admitted in this order

        Returns:
            MergeReport with one JobResult per job, in input order
        """
        results = {}
        self.logger.info(f"Merging {len(jobs)} recording(s) with {self.parallel} worker(s)")

        self.aggregator.open(jobs)
        executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=self.parallel,
            thread_name_prefix="merge"
        )
        try:
            future_to_job = {
                executor.submit(self._run_job, job): job
                for job in jobs
            }

            for future in concurrent.futures.as_completed(future_to_job):
                job = future_to_job[future]
                try:
                    results[job.group_id] = future.result()
                except Exception as e:
                    self.logger.error(f"Unexpected error merging {job.name}: {e}")
                    results[job.group_id] = self._fail(job, str(e))
        except KeyboardInterrupt:
            self.cancel()
            executor.shutdown(wait=True, cancel_futures=True)
            raise
        finally:
            executor.shutdown(wait=True)
            self.aggregator.close()

        return MergeReport(results=[results[job.group_id] for job in jobs])

    def _run_job(self, job: MergeJob) -> JobResult:
        if self._cancelled.is_set():
            return JobResult(job=job, state=job.state, error="cancelled")

        started = time.monotonic()
        job.state = JobState.RUNNING
        self.logger.debug(f"Starting {job.name} ({len(job.chapters)} chapters)")

        total = self._total_duration(job)
        self.aggregator.emit(ProgressEvent(job.group_id, 0.0, total, JobState.RUNNING))

        last_elapsed = [0.0]

        def on_progress(elapsed: float):
            last_elapsed[0] = elapsed
            self.aggregator.emit(ProgressEvent(job.group_id, elapsed, total))

        diagnostic_path = self._diagnostic_path(job)
        try:
            self.merger.merge(job.chapter_paths, job.output_path, on_progress, diagnostic_path)
        except MergeError as e:
            self.logger.error(f"Failed to merge {job.name}: {e}")
            if e.diagnostic:
                self.logger.error(f"ffmpeg output for {job.name}:\n{e.diagnostic}")
            return self._fail(
                job,
                str(e),
                diagnostic=e.diagnostic,
                duration=total,
                elapsed=time.monotonic() - started
            )

        job.state = JobState.COMPLETED
        if not self.keep_diagnostics:
            diagnostic_path.unlink(missing_ok=True)

        self.aggregator.emit(ProgressEvent(
            job.group_id,
            total if total is not None else last_elapsed[0],
            total,
            JobState.COMPLETED
        ))
        self.logger.info(f"Merged {job.name} from {len(job.chapters)} chapter(s)")
        return JobResult(
            job=job,
            state=JobState.COMPLETED,
            duration=total,
            elapsed=time.monotonic() - started
        )

    def _total_duration(self, job: MergeJob) -> Optional[float]:
        """Sum of chapter durations, None if any chapter cannot be probed"""
        total = 0.0
        for chapter in job.chapter_paths:
            try:
                total += self.merger.probe_duration(chapter)
            except InspectionError as e:
                self.logger.warning(f"{e}; progress of {job.name} is reported as elapsed time only")
                return None
        return total

    def _diagnostic_path(self, job: MergeJob) -> Path:
        directory = self.diagnostics_dir or job.output_path.parent
        return directory / f"{job.name}.log"

    def _fail(self, job: MergeJob, error: str, diagnostic: Optional[str] = None,
              duration: Optional[float] = None, elapsed: float = 0.0) -> JobResult:
        job.state = JobState.FAILED
        with self._failures_lock:
            self._failures += 1

        if self.cleanup_partial and job.output_path.exists():
            self.logger.info(f"Removing partial output {job.output_path}")
            job.output_path.unlink(missing_ok=True)

        self.aggregator.emit(ProgressEvent(job.group_id, status=JobState.FAILED, message=error))
        return JobResult(
            job=job,
            state=JobState.FAILED,
            error=error,
            diagnostic=diagnostic,
            duration=duration,
            elapsed=elapsed
        )


def process_directory(
    config: MergeConfig,
    input_dir: Path,
    output_dir: Path,
    merger: Merger,
    aggregator: ProgressAggregator
) -> MergeReport:
    """
    Classify a directory and merge every valid chapter group

    Args:
        config: Merge configuration
        input_dir: Directory holding the chapter files
        output_dir: Directory the merged recordings are written to
        merger: External merge collaborator
        aggregator: Receives progress events

    Returns:
        MergeReport covering rejected groups and merge outcomes
    """
    grouping = group_directory(input_dir, output_dir, config.extensions)

    orchestrator = MergeOrchestrator(
        merger,
        aggregator,
        parallel=config.parallel,
        cleanup_partial=config.output.cleanup_partial,
        diagnostics_dir=Path(config.output.diagnostics_dir) if config.output.diagnostics_dir else None,
        keep_diagnostics=config.output.keep_diagnostics
    )
    report = orchestrator.run(grouping.jobs)
    report.classification_errors = grouping.errors
    report.ignored = grouping.ignored
    return report


def format_report(report: MergeReport) -> str:
    """Human-readable summary of a run"""
    lines = ["=" * 60]
    lines.append("SUCCESS: all recordings merged" if report.success else "FAILED: some recordings were not merged")
    lines.append("=" * 60)

    for result in report.completed:
        lines.append(f"Merged   {result.job.name} ({len(result.job.chapters)} chapters)")
    for result in report.failed:
        lines.append(f"Failed   {result.job.name}: {result.error}")
    for result in report.skipped:
        lines.append(f"Skipped  {result.job.name} (not started)")
    for error in report.classification_errors:
        lines.append(f"Rejected group {error.group_id}: {error.reason}")

    lines.append(
        f"\n{len(report.completed)} merged, {len(report.failed)} failed, "
        f"{len(report.skipped)} skipped, {len(report.classification_errors)} rejected, "
        f"{len(report.ignored)} other files ignored"
    )
    return "\n".join(lines)
