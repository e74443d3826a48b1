"""
Progress reporting for merge jobs

Workers emit ProgressEvents into a ProgressAggregator; a single consumer
thread forwards them to a Reporter, so rendering never runs on (or blocks)
a worker thread.
"""

import json
import queue
import sys
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, TextIO

from tqdm import tqdm

from gopro_join.exceptions import ConfigurationError
from gopro_join.grouping import JobState, MergeJob
from gopro_join.utils.logger import get_logger


logger = get_logger(__name__)

_STOP = object()


@dataclass(frozen=True)
class ProgressEvent:
    """Progress of one job: elapsed output time, and the expected total if known"""
    job_id: str
    elapsed: float = 0.0
    total: Optional[float] = None
    status: Optional[JobState] = None
    message: Optional[str] = None

    @property
    def fraction(self) -> Optional[float]:
        """Fraction complete in [0, 1], None when the total duration is unknown"""
        if not self.total or self.total <= 0:
            return None
        return max(0.0, min(1.0, self.elapsed / self.total))


def format_duration(seconds: Optional[float]) -> str:
    """Format seconds as HH:MM:SS"""
    if seconds is None:
        return "Unknown"
    seconds = max(0, int(seconds))
    return f"{seconds // 3600:02d}:{seconds % 3600 // 60:02d}:{seconds % 60:02d}"


class Reporter(ABC):
    """Renders progress events; between start() and finish() only the aggregator thread calls it"""

    @abstractmethod
    def start(self, jobs: List[MergeJob]):
        pass

    @abstractmethod
    def update(self, event: ProgressEvent):
        pass

    @abstractmethod
    def finish(self):
        pass

    def summary(self, report):
        """Final outcome of the run, called after finish()"""


class ProgressBarReporter(Reporter):
    """One tqdm bar per merge job"""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stderr
        self._bars: Dict[str, tqdm] = {}

    def start(self, jobs: List[MergeJob]):
        for position, job in enumerate(jobs):
            self._bars[job.group_id] = tqdm(
                total=100,
                desc=f"{job.name:15}",
                position=position,
                unit="%",
                file=self.stream,
                leave=True,
                bar_format="{desc} {bar:40} {percentage:3.0f}% {postfix}"
            )
            self._bars[job.group_id].set_postfix_str("00:00:00 / Unknown")

    def update(self, event: ProgressEvent):
        bar = self._bars.get(event.job_id)
        if bar is None:
            return

        if event.status == JobState.COMPLETED:
            bar.n = 100
            bar.set_postfix_str(f"{format_duration(event.total or event.elapsed)} done")
        elif event.status == JobState.FAILED:
            bar.set_postfix_str("FAILED")
        elif event.status == JobState.RUNNING:
            bar.set_postfix_str(f"00:00:00 / {format_duration(event.total)}")
        else:
            fraction = event.fraction
            if fraction is not None:
                bar.n = round(fraction * 100)
            bar.set_postfix_str(
                f"{format_duration(event.elapsed)} / {format_duration(event.total)}"
            )
        bar.refresh()

    def finish(self):
        for bar in self._bars.values():
            bar.close()
        self._bars.clear()


class JsonReporter(Reporter):
    """Writes one JSON object per line"""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stdout

    def _write(self, payload: Dict):
        self.stream.write(json.dumps(payload) + "\n")
        self.stream.flush()

    def start(self, jobs: List[MergeJob]):
        self._write({
            'event': 'start',
            'jobs': [
                {
                    'group': job.group_id,
                    'output': str(job.output_path),
                    'chapters': [str(path) for path in job.chapter_paths]
                }
                for job in jobs
            ]
        })

    def update(self, event: ProgressEvent):
        payload = {
            'event': 'status' if event.status else 'progress',
            'group': event.job_id,
            'elapsed': round(event.elapsed, 3),
            'total': round(event.total, 3) if event.total is not None else None,
            'fraction': round(event.fraction, 4) if event.fraction is not None else None
        }
        if event.status:
            payload['status'] = event.status.value
        if event.message:
            payload['message'] = event.message
        self._write(payload)

    def finish(self):
        self._write({'event': 'finish'})

    def summary(self, report):
        self._write({'event': 'summary', **report.to_dict()})


def get_reporter(name: str, stream: Optional[TextIO] = None) -> Reporter:
    """
    Create a reporter by name

    Args:
        name: 'progressbar' or 'json'
        stream: Optional output stream

    Returns:
        Reporter instance

    Raises:
        ConfigurationError: If the reporter name is unknown
    """
    if name == "progressbar":
        return ProgressBarReporter(stream)
    if name == "json":
        return JsonReporter(stream)
    raise ConfigurationError(f"Unknown reporter: {name}. Must be 'progressbar' or 'json'")


class ProgressAggregator:
    """Non-blocking fan-in of progress events from concurrent workers"""

    def __init__(self, reporter: Reporter):
        self.reporter = reporter
        self._queue: "queue.Queue" = queue.Queue()
        self._thread: Optional[threading.Thread] = None

    def open(self, jobs: List[MergeJob]):
        """Start the reporter and the consumer thread"""
        if self._thread is not None:
            return
        self.reporter.start(jobs)
        self._thread = threading.Thread(target=self._consume, name="progress", daemon=True)
        self._thread.start()

    def emit(self, event: ProgressEvent):
        """Queue an event; never blocks the caller"""
        self._queue.put_nowait(event)

    def close(self):
        """Deliver all queued events, then finish the reporter"""
        if self._thread is None:
            return
        self._queue.put_nowait(_STOP)
        self._thread.join()
        self._thread = None
        self.reporter.finish()

    def _consume(self):
        while True:
            event = self._queue.get()
            if event is _STOP:
                return
            try:
                self.reporter.update(event)
            except Exception as e:
                # Reporter errors are logged, never propagated to workers
                logger.warning(f"Reporter failed on {event}: {e}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
