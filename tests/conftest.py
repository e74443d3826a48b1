import sys
import threading
import time
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from gopro_join.exceptions import InspectionError, MergeError
from gopro_join.merger import Merger
from gopro_join.progress import Reporter


class FakeMerger(Merger):
    """Simulates ffmpeg: reports progress, fails on request, tracks concurrency"""

    def __init__(self, durations=None, fail=(), probe_fail=(), delays=None, gate=None, steps=(0.5, 1.0)):
        self.durations = durations or {}
        self.fail = set(fail)
        self.probe_fail = set(probe_fail)
        self.delays = delays or {}
        self.gate = gate
        self.steps = steps

        self.lock = threading.Lock()
        self.running = 0
        self.max_running = 0
        self.started = []
        self.finished = []
        self.merged = {}
        self.terminated = False

    def probe_duration(self, path):
        if Path(path).name in self.probe_fail:
            raise InspectionError(path, "moov atom not found")
        return self.durations.get(Path(path).name, 10.0)

    def merge(self, chapters, output_path, on_progress, diagnostic_path=None):
        with self.lock:
            self.running += 1
            self.max_running = max(self.max_running, self.running)
            self.started.append(output_path.name)

        try:
            if self.gate is not None:
                assert self.gate.wait(timeout=10), "gate was never opened"
            time.sleep(self.delays.get(output_path.name, 0))

            total = sum(self.probe_duration(c) for c in chapters if Path(c).name not in self.probe_fail)
            for step in self.steps:
                on_progress(step * total)

            if output_path.name in self.fail or self.terminated:
                if diagnostic_path is not None:
                    diagnostic_path.write_text("Invalid data found when processing input\n")
                output_path.write_bytes(b"partial")
                raise MergeError(
                    f"FFmpeg failed to merge {output_path.name} (exit code 1)",
                    diagnostic="Invalid data found when processing input"
                )

            if diagnostic_path is not None:
                diagnostic_path.write_text("")
            output_path.write_bytes(b"".join(Path(c).read_bytes() for c in chapters))
            self.merged[output_path.name] = [Path(c).name for c in chapters]
        finally:
            with self.lock:
                self.running -= 1
                self.finished.append(output_path.name)

    def terminate(self):
        self.terminated = True
        if self.gate is not None:
            self.gate.set()


class RecordingReporter(Reporter):
    """Keeps every call for later assertions"""

    def __init__(self):
        self.jobs = None
        self.events = []
        self.finished = False

    def start(self, jobs):
        self.jobs = list(jobs)

    def update(self, event):
        self.events.append(event)

    def finish(self):
        self.finished = True

    def events_for(self, job_id):
        return [e for e in self.events if e.job_id == job_id]


@pytest.fixture
def make_files(tmp_path):
    """Create files (content = their name) in a directory and return it"""
    def _make(*names, directory=None):
        directory = Path(directory) if directory else tmp_path / "input"
        directory.mkdir(parents=True, exist_ok=True)
        for name in names:
            (directory / name).write_bytes(name.encode())
        return directory
    return _make


@pytest.fixture
def fake_merger():
    return FakeMerger()


@pytest.fixture
def reporter():
    return RecordingReporter()
