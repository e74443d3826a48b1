"""
External merge collaborator - concatenates chapters without re-encoding
"""

import subprocess
import threading
from abc import ABC, abstractmethod
from collections import deque
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Set

from gopro_join.config import FFmpegConfig
from gopro_join.exceptions import MergeError
from gopro_join.utils.logger import get_logger
from gopro_join.utils.ffmpeg_utils import (
    build_concat_command,
    parse_out_time,
    parse_progress_line,
    probe_duration,
    write_concat_manifest
)


logger = get_logger(__name__)

ProgressCallback = Callable[[float], None]

DIAGNOSTIC_TAIL_LINES = 20


class Merger(ABC):
    """Probes chapter durations and concatenates chapters into one file"""

    @abstractmethod
    def probe_duration(self, path: Path) -> float:
        """
        Duration of a single input file in seconds

        Raises:
            InspectionError: If the file cannot be probed
        """

    @abstractmethod
    def merge(
        self,
        chapters: Sequence[Path],
        output_path: Path,
        on_progress: ProgressCallback,
        diagnostic_path: Optional[Path] = None
    ):
        """
        Concatenate chapters, in the given order, into output_path

        on_progress is called with the elapsed output duration in seconds.

        Raises:
            MergeError: If the merge fails or cannot be started
        """

    def terminate(self):
        """Stop any merge that is still running"""


def _tail(path: Optional[Path], lines: int = DIAGNOSTIC_TAIL_LINES) -> Optional[str]:
    if path is None or not path.exists():
        return None
    with open(path, 'r', encoding='utf-8', errors='replace') as f:
        return ''.join(deque(f, maxlen=lines)).strip() or None


class FFmpegMerger(Merger):
    """Merger backed by the ffmpeg concat demuxer"""

    def __init__(self, config: Optional[FFmpegConfig] = None):
        """
        Initialize ffmpeg merger

        Args:
            config: ffmpeg binary configuration
        """
        self.config = config or FFmpegConfig()
        self.logger = get_logger(f"{__name__}.{self.__class__.__name__}")
        self._processes: Set[subprocess.Popen] = set()
        self._lock = threading.Lock()
        self._terminated = False

    def probe_duration(self, path: Path) -> float:
        return probe_duration(path, ffprobe_binary=self.config.ffprobe_binary)

    def merge(
        self,
        chapters: Sequence[Path],
        output_path: Path,
        on_progress: ProgressCallback,
        diagnostic_path: Optional[Path] = None
    ):
        if not chapters:
            raise MergeError("Cannot concatenate empty chapter list")

        output_path = Path(output_path)
        concat_file = output_path.parent / f".{output_path.stem}_concat.txt"
        write_concat_manifest(chapters, concat_file)

        try:
            cmd = build_concat_command(concat_file, output_path, self.config.ffmpeg_binary)
            self._run(cmd, output_path, on_progress, diagnostic_path)
        finally:
            concat_file.unlink(missing_ok=True)

        self.logger.info(f"Concatenated {len(chapters)} chapters to {output_path}")

    def _run(
        self,
        cmd: List[str],
        output_path: Path,
        on_progress: ProgressCallback,
        diagnostic_path: Optional[Path]
    ):
        self.logger.debug(f"Running FFmpeg: {' '.join(cmd)}")

        if diagnostic_path is not None:
            diagnostic_path.parent.mkdir(parents=True, exist_ok=True)
            stderr = open(diagnostic_path, 'w', encoding='utf-8')
        else:
            stderr = subprocess.DEVNULL

        try:
            with self._lock:
                if self._terminated:
                    raise MergeError(f"Merge of {output_path.name} cancelled")
                try:
                    process = subprocess.Popen(
                        cmd,
                        stdout=subprocess.PIPE,
                        stderr=stderr,
                        stdin=subprocess.DEVNULL,
                        text=True,
                        encoding='utf-8',
                        errors='replace'
                    )
                except FileNotFoundError:
                    raise MergeError(
                        f"{self.config.ffmpeg_binary} not found. "
                        "Please install FFmpeg and ensure it's in PATH"
                    )
                except OSError as e:
                    raise MergeError(f"Failed to start {self.config.ffmpeg_binary}: {e}")
                self._processes.add(process)

            try:
                for line in process.stdout:
                    parsed = parse_progress_line(line)
                    if parsed is None or parsed[0] != 'out_time':
                        continue
                    elapsed = parse_out_time(parsed[1])
                    if elapsed is not None:
                        on_progress(elapsed)
                returncode = process.wait()
            finally:
                process.stdout.close()
                with self._lock:
                    self._processes.discard(process)
        finally:
            if stderr is not subprocess.DEVNULL:
                stderr.close()

        if returncode != 0:
            diagnostic = _tail(diagnostic_path)
            raise MergeError(
                f"FFmpeg failed to merge {output_path.name} (exit code {returncode})",
                diagnostic=diagnostic
            )

    def terminate(self):
        with self._lock:
            self._terminated = True
            processes = list(self._processes)

        for process in processes:
            if process.poll() is None:
                self.logger.warning(f"Terminating ffmpeg process {process.pid}")
                process.terminate()
