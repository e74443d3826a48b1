"""
FFmpeg utility functions with error handling
"""

from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import ffmpeg

from gopro_join.exceptions import InspectionError
from gopro_join.utils.logger import get_logger


logger = get_logger(__name__)


def probe_duration(video_path: Path, ffprobe_binary: str = "ffprobe") -> float:
    """
    Get video duration in seconds

    Args:
        video_path: Path to video file
        ffprobe_binary: ffprobe executable

    Returns:
        Duration in seconds

    Raises:
        InspectionError: If probe fails
    """
    try:
        probe_data = ffmpeg.probe(str(video_path), cmd=ffprobe_binary)
    except ffmpeg.Error as e:
        stderr = e.stderr.decode('utf-8', errors='replace') if e.stderr else ''
        raise InspectionError(video_path, stderr.strip() or str(e))
    except FileNotFoundError:
        raise InspectionError(
            video_path,
            f"{ffprobe_binary} not found. Please install FFmpeg and ensure it's in PATH"
        )
    except OSError as e:
        raise InspectionError(video_path, f"cannot run {ffprobe_binary}: {e}")
    except ValueError as e:
        raise InspectionError(video_path, f"unreadable ffprobe output ({e})")

    try:
        duration = float(probe_data['format']['duration'])
    except (KeyError, TypeError, ValueError) as e:
        raise InspectionError(video_path, f"no duration in probe output ({e})")

    logger.debug(f"Probed {video_path}: {duration:.3f}s")
    return duration


def escape_concat_path(path: Path) -> str:
    """Quote a path for an ffmpeg concat demuxer ``file`` directive"""
    return "'" + str(path).replace("'", "'\\''") + "'"


def write_concat_manifest(video_list: Iterable[Path], concat_file: Path) -> Path:
    """
    Write the concat demuxer list for the given videos, in order

    Args:
        video_list: Video file paths in playback order
        concat_file: Path to the list file

    Returns:
        Path to the list file
    """
    with open(concat_file, 'w', encoding='utf-8') as f:
        for video_path in video_list:
            f.write(f"file {escape_concat_path(Path(video_path).resolve())}\n")

    logger.debug(f"Wrote concat list {concat_file}")
    return concat_file


def build_concat_command(
    concat_file: Path,
    output_path: Path,
    ffmpeg_binary: str = "ffmpeg"
) -> List[str]:
    """
    Build a stream-copy concat command that reports progress on stdout

    Args:
        concat_file: Concat demuxer list
        output_path: Merged output file (overwritten)
        ffmpeg_binary: ffmpeg executable

    Returns:
        Command as list of strings
    """
    stream = ffmpeg.input(str(concat_file), f='concat', safe=0)
    stream = ffmpeg.output(stream, str(output_path), c='copy')
    stream = stream.global_args('-nostdin', '-loglevel', 'error', '-progress', 'pipe:1')
    return ffmpeg.compile(stream, cmd=ffmpeg_binary, overwrite_output=True)


def parse_progress_line(line: str) -> Optional[Tuple[str, str]]:
    """Split a ``-progress`` output line into (key, value)"""
    line = line.strip()
    if not line or '=' not in line:
        return None
    key, value = line.split('=', 1)
    return key.strip(), value.strip()


def parse_out_time(value: str) -> Optional[float]:
    """
    Parse an ffmpeg ``out_time`` value (``HH:MM:SS.micro``) into seconds

    Returns:
        Seconds, or None for values ffmpeg emits before output starts
        (``N/A`` or negative timestamps)
    """
    value = value.strip()
    if value.startswith('-'):
        return None

    clock, _, fraction = value.partition('.')
    parts = clock.split(':')
    if len(parts) != 3:
        return None

    try:
        hours, minutes, seconds = (int(part) for part in parts)
        subseconds = float(f"0.{fraction}") if fraction else 0.0
    except ValueError:
        return None

    return hours * 3600 + minutes * 60 + seconds + subseconds
