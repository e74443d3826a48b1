"""
Group Assembler - Turns parsed chapter files into validated merge jobs
"""

from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from gopro_join.exceptions import ClassificationError
from gopro_join.parser import FileDescriptor, MERGED_CHAPTER, describe_rejection, parse_filename
from gopro_join.utils.logger import get_logger


logger = get_logger(__name__)


class JobState(Enum):
    """Lifecycle of a merge job"""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobState.COMPLETED, JobState.FAILED)


@dataclass
class MergeJob:
    """One output recording built from the ordered chapters of a group"""
    group_id: str
    chapters: Tuple[FileDescriptor, ...]
    output_path: Path
    state: JobState = JobState.PENDING

    @property
    def name(self) -> str:
        return self.output_path.name

    @property
    def chapter_paths(self) -> List[Path]:
        return [chapter.source_path for chapter in self.chapters]


@dataclass
class GroupingResult:
    """Merge jobs plus the groups that were rejected"""
    jobs: List[MergeJob] = field(default_factory=list)
    errors: List[ClassificationError] = field(default_factory=list)
    ignored: List[str] = field(default_factory=list)


def scan_directory(
    directory: Path,
    extensions: Optional[Sequence[str]] = None
) -> Tuple[List[FileDescriptor], List[str]]:
    """
    Parse every regular file of a directory (non-recursive)

    Args:
        directory: Directory to scan
        extensions: Only consider these extensions (case-insensitive); None = all

    Returns:
        Tuple of (descriptors, names of ignored files)
    """
    directory = Path(directory)
    allowed = {ext.lower().lstrip('.') for ext in extensions} if extensions else None

    descriptors = []
    ignored = []

    for entry in sorted(directory.iterdir()):
        if entry.name.startswith('.') or not entry.is_file():
            continue

        descriptor = parse_filename(entry.name, directory)
        if descriptor is None:
            logger.debug(f"Ignoring {entry.name}: {describe_rejection(entry.name)}")
            ignored.append(entry.name)
            continue

        if allowed is not None and descriptor.normalized_extension not in allowed:
            logger.debug(f"Ignoring {entry.name}: extension not in {sorted(allowed)}")
            ignored.append(entry.name)
            continue

        descriptors.append(descriptor)

    logger.info(
        f"Found {len(descriptors)} chapter files in {directory} "
        f"({len(ignored)} other files ignored)"
    )
    return descriptors, ignored


def _validate_group(group_id: str, chapters: List[FileDescriptor]):
    """Raise ClassificationError unless chapters form 1..N of one camera and extension"""
    prefixes = {chapter.camera_prefix for chapter in chapters}
    if len(prefixes) > 1:
        raise ClassificationError(
            group_id,
            f"mixed camera codes {', '.join(sorted(p.value for p in prefixes))}"
        )

    extensions = {chapter.normalized_extension for chapter in chapters}
    if len(extensions) > 1:
        raise ClassificationError(
            group_id,
            f"mixed extensions {', '.join(sorted(extensions))}"
        )

    indices = [chapter.chapter_index for chapter in chapters]

    duplicates = sorted({index for index in indices if indices.count(index) > 1})
    if duplicates:
        names = ", ".join(c.file_name for c in chapters if c.chapter_index in duplicates)
        raise ClassificationError(
            group_id,
            f"duplicate chapter(s) {', '.join(f'{i:02d}' for i in duplicates)} ({names})"
        )

    missing = sorted(set(range(1, max(indices) + 1)) - set(indices))
    if missing:
        raise ClassificationError(
            group_id,
            f"missing chapter(s) {', '.join(f'{i:02d}' for i in missing)}; "
            f"found {', '.join(f'{i:02d}' for i in indices)}"
        )


def assemble_jobs(
    descriptors: Iterable[FileDescriptor],
    output_dir: Path
) -> GroupingResult:
    """
    Cluster chapters by group id and build one MergeJob per valid group

    Invalid groups are reported as ClassificationError entries and never
    stop the other groups from being assembled.

    Args:
        descriptors: Parsed chapter files, in any order
        output_dir: Directory the merged recordings go to

    Returns:
        GroupingResult with jobs ordered by group id
    """
    clusters: Dict[str, List[FileDescriptor]] = defaultdict(list)
    for descriptor in descriptors:
        clusters[descriptor.group_id].append(descriptor)

    result = GroupingResult()
    claimed_outputs: Dict[Path, str] = {}

    for group_id in sorted(clusters):
        chapters = sorted(clusters[group_id], key=lambda c: c.chapter_index)

        try:
            _validate_group(group_id, chapters)

            output_path = Path(output_dir) / chapters[0].with_chapter(MERGED_CHAPTER)
            if output_path in claimed_outputs:
                raise ClassificationError(
                    group_id,
                    f"output {output_path.name} collides with group {claimed_outputs[output_path]}"
                )
        except ClassificationError as e:
            logger.warning(f"Skipping {e}")
            result.errors.append(e)
            continue

        claimed_outputs[output_path] = group_id
        result.jobs.append(MergeJob(
            group_id=group_id,
            chapters=tuple(chapters),
            output_path=output_path
        ))
        logger.debug(
            f"Group {group_id}: {len(chapters)} chapter(s) -> {output_path.name}"
        )

    return result


def group_directory(
    input_dir: Path,
    output_dir: Optional[Path] = None,
    extensions: Optional[Sequence[str]] = None
) -> GroupingResult:
    """Scan a directory and assemble its merge jobs"""
    descriptors, ignored = scan_directory(input_dir, extensions)
    result = assemble_jobs(descriptors, output_dir if output_dir is not None else input_dir)
    result.ignored = ignored
    return result
