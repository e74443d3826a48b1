"""
Filename Parser - Classifies camera chapter filenames

GoPro cameras split long recordings into chapters named
``<code><chapter><group>.<ext>``, e.g. ``GH020307.MP4`` is chapter 2 of
recording 0307 shot with AVC encoding.
"""

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional


MERGED_CHAPTER = 0

_FILENAME_RE = re.compile(
    r"(?P<code>[A-Z]{2})(?P<chapter>[0-9]{2})(?P<group>[0-9]{4})\.(?P<ext>[A-Za-z0-9]+)"
)


class CameraPrefix(Enum):
    """Two-letter camera codes of the chaptered-video naming scheme"""
    AVC = "GH"
    HEVC = "GX"

    @classmethod
    def from_code(cls, code: str) -> Optional['CameraPrefix']:
        for prefix in cls:
            if prefix.value == code:
                return prefix
        return None

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class FileDescriptor:
    """Identity of a single chapter file"""
    camera_prefix: CameraPrefix
    chapter_index: int
    group_id: str
    extension: str
    source_path: Path

    @property
    def file_name(self) -> str:
        return self.with_chapter(self.chapter_index)

    @property
    def normalized_extension(self) -> str:
        return self.extension.lower()

    def with_chapter(self, chapter_index: int) -> str:
        """Render the filename of another chapter of the same recording"""
        return f"{self.camera_prefix.value}{chapter_index:02d}{self.group_id}.{self.extension}"


def describe_rejection(file_name: str) -> Optional[str]:
    """
    Explain why a filename is not a chapter of a chaptered recording

    Args:
        file_name: Bare filename without directory

    Returns:
        Reason string, or None if the filename is a valid chapter
    """
    match = _FILENAME_RE.fullmatch(file_name)
    if match is None:
        return "does not match <code><chapter:2><group:4>.<ext>"

    if CameraPrefix.from_code(match.group("code")) is None:
        supported = ", ".join(prefix.value for prefix in CameraPrefix)
        return f"unsupported camera code {match.group('code')} (supported: {supported})"

    if int(match.group("chapter")) == MERGED_CHAPTER:
        return "chapter 00 is reserved for merged recordings"

    if int(match.group("group")) == 0:
        return "group 0000 is not a valid recording number"

    return None


def parse_filename(file_name: str, directory: Optional[Path] = None) -> Optional[FileDescriptor]:
    """
    Parse a chapter filename into a FileDescriptor

    Args:
        file_name: Bare filename without directory
        directory: Directory the file lives in, used for source_path

    Returns:
        FileDescriptor, or None if the name is not a chaptered-recording filename
    """
    if describe_rejection(file_name) is not None:
        return None

    match = _FILENAME_RE.fullmatch(file_name)
    source_path = Path(directory) / file_name if directory is not None else Path(file_name)

    return FileDescriptor(
        camera_prefix=CameraPrefix.from_code(match.group("code")),
        chapter_index=int(match.group("chapter")),
        group_id=match.group("group"),
        extension=match.group("ext"),
        source_path=source_path
    )
