from pathlib import Path

import pytest

from gopro_join.parser import CameraPrefix, FileDescriptor, describe_rejection, parse_filename


@pytest.mark.parametrize("name, prefix, chapter, group, ext", [
    ("GH010307.MP4", CameraPrefix.AVC, 1, "0307", "MP4"),
    ("GH020307.MP4", CameraPrefix.AVC, 2, "0307", "MP4"),
    ("GX111134.flv", CameraPrefix.HEVC, 11, "1134", "flv"),
    ("GH990001.mp4", CameraPrefix.AVC, 99, "0001", "mp4"),
])
def test_parse_valid_names(name, prefix, chapter, group, ext):
    descriptor = parse_filename(name)

    assert descriptor == FileDescriptor(
        camera_prefix=prefix,
        chapter_index=chapter,
        group_id=group,
        extension=ext,
        source_path=Path(name)
    )
    # Reconstructing the name from the descriptor is lossless
    assert descriptor.file_name == name


@pytest.mark.parametrize("name", [
    "invalid_dots_amount..",
    "name_longer_than_8_chars_.mp4",
    "picture.png",
    "0",
    "",
    "1111111111111111",
    "GY111134.flv",      # unsupported camera code
    "GPAA0000.mp4",      # non-numeric chapter
    "GX000000.mp4",      # chapter 00 and group 0000
    "GH010000.mp4",      # group 0000
    "GH000001.mp4",      # chapter 00 is the merged output
    "GOPR0311.JPG",      # single-file recording / photo
    "GH01034.MP4",       # group too short
    "GH0103071.MP4",     # group too long
    "gh010307.mp4",      # lowercase camera code
    "GH010307",          # no extension
    "GH010307.",         # empty extension
    "GH010307.MP4\n",
    "GH01A307.MP4",
    "GL010307.LRV",      # low resolution proxy
])
def test_parse_rejects_without_raising(name):
    assert parse_filename(name) is None
    assert describe_rejection(name)


def test_parse_sets_source_path_from_directory(tmp_path):
    descriptor = parse_filename("GH010307.MP4", tmp_path)

    assert descriptor.source_path == tmp_path / "GH010307.MP4"


def test_with_chapter_renders_merged_name():
    descriptor = parse_filename("GX030042.Mp4")

    assert descriptor.with_chapter(0) == "GX000042.Mp4"
    assert descriptor.normalized_extension == "mp4"


def test_descriptor_is_immutable():
    descriptor = parse_filename("GH010307.MP4")

    with pytest.raises(AttributeError):
        descriptor.chapter_index = 2


def test_describe_rejection_reasons():
    assert describe_rejection("GH010307.MP4") is None
    assert "camera code" in describe_rejection("GY010307.MP4")
    assert "chapter 00" in describe_rejection("GH000307.MP4")
    assert "0000" in describe_rejection("GH010000.MP4")
