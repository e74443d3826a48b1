import json
import logging

import pytest
import yaml

from conftest import FakeMerger
from gopro_join import cli


@pytest.fixture(autouse=True)
def reset_logger():
    yield
    logger = logging.getLogger("gopro_join")
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.propagate = True


@pytest.fixture
def fake_ffmpeg(monkeypatch):
    mergers = []

    def factory(config):
        merger = FakeMerger()
        mergers.append(merger)
        return merger

    monkeypatch.setattr(cli, "FFmpegMerger", factory)
    return mergers


def test_parser_defaults():
    args = cli.build_parser().parse_args([])

    assert str(args.input) == "."
    assert args.output is None
    assert args.parallel is None


def test_threads_is_an_alias_for_parallel():
    assert cli.build_parser().parse_args(["-t", "3"]).parallel == 3


def test_empty_directory_succeeds(tmp_path, fake_ffmpeg, capsys):
    assert cli.main([str(tmp_path), "--reporter", "json"]) == 0


def test_missing_input_directory(tmp_path, capsys):
    assert cli.main([str(tmp_path / "missing")]) == 2
    assert "Input directory not found" in capsys.readouterr().err


def test_zero_parallelism_is_rejected(tmp_path, capsys):
    assert cli.main([str(tmp_path), "--parallel", "0"]) == 2
    assert "--parallel" in capsys.readouterr().err


def test_create_config(tmp_path, capsys):
    path = tmp_path / "gopro-join.yaml"

    assert cli.main(["--create-config", str(path)]) == 0

    data = yaml.safe_load(path.read_text())
    assert data["merge"]["parallel"] == 0
    assert data["merge"]["extensions"] == ["mp4"]
    assert data["output"]["reporter"] == "progressbar"


def test_config_file_and_overrides(tmp_path):
    path = tmp_path / "gopro-join.yaml"
    path.write_text("merge:\n  parallel: 4\nffmpeg:\n  ffmpeg_binary: /opt/ffmpeg\n")
    args = cli.build_parser().parse_args(["--config", str(path), "-p", "2", "--cleanup-partial", "-v"])

    config = cli.load_config(args)

    assert config.parallel == 2
    assert config.ffmpeg.ffmpeg_binary == "/opt/ffmpeg"
    assert config.output.cleanup_partial is True
    assert config.logging.level == "DEBUG"


def test_merges_directory_with_json_progress(make_files, tmp_path, fake_ffmpeg, capsys):
    input_dir = make_files("GH010307.MP4", "GH020307.MP4", "GH010308.MP4", "GH030308.MP4", "GOPR0311.JPG")
    output_dir = tmp_path / "merged"

    exit_code = cli.main([str(input_dir), str(output_dir), "--reporter", "json", "-p", "2"])

    assert exit_code == 1
    assert (output_dir / "GH000307.MP4").read_bytes() == b"GH010307.MP4GH020307.MP4"
    assert not (output_dir / "GH000308.MP4").exists()

    events = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    assert events[0]["event"] == "start"
    assert [job["group"] for job in events[0]["jobs"]] == ["0307"]
    assert {"event": "status", "status": "completed"}.items() <= events[-3].items()
    assert events[-2] == {"event": "finish"}
    assert events[-1] == {
        "event": "summary",
        "success": False,
        "completed": ["0307"],
        "failed": [],
        "skipped": [],
        "rejected": [{"group": "0308", "reason": "missing chapter(s) 02; found 01, 03"}],
        "ignored": 1
    }


def test_prints_summary_with_progressbar(make_files, fake_ffmpeg, capsys):
    input_dir = make_files("GH010307.MP4", "GH020307.MP4")

    assert cli.main([str(input_dir)]) == 0

    out = capsys.readouterr().out
    assert "SUCCESS" in out
    assert "Merged   GH000307.MP4 (2 chapters)" in out
    assert (input_dir / "GH000307.MP4").exists()
