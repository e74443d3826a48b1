import io
import logging

import pytest

from gopro_join.utils.logger import get_logger, setup_logger


@pytest.fixture
def logger_name():
    name = "gopro_join_test_logging"
    yield name
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def test_module_loggers_reach_the_configured_stream(logger_name):
    stream = io.StringIO()
    setup_logger(logger_name, level="DEBUG", stream=stream)

    get_logger(f"{logger_name}.grouping").debug("Group 0307: 3 chapter(s)")

    assert "gopro_join_test_logging.grouping - DEBUG - Group 0307: 3 chapter(s)" in stream.getvalue()


def test_reconfiguring_replaces_handlers(logger_name, tmp_path):
    first, second = io.StringIO(), io.StringIO()
    setup_logger(logger_name, level="INFO", stream=first)

    logger = setup_logger(logger_name, level="WARNING", stream=second, log_file=str(tmp_path / "logs" / "run.log"))
    logger.info("not shown")
    logger.warning("Skipping Group 0308")

    assert len(logger.handlers) == 2
    assert first.getvalue() == ""
    assert "not shown" not in second.getvalue()
    assert "Skipping Group 0308" in second.getvalue()
    assert "Skipping Group 0308" in (tmp_path / "logs" / "run.log").read_text()
    assert get_logger(logger_name) is logger
