import logging
import pytest

from gbooks import logger
from gbooks.config import default_log


@pytest.fixture
def root_handlers():
    """Restore the root logger's handlers after the test."""
    root = logging.getLogger()
    original = list(root.handlers)
    yield root
    for handler in root.handlers:
        if handler not in original:
            handler.close()
    root.handlers = original


def test_logger_setup(tmp_path, monkeypatch, root_handlers):
    # Patch LOG_DIR to tmp
    monkeypatch.setattr(logger, "LOG_DIR", tmp_path)
    monkeypatch.setattr(logger, "LOG_FILE", tmp_path / "test.log")

    logger.setup_logging()
    logging.info("Test Log Entry")

    content = (tmp_path / "test.log").read_text(encoding='utf-8')
    assert "Test Log Entry" in content


def test_setup_logging_twice_installs_handlers_once(tmp_path, root_handlers):
    log_file = tmp_path / "nested" / "gbooks.log"

    logger.setup_logging(log_file=log_file)
    logger.setup_logging(logging.WARNING, log_file=log_file)
    logging.getLogger("gbooks").info("Only Once")

    names = [h.get_name() for h in root_handlers.handlers]
    assert names.count(logger.CONSOLE_HANDLER) == 1
    assert names.count(logger.FILE_HANDLER) == 1
    assert log_file.read_text(encoding='utf-8').count("Only Once") == 1


def test_setup_logging_again_updates_console_level(tmp_path, root_handlers):
    logger.setup_logging(logging.INFO, log_file=tmp_path / "gbooks.log")
    logger.setup_logging(logging.WARNING, log_file=tmp_path / "gbooks.log")

    console = next(h for h in root_handlers.handlers if h.get_name() == logger.CONSOLE_HANDLER)
    assert console.level == logging.WARNING


def test_default_log_writes_to_gbooks_logger(caplog):
    with caplog.at_level(logging.INFO, logger="gbooks"):
        default_log(logging.INFO, "Searching for books with query", {"query": "dune"})
        default_log(logging.INFO, "Requesting data from Google Books cache")

    messages = [record.getMessage() for record in caplog.records if record.name == "gbooks"]
    assert messages == [
        "Searching for books with query {'query': 'dune'}",
        "Requesting data from Google Books cache",
    ]
