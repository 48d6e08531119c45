import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Optional

LOG_DIR = Path.home() / ".gbooks"
LOG_FILE = LOG_DIR / "gbooks.log"

CONSOLE_HANDLER = "gbooks.console"
FILE_HANDLER = "gbooks.file"


def _find_handler(logger: logging.Logger, name: str) -> Optional[logging.Handler]:
    return next((h for h in logger.handlers if h.get_name() == name), None)


def setup_logging(level: int = logging.INFO, log_file: Optional[Path] = None):
    """
    Attach a stdout handler and a rotating file handler to the root logger.

    Handlers are installed once per process; calling again only changes the
    console level, so the CLI and the API can both call it.
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    console_handler = _find_handler(root, CONSOLE_HANDLER)
    if console_handler is None:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.set_name(CONSOLE_HANDLER)
        console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
        root.addHandler(console_handler)
    console_handler.setLevel(level)

    if _find_handler(root, FILE_HANDLER) is None:
        path = Path(log_file or LOG_FILE)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            path, maxBytes=10 * 1024 * 1024, backupCount=5, encoding='utf-8'
        )
        file_handler.set_name(FILE_HANDLER)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        root.addHandler(file_handler)
        logging.getLogger(__name__).debug(f"Log file: {path}")
