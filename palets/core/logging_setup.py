import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_DIR = Path(__file__).resolve().parent.parent.parent / "logs"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(log_dir: Path | None = None) -> None:
    target_dir = log_dir if log_dir is not None else LOG_DIR
    target_dir.mkdir(parents=True, exist_ok=True)
    log_path = target_dir / "app.log"
    crash_path = target_dir / "crash.log"

    formatter = logging.Formatter(LOG_FORMAT)

    file_handler = RotatingFileHandler(
        log_path, maxBytes=1_000_000, backupCount=3, encoding="utf-8"
    )
    file_handler.setFormatter(formatter)

    crash_handler = RotatingFileHandler(
        crash_path, maxBytes=1_000_000, backupCount=2, encoding="utf-8"
    )
    crash_handler.setLevel(logging.ERROR)
    crash_handler.setFormatter(formatter)

    logging.basicConfig(
        level=logging.INFO,
        handlers=[file_handler, crash_handler],
    )
