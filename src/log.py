import logging
import pathlib
import sys

import pendulum
import seqlog

from core.config import settings

_root_logger = logging.getLogger()

LOG_FORMAT = "%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s.%(funcName)s:%(lineno)d %(message)s"


def get_log_path(filename: str) -> pathlib.Path:
    log_dir = pathlib.Path(settings.LOG_DIR).expanduser()
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir / f"{filename}.log"


def setup_logging_to_file(
    app: str,
    level: int = logging.INFO,
    *,
    logger: logging.Logger = _root_logger,
    timestamp: bool = True,
) -> pathlib.Path:
    formatter = logging.Formatter(LOG_FORMAT)
    if timestamp:
        filename = f"{app}.{pendulum.now():%Y%m%d.%H%M%S.%f}"
    else:
        filename = app
    log_path = get_log_path(filename)
    file_handler = logging.FileHandler(log_path)
    file_handler.formatter = formatter
    logger.setLevel(level)
    logger.addHandler(file_handler)
    return log_path


def setup_logging_to_console(
    level=logging.INFO, *, logger: logging.Logger = _root_logger, show_locals: bool = False
) -> bool:
    # rich output only makes sense on an interactive terminal
    if not sys.stdout.isatty():
        return False

    from rich.logging import RichHandler
    from rich.traceback import install

    install(show_locals=show_locals and not settings.is_production)
    logger.setLevel(level)
    logger.addHandler(RichHandler(rich_tracebacks=True, level=level, show_time=True))
    return True


def setup_seq_logging(app: str, level: int = logging.INFO) -> bool:
    if not settings.SEQ_SERVER_URL:
        return False

    seqlog.log_to_seq(
        server_url=settings.SEQ_SERVER_URL,
        api_key=settings.SEQ_SERVER_API_KEY,
        level=level,
        batch_size=10,
        auto_flush_timeout=10,
        override_root_logger=False,
    )
    seqlog.set_global_log_properties(
        Application=app, Environment=settings.ENVIRONMENT_NAME
    )
    return True
