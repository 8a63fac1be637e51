import datetime
import logging
from typing_extensions import override

from pasbook.config import settings


def configure_logging(verbose: bool = False, log_to_file: bool = True):
    """Attach the file and console handlers to the root logger"""
    console_level = logging.DEBUG if verbose else logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    if log_to_file:
        settings.LOGGING_DIR_PATH.mkdir(parents=True, exist_ok=True)
        now: str = datetime.datetime.now().strftime("%Y-%m-%d-%H-%M")
        file_name = settings.LOGGING_DIR_PATH / f"{now}.log"

        formatter = logging.Formatter(
            fmt="%(asctime)s - [%(name)s]- %(levelname)s - [%(module)s:%(lineno)d] - %(message)s"
        )
        file_handler = logging.FileHandler(file_name, encoding="UTF-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(console_level)
    console_handler.setFormatter(CustomFormatter())
    root_logger.addHandler(console_handler)

    # Lookups and inserts are logged at DEBUG, keep them out of the console
    modules_to_ignore: list[str] = ["PassDAO"]
    for module in modules_to_ignore:
        logging.getLogger(module).setLevel(logging.INFO)


class CustomFormatter(logging.Formatter):
    """Console formatter colouring each line by level, timestamps kept short"""

    reset: str = "\x1b[0m"
    console_format: str = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"
    COLOURS: dict[int, str] = {
        logging.DEBUG: "\x1b[38;20m",
        logging.INFO: "\x1b[38;20m",
        logging.WARNING: "\x1b[33;20m",
        logging.ERROR: "\x1b[31;20m",
        logging.CRITICAL: "\x1b[31;1m",
    }

    def __init__(self):
        super().__init__(self.console_format, datefmt="%H:%M:%S")
        self._formatters: dict[int, logging.Formatter] = {
            level: logging.Formatter(colour + self.console_format + self.reset, "%H:%M:%S")
            for level, colour in self.COLOURS.items()
        }

    @override
    def format(self, record: logging.LogRecord) -> str:
        formatter = self._formatters.get(record.levelno)
        if formatter is None:
            return super().format(record)
        return formatter.format(record)
