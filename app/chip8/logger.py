import logging
from datetime import datetime
from pathlib import Path
from typing import Final, Optional, Union

from rich.console import Console
from rich.logging import RichHandler

console: Final[Console] = Console()

time_format: Final[str] = "%Y-%m-%d %H:%M:%S"

log: Final[logging.Logger] = logging.getLogger("CHIP8")


class Chip8FileHandler(logging.Handler):
    def __init__(self, file_name: Union[str, Path]):
        super().__init__()
        self._file_name = Path(file_name)
        self._log_hold = []

    def _write_log_entry(self, log_entry):
        with open(self._file_name, "a", encoding="utf-8") as f:
            f.write(log_entry + "\n")

    def emit(self, record: logging.LogRecord):
        log_entry = self.format(record)

        self.acquire()
        try:
            if self._log_hold:
                still_failed = []
                for old_record, _ in self._log_hold:
                    try:
                        self._write_log_entry(self.format(old_record))
                    except OSError as e:
                        still_failed.append((old_record, e))
                self._log_hold = still_failed  # keep only the ones still failing

            try:
                self._write_log_entry(log_entry)
            except OSError as e:
                self._log_hold.append((record, e))
        finally:
            self.release()


def get_time() -> str:
    return datetime.now().strftime("%Y-%m-%d_%H-%M-%S")


def setup_logging(debug: bool = False, log_root: Optional[Path] = None) -> logging.Logger:
    """
    Install the console and file handlers on the CHIP8 logger.

    Library code never calls this; the front end does, once, before the
    first ROM is loaded.
    """
    level = logging.DEBUG if debug else logging.INFO
    handlers: list[logging.Handler] = [
        RichHandler(
            rich_tracebacks=True,
            show_path=True,
            enable_link_path=True,
            tracebacks_show_locals=debug,
            show_level=False,
            console=console,
        )
    ]

    if log_root is not None:
        log_root.mkdir(parents=True, exist_ok=True)
        file_handler = Chip8FileHandler(log_root / f"chip8_{get_time()}.log")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s", datefmt=time_format)
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt=time_format,
        handlers=handlers,
        force=True,
    )
    log.setLevel(level)
    return log
