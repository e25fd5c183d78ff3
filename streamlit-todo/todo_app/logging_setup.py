from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional, Union

_HANDLER_MARK = "_todo_app_handler"


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the Streamlit console readable:
    - allow todo_app logs
    - third-party clients (httpx, websockets, realtime, postgrest) only at WARNING+
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name.startswith("todo_app"):
            return True
        return record.levelno >= logging.WARNING


def setup_logging(
    *,
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
) -> None:
    """
    Configure logging for the app logger tree:
    - Console handler: filtered for interactive use
    - File handler (optional): everything from DEBUG up

    Streamlit re-executes the page script on every interaction, so this is
    safe to call repeatedly: handlers installed by a previous call are
    replaced, never duplicated.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(logging.DEBUG if log_file else level)

    for h in list(root.handlers):
        if getattr(h, _HANDLER_MARK, False):
            root.removeHandler(h)
            h.close()

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(level)
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleNoiseFilter())
    setattr(ch, _HANDLER_MARK, True)
    root.addHandler(ch)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(path), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(fmt)
        setattr(fh, _HANDLER_MARK, True)
        root.addHandler(fh)

    logging.captureWarnings(True)
