"""
Console logging helpers shared by the loader and the CLI.

Messages are printed with a timestamp. When a log file is configured
(via set_log_file or per call) each line is also appended to it.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional, Union

_log_file: Optional[Path] = None


def set_log_file(path: Optional[Union[str, Path]]):
    """Set the default log file for every subsequent log() call (None disables)."""
    global _log_file
    if path is None:
        _log_file = None
        return
    _log_file = Path(path)
    _log_file.parent.mkdir(parents=True, exist_ok=True)


def log(msg: str, log_file: Optional[Union[str, Path]] = None):
    """Print and optionally write to log file."""
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    line = f"[{timestamp}] {msg}"
    print(line)
    target = log_file or _log_file
    if target:
        with open(target, 'a') as f:
            f.write(line + "\n")


def warn(msg: str, log_file: Optional[Union[str, Path]] = None):
    log(f"WARNING: {msg}", log_file)


def error(msg: str, log_file: Optional[Union[str, Path]] = None):
    log(f"ERROR: {msg}", log_file)
