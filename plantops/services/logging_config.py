import logging
import sys
import os
import re

# numpy/scipy/pandas noise raised by all-empty days and constant series
SUPPRESSED_WARNINGS = (
    "Mean of empty slice",
    "invalid value encountered",
    "Degrees of freedom <= 0",
    "An input array is constant",
)

_WARNING_LOCATION = re.compile(r':\d+:\s*([^:]+):\s*(.*)$')


class WarningMessageFilter(logging.Filter):
    """
    Drops known numeric warnings and shortens the rest to 'Category: text'.
    Captured warnings arrive as 'path:line: Category: text' plus a source line.
    """
    def filter(self, record):
        if not hasattr(record, 'msg'):
            return True

        text = str(record.msg).strip()
        if any(phrase in text for phrase in SUPPRESSED_WARNINGS):
            return False

        if record.levelno != logging.WARNING:
            return True

        first_line = text.splitlines()[0] if text else text
        found = _WARNING_LOCATION.search(first_line)
        if found:
            record.msg = f"{found.group(1).strip()}: {found.group(2).strip()}"
            record.args = ()
        return True


class SelectionLoggerAdapter(logging.LoggerAdapter):
    """Prefixes messages with the category/unit selection being analysed."""
    def process(self, msg, kwargs):
        return f"<{self.extra['selection']}> {msg}", kwargs


def _level_for(verbosity_level: int) -> int:
    if verbosity_level <= 0:
        return logging.WARNING
    if verbosity_level == 1:
        return logging.INFO
    return logging.DEBUG


def _unique_log_path(log_dir: str, log_name: str) -> str:
    """'<name>.log', or '<name>(n).log' with the first free n."""
    candidate = os.path.join(log_dir, f"{log_name}.log")
    n = 1
    while os.path.exists(candidate):
        candidate = os.path.join(log_dir, f"{log_name}({n}).log")
        n += 1
    return candidate


def setup_main_logging(verbosity_level: int, log_date_str: str, log_dir: str = "logs/log"):
    """
    Configures the root logger for a CLI run.

    Records go to stderr (stdout carries the JSON report) and to a
    date-stamped file under `log_dir`.

    Verbosity levels:
    0 (default): WARNING
    1 (-v):      INFO
    2+ (-vv...): DEBUG

    Returns:
        Tuple of (log_level, log_file_path)
    """
    log_level = _level_for(verbosity_level)

    os.makedirs(log_dir, exist_ok=True)
    log_file_path = _unique_log_path(log_dir, log_date_str)

    warning_filter = WarningMessageFilter()
    handlers = [logging.StreamHandler(sys.stderr), logging.FileHandler(log_file_path)]
    for handler in handlers:
        handler.addFilter(warning_filter)

    logging.basicConfig(
        level=log_level,
        format="[%(asctime)s] [%(name)-30s] [%(levelname)-8s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
        force=True,
    )

    logging.captureWarnings(True)
    # requests' connection pool is chatty at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        f"Main logger configured. Level: {logging.getLevelName(log_level)}. Log file: {log_file_path}"
    )
    return log_level, log_file_path


def get_selection_logger(name: str, category: str, unit: str):
    """
    Returns a LoggerAdapter that tags log messages with the analysed
    category/unit, so interleaved runs stay readable in one log file.
    """
    logger = logging.getLogger(name)
    return SelectionLoggerAdapter(logger, {"selection": f"{category or '-'}/{unit or '-'}"})
