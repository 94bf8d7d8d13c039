import logging
import sys

DEFAULT_FORMAT = "{asctime}\t{levelname:<7s}\t{funcName}:{lineno}\t| {message}"
DEFAULT_DATEFMT = "%Y%m%d_%H%M%S"

class LoggingOverrideFormatter(logging.Formatter):
    """Supports injection of overrides during logging.

    The injectable attributes are '_funcname', '_filename' and '_lineno',
    which replace the call site information of the record (used by the
    'profile' decorator to report the wrapped function), and 'details',
    which appends additional information to the message.

    With 'human_readable=True', details supplied as a list or dict are
    printed one per line, aligned after the delimiter. Otherwise the details
    are appended to the same line, separated by a tab.

    Examples:

        >>> logger = get_logger("xcor", level="debug", human_readable=True)
        >>> logger.debug("Read traces:", extra={"details": {
        ...     "trace1": "1204 events",
        ...     "trace2": "1377 events",
        ... }})
        20240123_075924 DEBUG   main:120  | Read traces:
                                          |   trace1: 1204 events
                                          |   trace2: 1377 events

    References:
        [1]: <https://stackoverflow.com/a/71228329>
    """
    def __init__(self, *args, human_readable=False, delimiter="| ", **kwargs):
        self.human_readable = human_readable
        self.delim = delimiter
        super().__init__(*args, **kwargs)

    def format(self, record):
        if hasattr(record, "_funcname"):
            record.funcName = record._funcname
        if hasattr(record, "_filename"):
            record.filename = record._filename
        if hasattr(record, "_lineno"):
            record.lineno = record._lineno
        message = super().format(record)

        details = getattr(record, "details", None)
        if details is None:
            return message
        if not self.human_readable:
            return f"{message}\t{details}"

        if isinstance(details, dict):
            details = [f"{k}: {v}" for k, v in details.items()]
        if not isinstance(details, (list, tuple)) or len(details) == 0:
            return message

        pre, _, text = message.partition(self.delim)
        pad = " " * (len(text) - len(text.lstrip(" ")))
        # Blank out the prefix but keep tabs, so columns still line up
        _pre = "".join([c if c.isspace() else " " for c in pre])
        text = text.lstrip(" ")

        messages = [message]
        if text == "":  # replace first line if empty
            text, details = details[0], details[1:]
            messages = [f"{pre}{self.delim}{pad}  {text}"]
        messages.extend([f"{_pre}{self.delim}{pad}  {line}" for line in details])
        return "\n".join(messages)

def _make_formatter(human_readable=False):
    return LoggingOverrideFormatter(
        fmt=DEFAULT_FORMAT,
        datefmt=DEFAULT_DATEFMT,
        style="{",
        human_readable=human_readable,
    )

def get_logger(name, level=None, human_readable=False):
    """Returns a logger writing to stderr, leaving stdout to the results."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(stream=sys.stderr)
        handler.setFormatter(_make_formatter(human_readable))
        logger.addHandler(handler)
        logger.propagate = False

    logger.setLevel(label2level(level))
    return logger

def set_logfile(logger, filename, human_readable=False):
    """Additionally logs to 'filename', in append mode."""
    handler = logging.FileHandler(filename, mode="a")
    handler.setFormatter(_make_formatter(human_readable))
    logger.addHandler(handler)
    return handler

def verbosity2level(verbosity):
    levels = [logging.WARNING, logging.INFO, logging.DEBUG]
    verbosity = min(verbosity, len(levels)-1)
    return levels[verbosity]

def label2level(label):
    LOG_LEVELS = {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warning": logging.WARNING,
        "error": logging.ERROR,
    }
    return LOG_LEVELS.get(label, logging.WARNING)
