DEFAULT_LAG_WINDOW_MS = 60000  # +/- one minute of lag

class XcorError(Exception):
    """Base class for all failures that abort a cross-correlation run."""

class UsageError(XcorError):
    pass

class ParseError(XcorError, ValueError):
    def __init__(self, text, message=None):
        self.text = text
        if message is None:
            message = f"invalid int: {text}"
        self.message = message
        super().__init__(message)

class TraceIOError(XcorError, OSError):
    def __init__(self, filename, reason=None):
        self.filename = str(filename)
        self.reason = reason
        super().__init__(f"can't open {self.filename}")

class EmptyInputError(XcorError, ValueError):
    pass

class IndexOutOfRangeError(XcorError, IndexError):
    def __init__(self, event_time, index, length):
        self.event_time = event_time
        self.index = index
        self.length = length
        super().__init__(
            f"event at {event_time} falls into bin {index}, "
            f"but only {length} bin(s) were allocated (trace not sorted?)"
        )
