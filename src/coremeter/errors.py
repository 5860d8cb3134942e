"""Exceptions raised while reading and deriving counters."""


class CoremeterError(Exception):
    """Base class for coremeter errors."""


class SourceUnavailable(CoremeterError):
    """A kernel counter file could not be read."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class MalformedLine(CoremeterError):
    """A counter line did not have the expected shape."""

    def __init__(self, line: str, reason: str) -> None:
        super().__init__(f"{reason}: {line!r}")
        self.line = line
        self.reason = reason


class MissingCounterError(CoremeterError):
    """Required memory counters are absent from a meminfo sample."""

    def __init__(self, missing: tuple[str, ...]) -> None:
        super().__init__(f"missing memory counters: {', '.join(missing)}")
        self.missing = missing
