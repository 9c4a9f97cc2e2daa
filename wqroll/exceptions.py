"""
Exceptions for the WQ rolling-summary pipeline.
"""


class WQPipelineError(Exception):
    """Base exception for pipeline errors."""

    pass


class SourceUnavailableError(WQPipelineError):
    """An input location could not be reached or read."""

    def __init__(self, location, reason=""):
        self.location = location
        self.reason = reason
        message = f"Source unavailable: {location}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class ParseError(WQPipelineError):
    """An input payload is not well-formed tabular data with the expected columns."""

    def __init__(self, source, reason, missing_columns=None):
        self.source = source
        self.missing_columns = list(missing_columns or [])
        super().__init__(f"Could not parse {source}: {reason}")


class JoinKeyMismatch(WQPipelineError):
    """A join key does not resolve to exactly one record."""

    def __init__(self, stage, keys):
        self.stage = stage
        self.keys = list(keys)
        preview = ", ".join(str(k) for k in self.keys[:5])
        more = f" (+{len(self.keys) - 5} more)" if len(self.keys) > 5 else ""
        super().__init__(f"{stage}: {len(self.keys)} ambiguous key(s): {preview}{more}")
