"""
Errors - Failure taxonomy shared by core and adapters

Every error here is recoverable: components catch them at their boundary
and turn them into empty results.
"""


class FinqueryError(Exception):
    """Base class for finquery errors"""


class SourceUnavailable(FinqueryError):
    """An upstream fetch failed or returned an unexpected shape"""


class NotFound(FinqueryError):
    """A lookup or search legitimately found nothing"""


class MalformedModelOutput(FinqueryError):
    """The language model returned text that does not parse as requested"""
