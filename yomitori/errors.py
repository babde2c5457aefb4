"""
Exception types raised by yomitori.
"""


class YomitoriError(Exception):
    """Base class for all yomitori errors."""


class LookupFailure(YomitoriError):
    """A dictionary store query failed; the lookup call produced no results."""


# Name used by callers that think of the store as a remote service
StoreUnavailable = LookupFailure


class DatabaseNotPrepared(LookupFailure):
    """The dictionary store was used before prepare() or after close()."""


class RuleTableError(YomitoriError):
    """The deinflection reason table could not be loaded."""
