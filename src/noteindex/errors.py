"""Exception hierarchy for noteindex.

Malformed note text never raises; these cover caller contract violations.
"""

from __future__ import annotations


class NoteIndexError(Exception):
    """Base class for every error raised by noteindex."""


class RuleError(NoteIndexError, ValueError):
    """A collection rule with an unknown field, an operator the field does not
    support, or a value that cannot be interpreted (e.g. a malformed date)."""


class ConfigError(NoteIndexError, ValueError):
    """Invalid configuration file or value."""


class LoaderError(NoteIndexError):
    """The vault directory cannot be read."""
