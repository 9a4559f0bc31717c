"""Exception hierarchy for ghosttype."""

from __future__ import annotations


class GhosttypeError(Exception):
    """Base class for all ghosttype errors."""


class InputError(GhosttypeError):
    """Reading the keyboard input stream failed.

    Fatal to the session; raised so the caller can restore the terminal
    before exiting.
    """


class SampleError(GhosttypeError):
    """A saved-samples file or a sample text could not be used."""


class SettingsError(GhosttypeError):
    """A settings file could not be parsed."""
