"""Exception types shared by the renamer services.

Parsing and episode resolution never raise: a filename that cannot be parsed
or an episode that cannot be placed is reported as a value. These exceptions
cover the parts that talk to the outside world.
"""


class AnimeRenamerError(Exception):
    """Base exception for all renamer errors."""


class ConfigurationError(AnimeRenamerError):
    """Required configuration is missing or invalid (e.g. no TMDB API key)."""


class MetadataLookupError(AnimeRenamerError):
    """A metadata provider request failed or returned an unexpected payload."""


class OrganizationError(AnimeRenamerError):
    """Moving a file to its new name failed."""
