"""
food_feed_report.errors
~~~~~~~~~~~~~~~~~~~~~~~
Exceptions raised while reading the production dataset.

Every one of them is terminal for a report run.
"""


class DatasetError(Exception):
    """Base class for problems with the input CSV."""


class DatasetNotFoundError(DatasetError, FileNotFoundError):
    """The input file does not exist."""


class SchemaMismatchError(DatasetError, ValueError):
    """The input file exists but does not have the expected layout."""
