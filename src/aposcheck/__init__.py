"""aposcheck: integration checks for the ApostropheCMS REST API."""

__version__ = "0.1.0"
