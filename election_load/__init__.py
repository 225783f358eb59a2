"""Load tests for the election results database."""

__version__ = "0.1.0"
