"""covmerge - merge raw test coverage into a single LCOV report."""

__version__ = "0.1.0"
