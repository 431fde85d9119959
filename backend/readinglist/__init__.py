"""Reading list backend: article metadata, status tabs, search and pagination."""

__version__ = "0.1.0"
