"""feedhub - blog feed crawler and paginated feed API."""

__version__ = "0.1.0"
