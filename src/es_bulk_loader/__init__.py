"""Bulk-load a JSON array of documents into an Elasticsearch index."""

__version__ = "0.1.0"

__all__ = ["__version__"]
