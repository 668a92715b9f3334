"""mediaquery: media indexing and conversational query backend."""

__version__ = "0.1.0"
