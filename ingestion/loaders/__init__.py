"""
Reference loaders.

    PaginatedAPILoader: REST APIs with page, offset, cursor or next-link pagination
    CSVLoader: CSV/TSV bulk exports
    FeedLoader: RSS/Atom feeds
    StaticLoader: in-memory record lists
"""

__all__ = [
    "PaginatedAPILoader",
    "CSVLoader",
    "FeedLoader",
    "StaticLoader",
]
