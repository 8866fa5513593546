"""Home Search API - real-estate listing search with recent-search caching."""

__version__ = "0.1.0"
