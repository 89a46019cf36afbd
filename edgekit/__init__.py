"""Building blocks for edge services: response caching, stores, device models and settings."""

__version__ = "0.1.0"