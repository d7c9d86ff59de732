"""storepos - cart and checkout transaction engine for a retail point of sale."""

__version__ = "0.1.0"
