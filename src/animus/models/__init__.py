# Package initialization
# Import all models so they're registered on Base.metadata
from .key_value_entry import KeyValueEntry

__all__ = [
    "KeyValueEntry",
]
