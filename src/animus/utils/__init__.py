"""
Utility modules for the Animus client.

This package contains shared helpers used across the client, including
datetime parsing, dictionary merging, vitals input parsing and display
mappings.
"""

from animus.utils.display_utils import urgency_color

__all__ = ['urgency_color']
