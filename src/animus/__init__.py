"""
Animus health client.

Client-side pipeline for the Animus health monitor: normalizes scan analysis
responses, reconciles cached scan history with the server's medical history,
and persists flagged conditions to the medical-history store.
"""

__version__ = "1.0.0"
