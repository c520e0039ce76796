"""
Session tracking for long-lived streaming connections.
"""

from .registry import Session, SessionRegistry, SessionTransport

__all__ = ["Session", "SessionRegistry", "SessionTransport"]
