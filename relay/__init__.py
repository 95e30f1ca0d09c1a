"""
Board Relay
Local WebSocket relay multiplexing editor clients onto hardware board sessions.
"""

__version__ = "1.0.0"
