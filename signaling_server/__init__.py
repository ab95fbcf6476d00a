"""
Flight signaling server.

Pairs two WebSocket clients into an ephemeral "flight", relays their WebRTC
negotiation messages, and advertises other unpaired clients on the same
network.
"""

__version__ = "1.0.0"
