"""
Real-time signaling core: connection registry, flights, relay, presence and
liveness, plus the WebSocket lifecycle that drives them.
"""
