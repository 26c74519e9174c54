"""
WebSocket Gateway Components.

- core/       - Constants and connection context
- connection/ - Room index, outbound queues, rate limiting
- endpoints/  - WebSocket endpoints (base, handlers)
"""
