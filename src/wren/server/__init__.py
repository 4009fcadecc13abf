"""ASGI request handling."""
