"""PMS Core - hierarchy ids and status synchronisation for project management."""

__version__ = "1.0.0"
