"""HTTP API for PMS Core."""
