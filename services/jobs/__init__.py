"""Job persistence and the HTTP API."""
