"""Service layer for docker-remote."""
