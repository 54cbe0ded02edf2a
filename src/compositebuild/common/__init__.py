"""Shared helpers: logging, HTTP transport and error types."""
