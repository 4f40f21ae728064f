"""Shared helpers: errors, logging, HTTP and Go environment access."""
