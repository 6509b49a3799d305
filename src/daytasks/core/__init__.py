"""Ports, credentials and application state shared across the app."""
