"""Shared HTTP error handling."""
