"""Retry policies for external calls."""
