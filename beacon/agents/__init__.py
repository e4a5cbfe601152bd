"""External assignment generators."""
