"""Timeline ordering and read models."""
