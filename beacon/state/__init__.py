"""Planning lifecycle."""
