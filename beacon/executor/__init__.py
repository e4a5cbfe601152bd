"""Assignment runs."""
