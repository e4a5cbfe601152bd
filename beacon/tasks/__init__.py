"""Task records, dependency validation, snapshots and replanning."""
