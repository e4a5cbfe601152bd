"""Beacon - dependency-aware planning and task assignment for team projects."""
