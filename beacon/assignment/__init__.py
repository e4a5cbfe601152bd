"""Deterministic assignment engine, proposal guard and reasoning."""
