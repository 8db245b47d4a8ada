"""Shared utilities (logging, immutable snapshots)."""
