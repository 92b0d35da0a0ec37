"""Polyroot - multi-root workspace management for coding agents."""
