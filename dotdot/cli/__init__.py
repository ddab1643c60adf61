"""Command-line interface for dotdot."""
