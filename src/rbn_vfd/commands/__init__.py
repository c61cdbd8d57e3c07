"""Subcommand implementations for the rbn-vfd CLI."""
