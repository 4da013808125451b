"""Clusterforge CLI — Typer-based command-line interface.

Provides the ``clusterforge`` command with subcommands for building
targets, listing them, and waiting for a cluster's API to come up.

All output uses Rich for formatted terminal display.
"""
