"""Command-line interface for ClawMon."""
