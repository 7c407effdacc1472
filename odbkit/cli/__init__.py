"""Command-line interface for odbkit."""
