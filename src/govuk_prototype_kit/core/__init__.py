"""Core helpers shared by the migration engine and the CLI."""
