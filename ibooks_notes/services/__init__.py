"""Service layer used by the CLI."""
