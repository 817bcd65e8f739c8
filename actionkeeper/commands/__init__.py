"""CLI subcommands for actionkeeper."""
