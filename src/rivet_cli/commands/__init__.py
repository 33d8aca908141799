"""CLI commands for Rivet."""
