"""Utility helpers: dates, filters, logging, exit codes."""
