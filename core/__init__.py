"""Core utilities: settings, logging and the Result type."""
