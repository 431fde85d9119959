"""Constants shared across the application."""
