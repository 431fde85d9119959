"""Presentation layer controllers."""
