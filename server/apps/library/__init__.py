"""Document library application."""
