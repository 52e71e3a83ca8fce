"""Document library server."""
