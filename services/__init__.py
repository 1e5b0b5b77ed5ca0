"""Season highlights services."""
