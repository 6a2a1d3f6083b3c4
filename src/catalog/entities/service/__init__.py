"""Service entities: books."""
