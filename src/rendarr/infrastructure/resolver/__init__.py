"""Detail-page stream resolution."""
