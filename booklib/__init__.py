"""Personal book library: local catalog storage and Open Library enrichment."""
