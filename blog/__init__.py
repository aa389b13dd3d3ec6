"""Blog administration: articles, tags, categories and users."""
