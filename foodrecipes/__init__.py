"""Client for the recipesapi search service."""
