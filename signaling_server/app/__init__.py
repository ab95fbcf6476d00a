"""Application factory, lifespan and shutdown handling."""
