"""My Cellar AI backend."""
