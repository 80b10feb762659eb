"""Role-based route guard and row-level access policies."""
