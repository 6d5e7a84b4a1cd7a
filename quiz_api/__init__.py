"""Quiz application backend."""
