"""Version model, path conventions, resolution and update scanning."""
