"""Version token parsing, resolution and validation."""
