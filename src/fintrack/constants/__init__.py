"""Static reference values."""
