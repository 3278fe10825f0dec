"""Token acquisition core."""
