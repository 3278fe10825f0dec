"""Terminal output and prompts. Everything here writes to stderr."""
