"""Front matter and link transforms for Obsidian Site."""
