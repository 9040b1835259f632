"""Built-in store driver plugins."""
