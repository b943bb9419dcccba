"""Built-in CLI sub-command groups."""
