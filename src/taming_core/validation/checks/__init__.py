"""Built-in structural validation checks."""
