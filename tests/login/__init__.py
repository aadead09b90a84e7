"""Login fixture application: one route class, one response, nested user property."""
