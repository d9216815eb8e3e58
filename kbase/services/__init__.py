"""Business logic services for kbase."""
