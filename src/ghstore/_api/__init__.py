"""GitHub REST endpoint modules."""
