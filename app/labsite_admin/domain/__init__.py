"""Domain records, entity registry and form validation."""
