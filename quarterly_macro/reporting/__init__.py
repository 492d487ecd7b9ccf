"""Chart rendering for the wide table."""
