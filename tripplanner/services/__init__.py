"""Trip lookup, search and persistence services."""
