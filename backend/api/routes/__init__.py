"""Shell endpoints that do not belong to a feature module."""
