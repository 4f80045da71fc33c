"""Version 1 of the billing API."""
