"""Data-access core and collaborators for the practice-management API."""
