"""Data model and page access layer."""
