"""Core specification model, validation, configuration and file trees."""
