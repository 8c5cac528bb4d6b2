"""Core application settings."""
