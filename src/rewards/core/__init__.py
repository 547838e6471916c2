"""Configuration, database, security and shared errors."""
