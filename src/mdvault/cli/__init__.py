"""CLI tools for mdvault."""
