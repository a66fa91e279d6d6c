"""Core functionality for context-budget."""
