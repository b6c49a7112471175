"""Shared helpers: time handling, value coercion and the event bus."""
