"""Circular submission and moderation."""
