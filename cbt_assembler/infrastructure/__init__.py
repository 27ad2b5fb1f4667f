"""Shared infrastructure for the generation leg."""
