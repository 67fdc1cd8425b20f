"""Chunk models and chunkers."""
