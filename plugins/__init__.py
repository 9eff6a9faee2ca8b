"""Bundled Misaka modules."""
