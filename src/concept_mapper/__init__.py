"""Concept Mapper — automatic concept-map layouts for canvas documents."""

__version__ = "0.1.0"
