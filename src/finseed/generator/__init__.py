"""
Generator module for producing the synthetic dataset.

Handles phase ordering, FK consistency via parent id threading, and batching.
"""

from finseed.generator.batch import BatchAccumulator
from finseed.generator.entities import EntityFactory
from finseed.generator.generator import Generator

__all__ = ["BatchAccumulator", "EntityFactory", "Generator"]
