"""Application services for neo-acl."""

from .hierarchy_resolver import HierarchyResolver
from .mutation_service import MutationService
from .decision_engine import DecisionEngine

__all__ = [
    "HierarchyResolver",
    "MutationService",
    "DecisionEngine",
]
