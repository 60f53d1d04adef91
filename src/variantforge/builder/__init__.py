"""
This package contains the build hook that prepares and triggers container
builds of packages and variants, and tells the enclosing incremental build
which inputs invalidate them.
"""

from .packaging.orchestrator import BuildOrchestrator
from .signals import DependencySink, EnvWatch, FileWatch

__all__ = [
    "BuildOrchestrator",
    "DependencySink",
    "EnvWatch",
    "FileWatch",
]
