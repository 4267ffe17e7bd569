"""
Data Models Layer.

This package contains the records that flow through a launch (descriptor,
resources, fetched artifacts) and the Pydantic configuration model.
"""

from .config import LauncherConfig
from .descriptor import CachedArtifact, LaunchDescriptor, ResourceRef, VerificationResult
from .stats import FetchStats

__all__ = [
    "CachedArtifact",
    "FetchStats",
    "LaunchDescriptor",
    "LauncherConfig",
    "ResourceRef",
    "VerificationResult",
]
