"""
Resource Layer.

This package is responsible for making descriptor resources available on
local disk: downloading, cache reuse, and signature verification.
"""

from .fetcher import ProgressReporter, ResourceFetcher, create_session
from .verifier import JarSignerVerifier, Verifier, apply_trust_policy

__all__ = [
    "JarSignerVerifier",
    "ProgressReporter",
    "ResourceFetcher",
    "Verifier",
    "apply_trust_policy",
    "create_session",
]
