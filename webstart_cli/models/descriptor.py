"""
Immutable records describing what to launch and what was fetched for it.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class ResourceRef:
    """One downloadable archive named by the descriptor."""

    name: str
    url: str
    is_primary: bool = False


@dataclass(frozen=True)
class LaunchDescriptor:
    """The parsed contents of a JNLP descriptor."""

    title: str | None = None
    vendor: str | None = None
    homepage: str | None = None
    codebase: str | None = None
    resources: tuple[ResourceRef, ...] = ()
    entry_point: str | None = None
    arguments: tuple[str, ...] = ()

    @property
    def primary_resource(self) -> ResourceRef | None:
        """The resource flagged as main, falling back to the first declared one."""
        for ref in self.resources:
            if ref.is_primary:
                return ref
        return self.resources[0] if self.resources else None

    @property
    def meta(self) -> dict[str, Any]:
        """Summary in the shape of the older single-jar descriptors."""
        primary = self.primary_resource
        return {
            "title": self.title,
            "vendor": self.vendor,
            "homepage": self.homepage,
            "jar_location": primary.url if primary else None,
            "main_class": self.entry_point,
        }


@dataclass(frozen=True)
class CachedArtifact:
    """A resource available on local disk, ready to go on the classpath."""

    ref: ResourceRef
    local_path: Path
    byte_length: int
    from_cache: bool = False


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of running the verifier against one artifact."""

    trusted: bool
    detail: str = field(default="", compare=False)
