"""
Utilities for handling file paths, descriptor URLs and classpaths.
"""

import os
from pathlib import Path
from typing import Iterable, Optional
from urllib.parse import unquote, urljoin, urlparse
from urllib.request import url2pathname

from pathvalidate import sanitize_filepath


def create_dir(directory_path: Path) -> None:
    """Creates a directory if it does not already exist."""
    directory_path.mkdir(parents=True, exist_ok=True)


def resolve_resource_url(codebase: Optional[str], href: str) -> str:
    """
    Resolves a resource href against the descriptor codebase.
    Absolute hrefs are returned untouched.
    """
    if urlparse(href).scheme:
        return href
    if not codebase:
        return href
    return urljoin(codebase.rstrip("/") + "/", href)


def resource_file_name(href: str) -> str:
    """
    Derives the local name of a resource from its declared href.
    Relative hrefs keep their sub-path, absolute URLs keep only the last segment.
    """
    parsed = urlparse(href)
    if parsed.scheme:
        return unquote(Path(parsed.path).name)
    return unquote(parsed.path)


def resource_target_path(target_dir: Path, name: str) -> Path:
    """
    Maps a resource name onto a file inside the target directory.

    Raises:
        ValueError: If the name is empty or would escape the target directory.
    """
    normalized = name.replace("\\", "/")
    if ".." in normalized.split("/"):
        raise ValueError(f"Invalid resource name: '{name}'")
    cleaned = sanitize_filepath(normalized, platform="auto")
    parts = [p for p in Path(cleaned).parts if p not in ("", ".", "/")]
    if not parts or ".." in parts:
        raise ValueError(f"Invalid resource name: '{name}'")
    return target_dir.joinpath(*parts)


def build_classpath(paths: Iterable[os.PathLike | str], separator: str | None = None) -> str:
    """Joins resource paths in order with the platform path separator (':' or ';')."""
    return (separator or os.pathsep).join(str(p) for p in paths)


def is_remote_url(location: str) -> bool:
    return urlparse(location).scheme in ("http", "https")


def local_path_from_url(location: str) -> Path:
    """Converts a file:// URL (or a plain path) into a local filesystem path."""
    parsed = urlparse(location)
    if parsed.scheme == "file":
        path = url2pathname(parsed.path)
        if parsed.netloc and parsed.netloc != "localhost":
            path = f"//{parsed.netloc}{path}"
        return Path(path)
    return Path(location).expanduser()
