"""
Loads JNLP descriptors from file:// or http(s):// locations and parses them
into LaunchDescriptor records.
"""

import asyncio
import logging
import platform
import re

import aiofiles
import aiohttp
from bs4 import BeautifulSoup

from webstart_cli.exceptions import DescriptorError
from webstart_cli.models.descriptor import LaunchDescriptor, ResourceRef
from webstart_cli.utils.path import (
    is_remote_url,
    local_path_from_url,
    resolve_resource_url,
    resource_file_name,
)

log = logging.getLogger(__name__)

_OS_VALUE_SPLIT = re.compile(r"(?<!\\)\s+")


def current_os_name() -> str:
    """The platform name in the form JNLP `os` attributes are matched against."""
    system = platform.system()
    if system == "Darwin":
        return "Mac OS X"
    return system


def os_matches(os_attr: str | None, os_name: str | None = None) -> bool:
    """
    True if a resources `os` attribute applies to this platform.
    Values are space separated prefixes, with spaces inside a value escaped.
    """
    if not os_attr or not os_attr.strip():
        return True
    os_name = (os_name or current_os_name()).lower()
    for value in _OS_VALUE_SPLIT.split(os_attr.strip()):
        if os_name.startswith(value.replace("\\ ", " ").lower()):
            return True
    return False


def _text(tag) -> str | None:
    if tag is None:
        return None
    text = tag.get_text(strip=True)
    return text or None


class DescriptorReader:
    """Reads and parses JNLP descriptors."""

    @staticmethod
    async def load(
        location: str, session: aiohttp.ClientSession | None = None, timeout: float = 30
    ) -> str:
        """
        Reads the raw descriptor document.

        Remote documents are fetched with a single GET and returned whole.

        Raises:
            DescriptorError: If the document cannot be read.
        """
        if is_remote_url(location):
            return await DescriptorReader._download(location, session, timeout)

        if "://" in location and not location.startswith("file://"):
            raise DescriptorError(f"Unsupported descriptor location: '{location}'")

        path = local_path_from_url(location)
        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                return await f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise DescriptorError(f"Could not read descriptor '{path}': {e}") from e

    @staticmethod
    async def _download(
        url: str, session: aiohttp.ClientSession | None, timeout: float
    ) -> str:
        owns_session = session is None
        if owns_session:
            session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=timeout, connect=15)
            )
        try:
            log.debug(f"Downloading descriptor from {url}")
            async with session.get(url, allow_redirects=True) as response:
                if response.status >= 400:
                    raise DescriptorError(
                        f"Could not download descriptor '{url}': HTTP {response.status}"
                    )
                return await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DescriptorError(f"Could not download descriptor '{url}': {e}") from e
        finally:
            if owns_session:
                await session.close()

    @staticmethod
    def parse(data: str, os_name: str | None = None) -> LaunchDescriptor:
        """
        Parses raw JNLP XML.

        Jars from every `<resources>` section applying to this platform are
        collected in document order. The same URL listed twice is kept once.
        A jar flagged `main="true"` is the primary resource.

        Raises:
            DescriptorError: If the document has no `<jnlp>` root, or two
                different jar URLs map to the same local file name.
        """
        soup = BeautifulSoup(data, "html.parser")
        root = soup.find("jnlp")
        if root is None:
            raise DescriptorError("Not a JNLP document: missing <jnlp> root element.")

        codebase = root.get("codebase") or None
        information = root.find("information")
        title = vendor = homepage = None
        if information is not None:
            title = _text(information.find("title"))
            vendor = _text(information.find("vendor"))
            homepage_tag = information.find("homepage")
            homepage = homepage_tag.get("href") if homepage_tag is not None else None

        resources: list[ResourceRef] = []
        urls_by_name: dict[str, str] = {}
        for section in root.find_all("resources"):
            if not os_matches(section.get("os"), os_name):
                log.debug(f"Skipping resources for os='{section.get('os')}'")
                continue
            for jar in section.find_all("jar"):
                href = (jar.get("href") or "").strip()
                if not href:
                    continue
                name = resource_file_name(href)
                url = resolve_resource_url(codebase, href)
                known = urls_by_name.get(name)
                if known == url:
                    continue
                if known is not None:
                    raise DescriptorError(
                        f"Jars '{known}' and '{url}' would both be stored as '{name}'."
                    )
                urls_by_name[name] = url
                resources.append(
                    ResourceRef(
                        name=name,
                        url=url,
                        is_primary=(jar.get("main") or "").lower() == "true",
                    )
                )

        entry_point = None
        arguments: tuple[str, ...] = ()
        app_desc = root.find("application-desc")
        if app_desc is not None:
            entry_point = (app_desc.get("main-class") or "").strip() or None
            arguments = tuple(arg.get_text() for arg in app_desc.find_all("argument"))

        return LaunchDescriptor(
            title=title,
            vendor=vendor,
            homepage=homepage or None,
            codebase=codebase,
            resources=tuple(resources),
            entry_point=entry_point,
            arguments=arguments,
        )

    @classmethod
    async def read(
        cls, location: str, session: aiohttp.ClientSession | None = None
    ) -> LaunchDescriptor:
        """Loads and parses a descriptor in one step."""
        return cls.parse(await cls.load(location, session=session))
