"""
Extra link validation.

Bots carry a small set of labelled external links (website, support
server, donation page). Links are checked before a record is written;
the first violation found is raised and nothing is persisted.
"""

import string
from dataclasses import dataclass
from typing import Iterable

from metro_adapter.core.errors import LinkValidationError


MAX_LINK_NAME_LENGTH = 64
MAX_LINK_VALUE_LENGTH = 512
SECURE_URL_PREFIX = "https://"
ALLOWED_NAME_CHARS = frozenset(string.ascii_letters + string.digits + "-_ ")


@dataclass(frozen=True)
class Link:
    """A named external link, e.g. Link(name="Support", value="https://...")."""
    name: str
    value: str

    def to_dict(self) -> dict:
        return {"name": self.name, "value": self.value}


def _is_blank(value: str) -> bool:
    # Only spaces count as blank, matching how listings store links
    return value.replace(" ", "") == ""


def _byte_length(value: str) -> int:
    return len(value.encode("utf-8"))


def validate_link(link: Link) -> None:
    """
    Validate a single link.

    Args:
        link: Link to check

    Raises:
        LinkValidationError: naming the link and what is wrong with it
    """
    # Limits are in UTF-8 bytes
    if _byte_length(link.name) > MAX_LINK_NAME_LENGTH or _byte_length(link.value) > MAX_LINK_VALUE_LENGTH:
        raise LinkValidationError(
            f"extra link '{link.name}' has a name/value that is too long "
            f"(max {MAX_LINK_NAME_LENGTH}/{MAX_LINK_VALUE_LENGTH} bytes)",
            link_name=link.name,
        )

    if _is_blank(link.name) or _is_blank(link.value):
        raise LinkValidationError(
            f"extra link '{link.name}' has a name/value that is empty",
            link_name=link.name,
        )

    if not link.value.startswith(SECURE_URL_PREFIX):
        raise LinkValidationError(
            f"extra link '{link.name}' must be HTTPS",
            link_name=link.name,
        )

    for ch in link.name:
        if ch not in ALLOWED_NAME_CHARS:
            raise LinkValidationError(
                f"extra link '{link.name}' has an invalid character: {ch}",
                link_name=link.name,
            )


def validate_extra_links(links: Iterable[Link]) -> None:
    """
    Validate links in order, stopping at the first invalid one.

    Raises:
        LinkValidationError: for the first link that fails
    """
    for link in links:
        validate_link(link)
