"""Match directory entries against a username."""

from __future__ import annotations

from collections.abc import Iterable

from .models.ldap import DirectoryEntry

__all__ = ["find_match"]


def find_match(
    entries: Iterable[DirectoryEntry],
    attributes: Iterable[str],
    username: str,
) -> DirectoryEntry | None:
    """Find the first entry with an attribute value equal to the username.

    The entries are consumed lazily and in order, so nothing after the first
    matching entry is read. Attribute names are compared case-insensitively,
    as in LDAP, but values must be exactly equal to the username.

    Parameters
    ----------
    entries
        Entries returned by the user search.
    attributes
        Names of the attributes to check.
    username
        Username to look for.

    Returns
    -------
    DirectoryEntry or None
        The first entry with any listed attribute holding ``username`` as one
        of its values, or `None` if there is no such entry.
    """
    attributes = list(attributes)
    for entry in entries:
        for attr in attributes:
            if username in entry.get_values(attr):
                return entry
    return None
