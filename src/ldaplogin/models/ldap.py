"""Data models for LDAP."""

from __future__ import annotations

from dataclasses import dataclass, field

__all__ = ["DirectoryEntry"]


@dataclass
class DirectoryEntry:
    """An entry returned by an LDAP search.

    Only the attributes requested by the search (and present in the entry)
    are included. Attribute names are kept exactly as returned by the server,
    so look up attributes with `get_values` or `get_first`, which ignore the
    case of the attribute name.
    """

    dn: str
    """Distinguished name of the entry."""

    attributes: dict[str, list[str]] = field(default_factory=dict)
    """Mapping of attribute names to all of their values."""

    def get_values(self, attr: str) -> list[str]:
        """Return all values of an attribute.

        Attribute names are case-insensitive in LDAP, so ``attr`` matches an
        attribute of the entry regardless of case.

        Parameters
        ----------
        attr
            Name of the attribute.

        Returns
        -------
        list of str
            Values of that attribute, or an empty list if the entry does not
            have that attribute.
        """
        if attr in self.attributes:
            return self.attributes[attr]
        folded = attr.casefold()
        for name, values in self.attributes.items():
            if name.casefold() == folded:
                return values
        return []

    def get_first(self, attr: str) -> str | None:
        """Return the first value of an attribute.

        Parameters
        ----------
        attr
            Name of the attribute.

        Returns
        -------
        str or None
            The first value of that attribute, or `None` if the entry does
            not have that attribute or it has no values.
        """
        values = self.get_values(attr)
        if not values:
            return None
        return values[0]
