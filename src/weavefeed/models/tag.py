"""
Transaction tags and tag filters.

A [Tag][weavefeed.models.tag.Tag] is a name/value pair attached to a
transaction; the index uses tags as filterable keys. A
[TagFilter][weavefeed.models.tag.TagFilter] selects transactions carrying a
tag whose name matches and whose value is any of ``values``.

See Also:
    [weavefeed.models.query][]: Embeds a tuple of filters in a
        [QuerySpec][weavefeed.models.query.QuerySpec].
    [weavefeed.models.transaction][]: Carries the tags returned by the index.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from ._validation import validate_instance, validate_str_no_null, validate_str_not_empty


@dataclass(frozen=True, slots=True)
class Tag:
    """Immutable name/value pair attached to a transaction.

    Attributes:
        name: Tag name (e.g. ``"App-Name"``).
        value: Tag value (e.g. ``"PublicSquare"``).

    Values are kept exactly as the index reports them, null bytes included.
    """

    name: str
    value: str

    def __post_init__(self) -> None:
        validate_instance(self.name, str, "name")
        validate_instance(self.value, str, "value")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Tag:
        """Build a tag from a GraphQL ``{name, value}`` object."""
        return cls(name=data["name"], value=data["value"])

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "value": self.value}


@dataclass(frozen=True, slots=True, order=True)
class TagFilter:
    """Immutable tag filter: match transactions tagged ``name`` with any of ``values``.

    ``values`` keeps its input order; it is stored as a tuple so that filters
    are hashable and can be deduplicated inside a set.

    Attributes:
        name: Tag name to match. Must be non-empty.
        values: Accepted tag values. At least one is required.

    Raises:
        ValueError: If ``name`` is empty, ``values`` is empty, or any string
            contains null bytes.
        TypeError: If ``name`` is not a string or ``values`` is not a
            sequence of strings.

    Examples:
        ```python
        TagFilter("App-Name", ("PublicSquare",))
        TagFilter.from_dict({"name": "Content-Type", "values": ["text/plain"]})
        ```
    """

    name: str
    values: tuple[str, ...]

    def __post_init__(self) -> None:
        validate_str_not_empty(self.name, "name")
        if isinstance(self.values, str):
            raise TypeError("values must be a sequence of str, not a single str")
        validate_instance(self.values, Sequence, "values")
        values = tuple(self.values)
        if not values:
            raise ValueError(f"tag filter {self.name!r} must have at least one value")
        for i, value in enumerate(values):
            validate_str_no_null(value, f"values[{i}]")
        object.__setattr__(self, "values", values)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TagFilter:
        """Build a filter from ``{"name": ..., "values": [...]}``.

        Raises:
            ValueError: If a key is missing or the filter is invalid.
            TypeError: If a field has the wrong type.
        """
        validate_instance(data, Mapping, "tag filter")
        missing = [key for key in ("name", "values") if key not in data]
        if missing:
            raise ValueError(f"tag filter is missing {', '.join(missing)}")
        return cls(name=data["name"], values=data["values"])

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "values": list(self.values)}
