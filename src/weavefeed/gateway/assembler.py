"""
Result assembly: merge index references with hydrated posts into a page.

[assemble][weavefeed.gateway.assembler.assemble] is a pure function. The
[Hydrator][weavefeed.gateway.hydrator.Hydrator] already returns posts in
reference order; the checks here guard that contract and raise
[InvariantViolation][weavefeed.core.exceptions.InvariantViolation] if it is
ever broken.
"""

from __future__ import annotations

from collections.abc import Sequence

from weavefeed.core.exceptions import InvariantViolation
from weavefeed.models import HydratedPost, ResultPage, TxReference


def assemble(
    refs: Sequence[TxReference],
    hydrated: Sequence[HydratedPost],
    next_cursor: str | None = None,
) -> ResultPage:
    """Build a [ResultPage][weavefeed.models.post.ResultPage] in index order.

    Args:
        refs: References as returned by the index.
        hydrated: Hydration results, positionally aligned with *refs*.
        next_cursor: Cursor for the following page, if any.

    Raises:
        InvariantViolation: If the sequences differ in length or any
            position holds a post for a different transaction.
    """
    if len(refs) != len(hydrated):
        raise InvariantViolation(
            f"hydrated {len(hydrated)} posts for {len(refs)} references"
        )
    for position, (ref, post) in enumerate(zip(refs, hydrated, strict=True)):
        if post.ref.id != ref.id:
            raise InvariantViolation(
                f"position {position}: expected {ref.id!r}, got {post.ref.id!r}"
            )
    return ResultPage(items=tuple(hydrated), next_cursor=next_cursor)
