"""
Contribution ledger rules.

A book's ledger is the set of (author, role, percentage) entries attached
to it. The rules here are pure: they look only at the entries they are
given and either return or raise, so the orchestration layer can run them
before it writes anything.

Percentages are handled as ``Decimal`` quantized to two places. Floats are
converted through ``str`` so ``33.33 + 33.33 + 33.34`` totals exactly 100.
"""
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Optional, Sequence

from errors import ExceedsCapacity, DuplicateContributor, LastAuthorViolation, ValidationError

FULL_SHARE = Decimal("100.00")
CENT = Decimal("0.01")


def to_percentage(value: Any) -> Decimal:
    """
    Coerce a percentage to a two-place Decimal.

    Raises
    ------
    ValidationError
        If the value is not numeric or is outside (0, 100].
    """
    if isinstance(value, bool):
        raise ValidationError("contribution_percentage", "must be a number")
    try:
        pct = Decimal(value if isinstance(value, (Decimal, int)) else str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError("contribution_percentage", "must be a number")
    if not pct.is_finite():
        raise ValidationError("contribution_percentage", "must be a number")
    try:
        pct = pct.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # too many digits to hold at two places
        raise ValidationError("contribution_percentage", "is out of range")
    if pct <= 0:
        raise ValidationError("contribution_percentage", "must be greater than 0")
    if pct > FULL_SHARE:
        raise ValidationError("contribution_percentage", "must not exceed 100")
    return pct


def compute_total(entries: Iterable[Any], excluding_author_id: Optional[str] = None) -> Decimal:
    """Sum of the entries' percentages, optionally leaving one author out."""
    total = Decimal("0.00")
    for entry in entries:
        if excluding_author_id is not None and entry.author_id == excluding_author_id:
            continue
        total += Decimal(str(entry.contribution_percentage)).quantize(CENT, rounding=ROUND_HALF_UP)
    return total


def remaining_headroom(entries: Iterable[Any], excluding_author_id: Optional[str] = None) -> Decimal:
    return FULL_SHARE - compute_total(entries, excluding_author_id)


def validate_insert(book_id: Optional[str], percentage: Any, entries: Sequence[Any]) -> Decimal:
    """Check that a new entry fits in the book's headroom.

    Returns the normalized percentage.
    """
    attempted = to_percentage(percentage)
    current = compute_total(entries)
    if current + attempted > FULL_SHARE:
        raise ExceedsCapacity(book_id, current, attempted)
    return attempted


def validate_update(book_id: str, author_id: str, percentage: Any, entries: Sequence[Any]) -> Decimal:
    """Same as ``validate_insert`` but the entry for ``author_id`` is replaced, not added."""
    attempted = to_percentage(percentage)
    others = compute_total(entries, excluding_author_id=author_id)
    if others + attempted > FULL_SHARE:
        raise ExceedsCapacity(book_id, others, attempted)
    return attempted


def validate_removal(book_id: str, author_id: str, entry_count: int) -> None:
    if entry_count <= 1:
        raise LastAuthorViolation(book_id)


def resolve_percentage(value: Any, entries: Sequence[Any], contributor_count: int = 1) -> Decimal:
    """Percentage to use for a contributor whose request may omit it.

    An omitted value means the full share only for a sole contributor of a
    book that has no other entries. Anywhere else a share has to be given.
    """
    if value is not None:
        return to_percentage(value)
    if contributor_count == 1 and not entries:
        return FULL_SHARE
    raise ValidationError(
        "contribution_percentage",
        f"is required when a book has more than one contributor "
        f"({remaining_headroom(entries)}% remaining)",
    )


def validate_contributor_list(book_id: Optional[str], contributors: Sequence[Any]) -> list:
    """Aggregate check for a full contributor set (create or replace).

    Returns ``(author_id, role, percentage)`` triples with every percentage
    resolved. Nothing is written, so a failure here leaves storage untouched.
    """
    if not contributors:
        raise ValidationError("authors", "at least one author is required")

    seen = set()
    resolved = []
    for contributor in contributors:
        if contributor.author_id in seen:
            raise DuplicateContributor(book_id, contributor.author_id)
        seen.add(contributor.author_id)
        pct = resolve_percentage(contributor.contribution_percentage, [], len(contributors))
        resolved.append((contributor.author_id, contributor.role, pct))

    total = sum((pct for _, _, pct in resolved), Decimal("0.00"))
    if total > FULL_SHARE:
        # report as if the last contributor were being added to the rest
        last = resolved[-1][2]
        raise ExceedsCapacity(book_id, total - last, last)
    return resolved
