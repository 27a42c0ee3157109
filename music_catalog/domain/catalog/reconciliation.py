"""Association reconciliation for many-to-many memberships.

Given the keys currently joined to an owner, the keys a user asked for and
the universe of candidates, compute the minimal set of join rows to add and
remove. The same function drives Musician<->Instrument (Plays) and
Song<->Musician (Performance).

Matching policy is by key only:
- requested and not current -> ADD
- current and not requested -> REMOVE
- otherwise -> unchanged

An empty (or absent) request removes every current member.
"""

from collections.abc import Callable, Iterable
from collections.abc import Set as AbstractSet

from attrs import define, field


@define(frozen=True, slots=True)
class MembershipChange[K]:
    """Keys to add to and remove from an owner's membership."""

    to_add: frozenset[K] = field(factory=frozenset, converter=frozenset)
    to_remove: frozenset[K] = field(factory=frozenset, converter=frozenset)

    @property
    def has_changes(self) -> bool:
        return bool(self.to_add or self.to_remove)

    def apply(self, current: AbstractSet[K]) -> frozenset[K]:
        """Membership after the change: ``(current - to_remove) | to_add``."""
        return (frozenset(current) - self.to_remove) | self.to_add


def reconcile[K, C](
    current: AbstractSet[K],
    requested: AbstractSet[K] | None,
    candidates: Iterable[C],
    key: Callable[[C], K],
) -> MembershipChange[K]:
    """Reconcile current membership against the requested membership.

    Args:
        current: Keys the owner is joined to now (empty for a new owner)
        requested: Keys submitted by the user; None or empty clears everything
        candidates: Every entity that could be a member, in natural order
        key: Extracts the join key from a candidate

    Returns:
        MembershipChange whose ``apply(current)`` equals
        ``(current - (U - requested)) | (requested & U)`` for candidate
        keys U.
    """
    if not requested:
        return MembershipChange(to_add=frozenset(), to_remove=frozenset(current))

    to_add: list[K] = []
    to_remove: list[K] = []
    for candidate in candidates:
        candidate_key = key(candidate)
        if candidate_key in requested:
            if candidate_key not in current:
                to_add.append(candidate_key)
        elif candidate_key in current:
            to_remove.append(candidate_key)

    return MembershipChange(to_add=frozenset(to_add), to_remove=frozenset(to_remove))


def parse_selected_keys(tokens: Iterable[str] | None) -> frozenset[int] | None:
    """Convert submitted selection tokens into integer keys.

    Returns None when nothing was submitted. Blank tokens are skipped.

    Raises:
        ValueError: If a token is not an integer
    """
    if tokens is None:
        return None
    keys: set[int] = set()
    for token in tokens:
        text = str(token).strip()
        if not text:
            continue
        keys.add(int(text))
    return frozenset(keys)
