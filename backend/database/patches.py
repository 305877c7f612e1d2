# ABOUTME: Partial-update structures for users, portfolios, positions and featured stocks
# ABOUTME: Each declared field maps to one column; fields left UNSET are not touched

from dataclasses import dataclass, fields
from typing import Any, List, Tuple


class _Unset:
    def __repr__(self):
        return 'UNSET'

    def __bool__(self):
        return False


UNSET: Any = _Unset()


class Patch:
    """Base for partial updates.

    Only the dataclass fields declared on the subclass can ever reach the SET
    clause, and only those whose value is not UNSET.
    """

    def changes(self) -> List[Tuple[str, Any]]:
        return [
            (f.name, getattr(self, f.name))
            for f in fields(self)
            if getattr(self, f.name) is not UNSET
        ]

    def is_empty(self) -> bool:
        return not self.changes()

    @classmethod
    def from_mapping(cls, data: dict, aliases: dict = None):
        """Build a patch from request data, picking only known keys.

        `aliases` maps incoming keys (e.g. camelCase form fields) to field names.
        """
        aliases = aliases or {}
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in (data or {}).items():
            name = aliases.get(key, key)
            if name in known:
                values[name] = value
        return cls(**values)


def build_set_clause(patch: Patch) -> Tuple[str, List[Any]]:
    """Render `col = ?, col = ?` and its parameters for the fields present in the patch"""
    changes = patch.changes()
    clause = ', '.join(f"{column} = ?" for column, _ in changes)
    return clause, [value for _, value in changes]


@dataclass
class UserPatch(Patch):
    username: Any = UNSET
    password_hash: Any = UNSET
    email: Any = UNSET
    full_name: Any = UNSET
    role: Any = UNSET
    avatar: Any = UNSET
    address: Any = UNSET
    dark_mode: Any = UNSET
    google_id: Any = UNSET


@dataclass
class PortfolioPatch(Patch):
    name: Any = UNSET
    description: Any = UNSET


@dataclass
class PositionPatch(Patch):
    shares: Any = UNSET
    purchase_price: Any = UNSET
    purchase_date: Any = UNSET
    notes: Any = UNSET


@dataclass
class FeaturedStockPatch(Patch):
    symbol: Any = UNSET
    title: Any = UNSET
    description: Any = UNSET
    start_date: Any = UNSET
    end_date: Any = UNSET
