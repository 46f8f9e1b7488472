"""
Binary Operator Precedence Table
================================

Maps single-character binary operators to integer precedences. Higher
numbers bind tighter. The parser only ever reads the table: a character
that is not in the table simply does not continue a binary expression.

Seed Table
----------
| Operator | Precedence |
|----------|------------|
| <        | 10         |
| +        | 20         |
| -        | 30         |
| *        | 40         |

Note that '-' binds tighter than '+' in the seed table. This ordering is
kept as-is; callers wanting conventional arithmetic can override it before
parsing:

>>> table = initialize_precedence_table()
>>> table.set("-", 20)
>>> table.set("/", 40)

A table may be frozen once configured, after which it can be shared
read-only between independent parsing sessions.
"""

from typing import Iterator, Mapping, Optional


# Baseline operators installed by initialize_precedence_table()
DEFAULT_BINARY_PRECEDENCE: dict[str, int] = {
    "<": 10,
    "+": 20,
    "-": 30,
    "*": 40,
}


class PrecedenceTable:
    """
    Mutable operator → precedence mapping.

    Attributes:
        frozen: True once freeze() has been called
    """

    def __init__(self, operators: Optional[Mapping[str, int]] = None):
        self._table: dict[str, int] = {}
        self.frozen = False
        for operator, precedence in (operators or {}).items():
            self.set(operator, precedence)

    def set(self, operator: str, precedence: int) -> None:
        """
        Define or redefine an operator's precedence.

        Args:
            operator: A single character
            precedence: A positive integer

        Raises:
            ValueError: If the operator or precedence is invalid
            RuntimeError: If the table is frozen
        """
        if self.frozen:
            raise RuntimeError("precedence table is frozen")
        if not isinstance(operator, str) or len(operator) != 1:
            raise ValueError(f"Operator must be a single character, got {operator!r}")
        if isinstance(precedence, bool) or not isinstance(precedence, int) or precedence <= 0:
            raise ValueError(f"Precedence must be a positive integer, got {precedence!r}")
        self._table[operator] = precedence

    def get(self, operator: str) -> Optional[int]:
        """Return the operator's precedence, or None if it has none."""
        return self._table.get(operator)

    def remove(self, operator: str) -> None:
        """Remove an operator; removing an unknown operator is a no-op."""
        if self.frozen:
            raise RuntimeError("precedence table is frozen")
        self._table.pop(operator, None)

    def freeze(self) -> "PrecedenceTable":
        """Disallow further changes and return the table."""
        self.frozen = True
        return self

    def copy(self) -> "PrecedenceTable":
        """Return an unfrozen copy."""
        return PrecedenceTable(self._table)

    def items(self) -> Iterator[tuple[str, int]]:
        """Operators and precedences, lowest precedence first."""
        return iter(sorted(self._table.items(), key=lambda item: (item[1], item[0])))

    def __contains__(self, operator: object) -> bool:
        return operator in self._table

    def __len__(self) -> int:
        return len(self._table)

    def __repr__(self) -> str:
        entries = ", ".join(f"{op!r}: {prec}" for op, prec in self.items())
        return f"PrecedenceTable({{{entries}}})"


def initialize_precedence_table() -> PrecedenceTable:
    """Create a new table seeded with the baseline operators."""
    return PrecedenceTable(DEFAULT_BINARY_PRECEDENCE)
