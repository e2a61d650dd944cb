"""Random number sources for combat resolution.

Every random draw the engine makes goes through a :class:`RandomSource`,
so an encounter is fully reproducible from its source. Two
implementations ship with the engine:

- :class:`DiceRoller` draws from a seeded generator.
- :class:`SequenceRandom` replays scripted values, for replays and tests.

Dice notation is parsed with the d20 library and evaluated against the
source itself, so ``roll("4d6kh3")`` consumes four ``die(6)`` draws on
either implementation.

Example:
    >>> roller = DiceRoller(seed=7)
    >>> 1 <= roller.die(20) <= 20
    True
    >>> roller.roll("3d6*10") % 10
    0
"""

from __future__ import annotations

import operator
import random
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Callable, Iterable, Sequence
from typing import Any, TypeVar

from dungeon_combat.core.exceptions import DiceRollError
from dungeon_combat.core.logging import get_logger


logger = get_logger(__name__)

T = TypeVar("T")

_BINARY_OPS: dict[str, Callable[[Any, Any], Any]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
    "//": operator.floordiv,
    "%": operator.mod,
}


class RandomSource(ABC):
    """Abstract source of randomness.

    Subclasses supply ``integer`` and ``chance``; everything else is
    derived from those two primitives so the draw order is the same for
    every implementation.
    """

    @abstractmethod
    def integer(self, low: int, high: int) -> int:
        """Return an integer in ``[low, high]`` inclusive."""

    @abstractmethod
    def chance(self, probability: float) -> bool:
        """Return True with the given probability (0.0 to 1.0)."""

    def die(self, sides: int) -> int:
        """Roll a single die with ``sides`` faces."""
        return self.integer(1, sides)

    def dice(self, count: int, sides: int) -> int:
        """Roll ``count`` dice and return the sum."""
        return sum(self.die(sides) for _ in range(count))

    def percent(self, percentage: float) -> bool:
        """Return True with ``percentage`` percent chance."""
        return self.chance(percentage / 100)

    def choice(self, items: Sequence[T]) -> T | None:
        """Pick one element uniformly, or None for an empty sequence."""
        if not items:
            return None
        return items[self.integer(0, len(items) - 1)]

    def roll(self, expression: str) -> int:
        """Roll dice notation, drawing every die from this source.

        Arithmetic (``+ - * / // %``), parentheses, sets and the keep,
        drop, minimum and maximum operators (``kh3``, ``pl1``, ``mi2``,
        ``ma5``) are supported. Dice are drawn left to right.

        Args:
            expression: Dice notation, e.g. ``2d6``, ``3d6*10`` or ``4d6kh3``.

        Returns:
            The rolled total, truncated to an integer.

        Raises:
            DiceRollError: If the expression is empty, malformed, or uses an
                operator that rerolls or explodes dice.
        """
        if not expression or not expression.strip():
            raise DiceRollError("Empty dice expression", expression=expression)

        import d20

        try:
            tree = d20.parse(expression)
        except d20.RollError as exc:
            raise DiceRollError(f"Invalid dice expression: {exc}", expression=expression) from exc

        total = int(self._evaluate(tree, expression))
        logger.debug("Dice rolled", expression=expression, total=total)
        return total

    def _evaluate(self, node: Any, expression: str) -> int | float:
        import d20

        ast = d20.ast
        if isinstance(node, ast.Expression):
            return self._evaluate(node.roll, expression)
        if isinstance(node, (ast.AnnotatedNumber, ast.Parenthetical)):
            return self._evaluate(node.value, expression)
        if isinstance(node, ast.Literal):
            return node.value
        if isinstance(node, ast.UnOp):
            value = self._evaluate(node.value, expression)
            return -value if node.op == "-" else value
        if isinstance(node, ast.BinOp):
            op = _BINARY_OPS.get(node.op)
            if op is None:
                raise DiceRollError(f"Unsupported operator {node.op!r}", expression=expression)
            left = self._evaluate(node.left, expression)
            right = self._evaluate(node.right, expression)
            try:
                return op(left, right)
            except ZeroDivisionError as exc:
                raise DiceRollError("Division by zero", expression=expression) from exc
        if isinstance(node, (ast.Dice, ast.NumberSet, ast.OperatedSet)):
            return sum(self._set_values(node, expression))
        raise DiceRollError(f"Unsupported dice term {type(node).__name__}", expression=expression)

    def _set_values(self, node: Any, expression: str) -> list[int | float]:
        """Values of a dice group or set after its operators, dropped ones removed."""
        import d20

        ast = d20.ast
        if isinstance(node, ast.Dice):
            if not isinstance(node.size, int) or node.size < 1:
                raise DiceRollError(f"Cannot roll a d{node.size}", expression=expression)
            return [self.die(node.size) for _ in range(node.num)]
        if isinstance(node, ast.NumberSet):
            return [self._evaluate(value, expression) for value in node.values]
        if isinstance(node, ast.OperatedSet):
            values = self._set_values(node.value, expression)
            for set_op in node.operations:
                values = _apply_set_operator(values, set_op, expression)
            return values
        return [self._evaluate(node, expression)]


def _selected(values: list[int | float], selectors: Iterable[Any], expression: str) -> set[int]:
    """Indices of ``values`` matched by any of the d20 selectors."""
    by_value = sorted(range(len(values)), key=lambda index: values[index])
    chosen: set[int] = set()
    for selector in selectors:
        if selector.cat == "h":
            chosen.update(by_value[max(0, len(by_value) - selector.num) :])
        elif selector.cat == "l":
            chosen.update(by_value[: selector.num])
        elif selector.cat == ">":
            chosen.update(index for index, value in enumerate(values) if value > selector.num)
        elif selector.cat == "<":
            chosen.update(index for index, value in enumerate(values) if value < selector.num)
        elif selector.cat is None:
            chosen.update(index for index, value in enumerate(values) if value == selector.num)
        else:
            raise DiceRollError(f"Unsupported selector {selector.cat!r}", expression=expression)
    return chosen


def _apply_set_operator(values: list[int | float], set_op: Any, expression: str) -> list[int | float]:
    if set_op.op == "mi":
        floor = max(selector.num for selector in set_op.sels)
        return [max(value, floor) for value in values]
    if set_op.op == "ma":
        ceiling = min(selector.num for selector in set_op.sels)
        return [min(value, ceiling) for value in values]

    chosen = _selected(values, set_op.sels, expression)
    if set_op.op == "k":
        return [value for index, value in enumerate(values) if index in chosen]
    if set_op.op == "p":
        return [value for index, value in enumerate(values) if index not in chosen]
    raise DiceRollError(f"Unsupported dice operator {set_op.op!r}", expression=expression)


class DiceRoller(RandomSource):
    """Seedable random source backed by :mod:`random`.

    All draws, notation rolls included, come from a private
    :class:`random.Random`, so two rollers with the same seed produce the
    same encounter.
    """

    def __init__(self, *, seed: int | None = None) -> None:
        """Initialize the dice roller.

        Args:
            seed: Optional random seed for reproducible encounters.
        """
        self._seed = seed
        self._rng = random.Random(seed)
        logger.info("DiceRoller initialized", seed=seed)

    @property
    def seed(self) -> int | None:
        return self._seed

    def integer(self, low: int, high: int) -> int:
        if low > high:
            raise DiceRollError(f"Empty range [{low}, {high}]")
        return self._rng.randint(low, high)

    def chance(self, probability: float) -> bool:
        return self._rng.random() < probability


class SequenceRandom(RandomSource):
    """Replays scripted draws in order.

    Integer draws and chance draws are kept in separate queues. When a
    queue runs dry the optional ``fallback`` source takes over; without
    one, :class:`DiceRollError` is raised.

    Example:
        >>> rng = SequenceRandom(integers=[15, 4], chances=[False])
        >>> rng.die(20), rng.die(6), rng.chance(0.5)
        (15, 4, False)
    """

    def __init__(
        self,
        *,
        integers: Iterable[int] = (),
        chances: Iterable[bool] = (),
        fallback: RandomSource | None = None,
    ) -> None:
        self._integers: deque[int] = deque(integers)
        self._chances: deque[bool] = deque(chances)
        self._fallback = fallback
        self.draws: list[tuple[str, int | bool]] = []

    def push_integers(self, *values: int) -> None:
        self._integers.extend(values)

    def push_chances(self, *values: bool) -> None:
        self._chances.extend(values)

    @property
    def remaining(self) -> tuple[int, int]:
        """Scripted integer and chance draws not yet consumed."""
        return len(self._integers), len(self._chances)

    def integer(self, low: int, high: int) -> int:
        if self._integers:
            value = self._integers.popleft()
            if not low <= value <= high:
                raise DiceRollError(
                    f"Scripted value {value} outside [{low}, {high}]",
                    details={"draw": len(self.draws)},
                )
        elif self._fallback is not None:
            value = self._fallback.integer(low, high)
        else:
            raise DiceRollError("Scripted integers exhausted", details={"draw": len(self.draws)})
        self.draws.append(("integer", value))
        return value

    def chance(self, probability: float) -> bool:
        if self._chances:
            value = self._chances.popleft()
        elif self._fallback is not None:
            value = self._fallback.chance(probability)
        else:
            raise DiceRollError("Scripted chances exhausted", details={"draw": len(self.draws)})
        self.draws.append(("chance", value))
        return value


__all__ = [
    "RandomSource",
    "DiceRoller",
    "SequenceRandom",
]
