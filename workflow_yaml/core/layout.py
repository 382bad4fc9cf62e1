"""Deterministic auto-layout for steps without a stored position.

Positions are pure functions of ``(index, total)``.
"""

import math
from typing import Callable, Sequence

from .models import GraphNode, Position


PositionFn = Callable[[int, int], Position]

HORIZONTAL_CENTER = 400
VERTICAL_START = 100
VERTICAL_SPACING = 120

GRID_HORIZONTAL_START = 100
GRID_HORIZONTAL_SPACING = 250


def vertical_position(index: int, total: int) -> Position:
    """Stack nodes top to bottom on a fixed center line."""
    return Position(x=HORIZONTAL_CENTER, y=VERTICAL_START + index * VERTICAL_SPACING)


def grid_position(index: int, total: int) -> Position:
    """Place nodes on a square-ish grid, row by row.

    Useful for workflows with many parallel steps.
    """
    columns = max(1, math.ceil(math.sqrt(total)))
    row, col = divmod(index, columns)
    return Position(
        x=GRID_HORIZONTAL_START + col * GRID_HORIZONTAL_SPACING,
        y=VERTICAL_START + row * VERTICAL_SPACING,
    )


def apply_grid_layout(nodes: Sequence[GraphNode]) -> list[GraphNode]:
    """Return copies of ``nodes`` re-positioned on a grid."""
    total = len(nodes)
    return [
        node.model_copy(update={"position": grid_position(index, total)}, deep=True)
        for index, node in enumerate(nodes)
    ]
