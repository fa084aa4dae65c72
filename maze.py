from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator, Protocol

from exceptions import MalformedEdgeError

logger = logging.getLogger(__name__)


class RandomSource(Protocol):
    def random(self) -> float: ...


class Direction(Enum):
    UP = (0, -1)
    RIGHT = (1, 0)
    DOWN = (0, 1)
    LEFT = (-1, 0)

    @property
    def delta(self) -> tuple[int, int]:
        return self.value


@dataclass(frozen=True, order=True)
class Point:
    x: int
    y: int


@dataclass(frozen=True)
class Edge:
    """
    A potential wall between two lattice points one unit apart on one axis.
    Endpoints are stored in sorted order so both orientations compare equal.
    """

    a: Point
    b: Point

    def __post_init__(self) -> None:
        dx = abs(self.a.x - self.b.x)
        dy = abs(self.a.y - self.b.y)
        if dx + dy != 1:
            raise MalformedEdgeError(f"Points are not axis-adjacent: {self.a} {self.b}")
        if self.b < self.a:
            a, b = self.b, self.a
            object.__setattr__(self, "a", a)
            object.__setattr__(self, "b", b)

    @classmethod
    def between(cls, x1: int, y1: int, x2: int, y2: int) -> "Edge":
        return cls(Point(x1, y1), Point(x2, y2))

    @property
    def horizontal(self) -> bool:
        return self.a.y == self.b.y


@dataclass(frozen=True)
class Maze:
    width: int
    height: int
    walls: frozenset[Edge] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if self.width < 1 or self.height < 1:
            raise ValueError(f"Maze must be at least 1x1, got {self.width}x{self.height}")
        for edge in self.walls:
            if not (self._on_lattice(edge.a) and self._on_lattice(edge.b)):
                raise MalformedEdgeError(f"Wall outside the {self.width}x{self.height} grid: {edge}")

    def _on_lattice(self, point: Point) -> bool:
        return 0 <= point.x <= self.width and 0 <= point.y <= self.height

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def has_wall(self, x1: int, y1: int, x2: int, y2: int) -> bool:
        edge = Edge.between(x1, y1, x2, y2)
        if not (self._on_lattice(edge.a) and self._on_lattice(edge.b)):
            raise MalformedEdgeError(f"Edge outside the {self.width}x{self.height} grid: {edge}")
        return edge in self.walls

    def is_open(self, edge: Edge) -> bool:
        return edge not in self.walls

    def cell_edge(self, x: int, y: int, direction: Direction) -> Edge:
        """Return the side of cell (x, y) that faces ``direction``."""
        if direction is Direction.UP:
            return Edge.between(x, y, x + 1, y)
        if direction is Direction.RIGHT:
            return Edge.between(x + 1, y, x + 1, y + 1)
        if direction is Direction.DOWN:
            return Edge.between(x, y + 1, x + 1, y + 1)
        return Edge.between(x, y, x, y + 1)

    def entrance_edge(self, x: int) -> Edge:
        return self.cell_edge(x, 0, Direction.UP)

    def exit_edge(self, x: int) -> Edge:
        return self.cell_edge(x, self.height - 1, Direction.DOWN)

    def entrances(self) -> list[int]:
        return [x for x in range(self.width) if self.is_open(self.entrance_edge(x))]

    def exits(self) -> list[int]:
        return [x for x in range(self.width) if self.is_open(self.exit_edge(x))]

    def available_moves(self, point: Point) -> set[Direction]:
        if not self.in_bounds(point.x, point.y):
            return set()
        moves: set[Direction] = set()
        for direction in Direction:
            dx, dy = direction.delta
            if not self.in_bounds(point.x + dx, point.y + dy):
                continue
            if self.is_open(self.cell_edge(point.x, point.y, direction)):
                moves.add(direction)
        return moves

    def edges(self) -> Iterator[Edge]:
        """Every edge of the grid lattice, outer boundary included."""
        for y in range(self.height + 1):
            for x in range(self.width + 1):
                if x < self.width:
                    yield Edge.between(x, y, x + 1, y)
                if y < self.height:
                    yield Edge.between(x, y, x, y + 1)


def lucky(rng: RandomSource, biased: bool = False) -> bool:
    """Roll a six-sided die (eight-sided when biased); 1-4 means the edge stays open."""
    sides = 8 if biased else 6
    return int(rng.random() * sides) + 1 <= 4


def generate_walls(width: int, height: int, rng: RandomSource) -> frozenset[Edge]:
    """
    Decide every lattice edge independently.

    Horizontal edges are open with probability 4/6 and vertical edges with 4/8.
    The result is not guaranteed to connect the top row to the bottom row.
    """
    walls: set[Edge] = set()
    for y in range(height + 1):
        for x in range(width + 1):
            if x < width and not lucky(rng):
                walls.add(Edge.between(x, y, x + 1, y))
            if y < height and not lucky(rng, biased=True):
                walls.add(Edge.between(x, y, x, y + 1))
    return frozenset(walls)


def build_maze(
    width: int,
    height: int,
    seed: int | None = None,
    rng: RandomSource | None = None,
) -> Maze:
    if width < 1 or height < 1:
        raise ValueError(f"Maze must be at least 1x1, got {width}x{height}")
    if rng is None:
        rng = random.Random(seed)
    walls = generate_walls(width, height, rng)
    logger.debug("Generated %dx%d maze with %d walls (seed=%s)", width, height, len(walls), seed)
    return Maze(width=width, height=height, walls=walls)


def build_open_maze(width: int, height: int) -> Maze:
    return Maze(width=width, height=height, walls=frozenset())


def build_closed_maze(width: int, height: int) -> Maze:
    return Maze(width=width, height=height, walls=frozenset(build_open_maze(width, height).edges()))


def with_walls(maze: Maze, edges: Iterable[Edge]) -> Maze:
    """Return a copy of ``maze`` with ``edges`` added to its walls."""
    return Maze(width=maze.width, height=maze.height, walls=maze.walls | frozenset(edges))
