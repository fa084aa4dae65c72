from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from maze import Direction, Edge, Maze, Point

logger = logging.getLogger(__name__)

# Parent index of entrance nodes, which hang off an implicit row above the grid.
ROOT = -1


@dataclass(frozen=True)
class SearchNode:
    x: int
    y: int
    step: int
    parent: int
    parent_edge: Edge

    @property
    def point(self) -> Point:
        return Point(self.x, self.y)


@dataclass(frozen=True)
class Snapshot:
    """
    Partial search state after a BFS wave has been fully discovered.

    ``visited`` maps every discovered cell to its step; ``frontier`` lists the
    cells of the wave that is about to be expanded.
    """

    wave_step: int
    visited: Mapping[Point, int]
    frontier: tuple[Point, ...]


class SolveOutcome(Enum):
    SOLVED = "solved"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class SolveResult:
    outcome: SolveOutcome
    path: tuple[Point, ...] = ()
    terminal: SearchNode | None = None
    waves: int = 0
    explored: int = 0

    @property
    def solved(self) -> bool:
        return self.outcome is SolveOutcome.SOLVED

    @property
    def steps(self) -> int:
        return self.terminal.step if self.terminal is not None else 0

    def segments(self) -> list[tuple[Point, Point]]:
        """Consecutive path pairs, goal first."""
        return list(zip(self.path, self.path[1:]))


class BfsSolver:
    """
    Resumable breadth-first search from the open top-row entrances to any open
    bottom-row exit.

    Each ``advance()`` call does the work of at most one wave and returns either
    the ``Snapshot`` of the next wave or the final ``SolveResult``. The solver can
    be abandoned between calls at any point.
    """

    def __init__(self, maze: Maze):
        self.maze = maze
        self._nodes: list[SearchNode] = []
        self._visited: dict[Point, int] = {}
        self._queue: deque[int] = deque()
        self._wave_step = 0
        self._waves = 0
        self._expanded = 0
        self._result: SolveResult | None = None
        self._seed()

    def _seed(self) -> None:
        for x in range(self.maze.width):
            edge = self.maze.entrance_edge(x)
            if self.maze.is_open(edge):
                self._discover(x, 0, 1, ROOT, edge)
        logger.debug("Seeded %d entrance(s) on a %dx%d maze", len(self._queue), self.maze.width, self.maze.height)

    def _discover(self, x: int, y: int, step: int, parent: int, parent_edge: Edge) -> bool:
        point = Point(x, y)
        if point in self._visited:
            return False
        self._nodes.append(SearchNode(x=x, y=y, step=step, parent=parent, parent_edge=parent_edge))
        index = len(self._nodes) - 1
        self._visited[point] = index
        self._queue.append(index)
        return True

    @property
    def done(self) -> bool:
        return self._result is not None

    @property
    def result(self) -> SolveResult | None:
        return self._result

    @property
    def wave_step(self) -> int:
        return self._wave_step

    @property
    def visited(self) -> Mapping[Point, int]:
        return MappingProxyType({p: self._nodes[i].step for p, i in self._visited.items()})

    def node(self, index: int) -> SearchNode:
        return self._nodes[index]

    def advance(self) -> Snapshot | SolveResult:
        if self._result is not None:
            return self._result

        while self._queue:
            index = self._queue[0]
            node = self._nodes[index]
            if node.step > self._wave_step:
                self._wave_step = node.step
                self._waves += 1
                return self._snapshot()

            self._queue.popleft()
            self._expanded += 1
            if self._is_goal(node):
                return self._finish(SolveOutcome.SOLVED, index)
            self._expand(index, node)

        return self._finish(SolveOutcome.EXHAUSTED)

    def run(self) -> SolveResult:
        while True:
            item = self.advance()
            if isinstance(item, SolveResult):
                return item

    def __iter__(self) -> "BfsSolver":
        return self

    def __next__(self) -> Snapshot:
        item = self.advance()
        if isinstance(item, SolveResult):
            raise StopIteration
        return item

    def _is_goal(self, node: SearchNode) -> bool:
        return node.y == self.maze.height - 1 and self.maze.is_open(self.maze.exit_edge(node.x))

    def _expand(self, index: int, node: SearchNode) -> None:
        for direction in Direction:
            edge = self.maze.cell_edge(node.x, node.y, direction)
            # The entry edge is skipped; other routes back are caught by the visited map.
            if edge == node.parent_edge or not self.maze.is_open(edge):
                continue
            dx, dy = direction.delta
            nx, ny = node.x + dx, node.y + dy
            if not self.maze.in_bounds(nx, ny):
                continue
            self._discover(nx, ny, node.step + 1, index, edge)

    def _snapshot(self) -> Snapshot:
        return Snapshot(
            wave_step=self._wave_step,
            visited=self.visited,
            frontier=tuple(self._nodes[i].point for i in self._queue),
        )

    def _backtrace(self, index: int) -> tuple[Point, ...]:
        path: list[Point] = []
        cursor = index
        while cursor != ROOT:
            node = self._nodes[cursor]
            path.append(node.point)
            cursor = node.parent
        return tuple(path)

    def _finish(self, outcome: SolveOutcome, index: int | None = None) -> SolveResult:
        if index is None:
            self._result = SolveResult(outcome=outcome, waves=self._waves, explored=self._expanded)
            logger.info("Search exhausted after %d wave(s), %d cell(s) expanded", self._waves, self._expanded)
        else:
            terminal = self._nodes[index]
            self._result = SolveResult(
                outcome=outcome,
                path=self._backtrace(index),
                terminal=terminal,
                waves=self._waves,
                explored=self._expanded,
            )
            logger.info("Reached exit at (%d, %d) in %d steps", terminal.x, terminal.y, terminal.step)
        self._queue.clear()
        return self._result


def solve(maze: Maze) -> BfsSolver:
    return BfsSolver(maze)


def solve_immediately(maze: Maze) -> SolveResult:
    return BfsSolver(maze).run()
