from __future__ import annotations

from typing import Callable, Iterable, Mapping

import click

from main import Renderer, describe
from maze import Maze, Point
from solver import Snapshot, SolveResult

PATH_MARK = " o "
VISITED_MARK = " . "
EMPTY_MARK = "   "


def render_maze(
    maze: Maze,
    visited: Mapping[Point, int] | None = None,
    path: Iterable[Point] = (),
) -> str:
    """Draw the maze as ASCII, marking explored cells and the solution path."""
    visited = visited or {}
    on_path = set(path)
    lines: list[str] = []
    for y in range(maze.height + 1):
        row = ""
        for x in range(maze.width):
            row += "+" + ("---" if maze.has_wall(x, y, x + 1, y) else "   ")
        lines.append(row + "+")
        if y == maze.height:
            break
        row = ""
        for x in range(maze.width):
            row += "|" if maze.has_wall(x, y, x, y + 1) else " "
            cell = Point(x, y)
            if cell in on_path:
                row += PATH_MARK
            elif cell in visited:
                row += VISITED_MARK
            else:
                row += EMPTY_MARK
        row += "|" if maze.has_wall(maze.width, y, maze.width, y + 1) else " "
        lines.append(row)
    return "\n".join(lines)


class TextRenderer(Renderer):
    """Echo each frame of a solve to the terminal."""

    def __init__(self, echo: Callable[[str], None] = click.echo, frames: bool = True, clear: bool = False):
        self.echo = echo
        self.frames = frames
        self.clear = clear
        self.maze: Maze | None = None
        self.visited: Mapping[Point, int] = {}
        self.path: list[Point] = []

    def _draw(self, caption: str) -> None:
        if self.maze is None:
            self.echo(caption)
            return
        if self.clear:
            click.clear()
        self.echo(render_maze(self.maze, self.visited, self.path))
        self.echo(caption)

    def on_walls_generated(self, maze: Maze) -> None:
        self.maze = maze
        self.visited = {}
        self.path = []
        if self.frames:
            self._draw(f"{maze.width}x{maze.height} maze, {len(maze.walls)} walls")

    def on_snapshot(self, snapshot: Snapshot) -> None:
        self.visited = snapshot.visited
        self.path = []
        if self.frames:
            self._draw(f"wave {snapshot.wave_step}: {len(snapshot.visited)} cells discovered")

    def on_path_segment(self, start: Point, end: Point) -> None:
        if not self.path:
            self.path.append(start)
        self.path.append(end)
        if self.frames:
            self._draw(f"backtrace {len(self.path) - 1} segment(s)")

    def on_terminal(self, result: SolveResult) -> None:
        self.path = list(result.path)
        self._draw(describe(result))
