import importlib
import random
from collections import deque
from pathlib import Path

import pytest


def import_required(module_name: str):
    """
    Import a project module with a clearer failure message than ModuleNotFoundError.
    """
    try:
        return importlib.import_module(module_name)
    except ModuleNotFoundError as e:
        pytest.fail(f"Required module '{module_name}.py' could not be imported. Original error: {e}")


@pytest.fixture
def maze_module():
    return import_required("maze")


@pytest.fixture
def solver_module():
    return import_required("solver")


@pytest.fixture
def main_module():
    return import_required("main")


@pytest.fixture
def db_module():
    return import_required("db")


@pytest.fixture
def open_maze(maze_module):
    return maze_module.build_open_maze(4, 4)


@pytest.fixture
def closed_maze(maze_module):
    return maze_module.build_closed_maze(4, 4)


@pytest.fixture
def repo(tmp_path, db_module):
    repo = db_module.JsonRunRepository(tmp_path / "runs.json")
    yield repo
    repo.close()


@pytest.fixture
def repo_path(tmp_path) -> Path:
    return tmp_path / "runs.json"


class RecordingRenderer:
    """Renderer double that records every hook call in order."""

    def __init__(self):
        self.events = []

    def on_walls_generated(self, maze):
        self.events.append(("walls", maze))

    def on_snapshot(self, snapshot):
        self.events.append(("snapshot", snapshot))

    def on_path_segment(self, start, end):
        self.events.append(("segment", (start, end)))

    def on_terminal(self, result):
        self.events.append(("terminal", result))

    def of(self, kind):
        return [payload for k, payload in self.events if k == kind]


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def scheduler():
    return import_required("scheduler").ManualScheduler()


@pytest.fixture
def make_controller(main_module, scheduler, renderer):
    def _make(width=4, height=4, repo=None, seed=None):
        return main_module.StepController(
            scheduler=scheduler,
            width=width,
            height=height,
            renderer=renderer,
            tempo=0.01,
            rng=random.Random(seed),
            repo=repo,
        )

    return _make


def shortest_top_to_bottom(maze_mod, maze):
    """
    Reference shortest path length, counted in cells, from any open entrance to
    any open exit, using only the public maze API. Returns None when unreachable.
    """
    Point = maze_mod.Point
    dist = {}
    q = deque()
    for x in maze.entrances():
        start = Point(x, 0)
        dist[start] = 1
        q.append(start)

    exits = set(maze.exits())
    best = None
    while q:
        cur = q.popleft()
        if cur.y == maze.height - 1 and cur.x in exits:
            best = dist[cur] if best is None else min(best, dist[cur])
        for d in maze.available_moves(cur):
            dx, dy = d.delta
            nxt = Point(cur.x + dx, cur.y + dy)
            if nxt in dist:
                continue
            dist[nxt] = dist[cur] + 1
            q.append(nxt)
    return best
