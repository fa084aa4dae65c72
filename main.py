from __future__ import annotations

import logging
import random
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Protocol

from maze import Maze, Point, RandomSource, build_maze
from solver import BfsSolver, Snapshot, SolveResult, solve

logger = logging.getLogger(__name__)


class Timer(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Holds at most one pending callback; arming a second one raises SchedulerBusyError."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> Timer: ...


class ControllerStatus(Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    STEPPING = "stepping"


class Renderer:
    """Receives search progress; every hook is a no-op unless overridden."""

    def on_walls_generated(self, maze: Maze) -> None:
        pass

    def on_snapshot(self, snapshot: Snapshot) -> None:
        pass

    def on_path_segment(self, start: Point, end: Point) -> None:
        pass

    def on_terminal(self, result: SolveResult) -> None:
        pass


@dataclass(frozen=True)
class Command:
    """
    Normalized command object consumed by the controller.
    """

    verb: str
    args: list[str] = field(default_factory=list)


@dataclass
class ControllerState:
    """
    Everything a session owns between commands: the current maze, the in-flight
    solver and its timer, and the pending backtrace of a finished animated solve.
    """

    status: ControllerStatus = ControllerStatus.IDLE
    maze: Maze | None = None
    seed: int | None = None
    solver: BfsSolver | None = None
    timer: Timer | None = None
    trace: deque[tuple[Point, Point]] = field(default_factory=deque)
    pending_result: SolveResult | None = None
    last_snapshot: Snapshot | None = None
    last_result: SolveResult | None = None


@dataclass
class ControllerView:
    """
    UI-agnostic state projection returned by the controller.
    """

    status: str
    width: int
    height: int
    wall_count: int
    wave_step: int
    visited_count: int
    outcome: str | None = None
    path_length: int = 0


@dataclass
class ControllerOutput:
    """
    Wrapper for state + user-facing messages from controller commands.
    """

    view: ControllerView
    messages: list[str] = field(default_factory=list)
    acted: bool = False


class StepController:
    def __init__(
        self,
        *,
        scheduler: Scheduler,
        width: int,
        height: int,
        renderer: Renderer | None = None,
        tempo: float = 0.01,
        rng: RandomSource | None = None,
        repo: Any = None,
    ):
        self.scheduler = scheduler
        self.width = width
        self.height = height
        self.renderer = renderer or Renderer()
        self.tempo = tempo
        self.rng = rng or random.Random()
        self.repo = repo
        self.state = ControllerState()

    @property
    def status(self) -> ControllerStatus:
        return self.state.status

    # Commands
    def generate(self, seed: int | None = None) -> bool:
        if self.state.status is not ControllerStatus.IDLE:
            logger.debug("generate ignored while %s", self.state.status.value)
            return False
        rng = random.Random(seed) if seed is not None else self.rng
        self.state.maze = build_maze(self.width, self.height, seed=seed, rng=rng)
        self.state.seed = seed
        self.state.last_snapshot = None
        self.state.last_result = None
        self.renderer.on_walls_generated(self.state.maze)
        return True

    def solve_animated(self) -> bool:
        if self.state.status is ControllerStatus.PAUSED:
            return self.resume()
        if self.state.status is not ControllerStatus.IDLE:
            logger.debug("solve_animated ignored while %s", self.state.status.value)
            return False
        self._start_solver()
        self._set_status(ControllerStatus.RUNNING)
        self._arm()
        return True

    def solve_immediate(self) -> bool:
        if self.state.status is ControllerStatus.RUNNING:
            logger.debug("solve_immediate ignored while running")
            return False
        if self.state.status is ControllerStatus.IDLE:
            self._start_solver()
        if self.state.pending_result is not None:
            self._finish(self.state.pending_result)
            return True
        solver = self.state.solver
        for snapshot in solver:
            self.state.last_snapshot = snapshot
        self._finish(solver.result)
        return True

    def pause(self) -> bool:
        if self.state.status is not ControllerStatus.RUNNING:
            logger.debug("pause ignored while %s", self.state.status.value)
            return False
        self._cancel_timer()
        self._set_status(ControllerStatus.PAUSED)
        return True

    def resume(self) -> bool:
        if self.state.status is not ControllerStatus.PAUSED:
            logger.debug("resume ignored while %s", self.state.status.value)
            return False
        self._set_status(ControllerStatus.RUNNING)
        self._arm()
        return True

    def step(self) -> bool:
        if self.state.status is ControllerStatus.RUNNING:
            logger.debug("step ignored while running")
            return False
        if self.state.status is ControllerStatus.IDLE:
            self._start_solver()
        self._set_status(ControllerStatus.STEPPING)
        self._pull()
        if self.state.status is ControllerStatus.STEPPING:
            self._set_status(ControllerStatus.PAUSED)
        return True

    def reset(self) -> bool:
        self._discard()
        self._set_status(ControllerStatus.IDLE)
        self.generate()
        return True

    # Internals
    def _set_status(self, status: ControllerStatus) -> None:
        if status is not self.state.status:
            logger.debug("controller %s -> %s", self.state.status.value, status.value)
        self.state.status = status

    def _start_solver(self) -> None:
        if self.state.maze is None:
            self.generate()
        self.state.solver = solve(self.state.maze)
        self.state.last_snapshot = None
        self.state.last_result = None

    def _arm(self) -> None:
        self.state.timer = self.scheduler.call_later(self.tempo, self._on_tick)

    def _cancel_timer(self) -> None:
        if self.state.timer is not None:
            self.state.timer.cancel()
            self.state.timer = None

    def _discard(self) -> None:
        self._cancel_timer()
        self.state.solver = None
        self.state.trace.clear()
        self.state.pending_result = None

    def _on_tick(self) -> None:
        self.state.timer = None
        if self.state.status is not ControllerStatus.RUNNING:
            return
        self._pull()
        if self.state.status is ControllerStatus.RUNNING:
            self._arm()

    def _pull(self) -> None:
        """Do one unit of work: a wave, a backtrace segment, or the terminal result."""
        if self.state.trace:
            start, end = self.state.trace.popleft()
            self.renderer.on_path_segment(start, end)
            if not self.state.trace:
                self._finish(self.state.pending_result)
            return

        item = self.state.solver.advance()
        if isinstance(item, Snapshot):
            self.state.last_snapshot = item
            self.renderer.on_snapshot(item)
            return

        segments = item.segments()
        if item.solved and segments and self.state.status is ControllerStatus.RUNNING:
            self.state.trace.extend(segments)
            self.state.pending_result = item
            return
        self._finish(item)

    def _finish(self, result: SolveResult) -> None:
        self._discard()
        self.state.last_result = result
        self._set_status(ControllerStatus.IDLE)
        self._record(result)
        self.renderer.on_terminal(result)

    def _record(self, result: SolveResult) -> None:
        if self.repo is None:
            return
        self.repo.record_run(
            width=self.width,
            height=self.height,
            seed=self.state.seed,
            outcome=result.outcome.value,
            steps=result.steps,
            waves=result.waves,
            explored=result.explored,
        )

    # Views
    def _make_view(self) -> ControllerView:
        maze = self.state.maze
        solver = self.state.solver
        snapshot = self.state.last_snapshot
        result = self.state.last_result
        if solver is not None:
            wave_step, visited_count = solver.wave_step, len(solver.visited)
        elif snapshot is not None:
            wave_step, visited_count = snapshot.wave_step, len(snapshot.visited)
        else:
            wave_step, visited_count = 0, 0
        return ControllerView(
            status=self.state.status.value,
            width=self.width,
            height=self.height,
            wall_count=len(maze.walls) if maze is not None else 0,
            wave_step=wave_step,
            visited_count=visited_count,
            outcome=result.outcome.value if result is not None else None,
            path_length=result.steps if result is not None else 0,
        )

    def view(self) -> ControllerView:
        return self._make_view()

    def handle(self, command: Command) -> ControllerOutput:
        verb = (command.verb or "").strip().lower()
        args = command.args or []

        if verb in {"status", "look"}:
            return ControllerOutput(view=self._make_view())

        if verb in {"generate", "new"}:
            seed = None
            if args:
                try:
                    seed = int(args[0])
                except ValueError:
                    return ControllerOutput(view=self._make_view(), messages=["Seed must be an integer."])
            acted = self.generate(seed=seed)
            messages = [] if acted else ["Stop the current solve before generating (or use reset)."]
            return ControllerOutput(view=self._make_view(), messages=messages, acted=acted)

        actions = {
            "animate": (self.solve_animated, "Already running."),
            "start": (self.solve_animated, "Already running."),
            "solve": (self.solve_immediate, "Pause before solving immediately."),
            "pause": (self.pause, "Nothing is running."),
            "resume": (self.resume, "Nothing is paused."),
            "step": (self.step, "Pause before stepping."),
            "reset": (self.reset, ""),
        }
        if verb not in actions:
            return ControllerOutput(view=self._make_view(), messages=["Unknown command."])

        action, refusal = actions[verb]
        acted = action()
        messages = [] if acted else [refusal]
        if acted and self.state.status is ControllerStatus.IDLE and self.state.last_result is not None:
            messages.append(describe(self.state.last_result))
        return ControllerOutput(view=self._make_view(), messages=messages, acted=acted)


def describe(result: SolveResult) -> str:
    if result.solved:
        return f"Solved in {result.steps} steps ({result.waves} waves, {result.explored} cells expanded)."
    return f"No path from top to bottom ({result.waves} waves, {result.explored} cells expanded)."
