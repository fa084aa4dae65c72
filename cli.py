#!/usr/bin/env python3
import logging
import sys
from pathlib import Path
from typing import Optional

import click

from config import Settings, get_settings
from db import open_repo
from exceptions import MazeError
from main import Command, StepController
from maze import build_maze
from render import TextRenderer, render_maze
from scheduler import SleepingScheduler

logger = logging.getLogger("maze")

LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"


def setup_logging(verbosity: int, default_level: str = "WARNING") -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = getattr(logging, default_level)
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")


def _open_history(path: Optional[Path], settings: Settings):
    path = path or settings.history_path
    if path is None:
        return None
    logger.debug("Recording runs to %s", path)
    return open_repo(path)


@click.group()
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v INFO, -vv DEBUG).")
@click.pass_context
def cli(ctx, verbose: int):
    """Generate random mazes and solve them with breadth-first search."""
    try:
        settings = get_settings()
    except MazeError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    setup_logging(verbose, settings.log_level)
    ctx.obj = settings


def size_options(fn):
    fn = click.option("--seed", type=int, default=None, help="Seed for a reproducible maze.")(fn)
    fn = click.option("--height", type=click.IntRange(min=1), default=None, help="Rows in the grid.")(fn)
    fn = click.option("--width", type=click.IntRange(min=1), default=None, help="Columns in the grid.")(fn)
    return fn


@cli.command()
@size_options
@click.pass_obj
def generate(settings: Settings, width: Optional[int], height: Optional[int], seed: Optional[int]):
    """Print a freshly generated maze."""
    seed = seed if seed is not None else settings.seed
    maze = build_maze(width or settings.width, height or settings.height, seed=seed)
    click.echo(render_maze(maze))
    click.echo(f"{maze.width}x{maze.height} maze, {len(maze.walls)} walls, {len(maze.entrances())} entrances")


@cli.command()
@size_options
@click.option("--animate/--no-animate", default=False, help="Show every BFS wave and the backtrace.")
@click.option("--tempo", type=click.FloatRange(min=0), default=None, help="Seconds between animation frames.")
@click.option("--clear", is_flag=True, help="Clear the screen between frames.")
@click.option("--history", "history_path", type=click.Path(path_type=Path), default=None, help="Record the run (.db for SQLite, else JSON).")
@click.pass_obj
def solve(
    settings: Settings,
    width: Optional[int],
    height: Optional[int],
    seed: Optional[int],
    animate: bool,
    tempo: Optional[float],
    clear: bool,
    history_path: Optional[Path],
):
    """Generate a maze and find a shortest top-to-bottom path."""
    repo = _open_history(history_path, settings)
    scheduler = SleepingScheduler()
    controller = StepController(
        scheduler=scheduler,
        width=width or settings.width,
        height=height or settings.height,
        renderer=TextRenderer(frames=animate, clear=clear),
        tempo=settings.tempo if tempo is None else tempo,
        repo=repo,
    )
    try:
        controller.generate(seed=seed if seed is not None else settings.seed)
        if animate:
            controller.solve_animated()
            scheduler.run_until_idle()
        else:
            controller.solve_immediate()
    finally:
        if repo is not None:
            repo.close()


@cli.command()
@size_options
@click.option("--tempo", type=click.FloatRange(min=0), default=None, help="Seconds between animation frames.")
@click.option("--history", "history_path", type=click.Path(path_type=Path), default=None, help="Record runs (.db for SQLite, else JSON).")
@click.pass_obj
def play(
    settings: Settings,
    width: Optional[int],
    height: Optional[int],
    seed: Optional[int],
    tempo: Optional[float],
    history_path: Optional[Path],
):
    """Drive the solver interactively. Ctrl-C pauses a running animation."""
    repo = _open_history(history_path, settings)
    scheduler = SleepingScheduler()
    controller = StepController(
        scheduler=scheduler,
        width=width or settings.width,
        height=height or settings.height,
        renderer=TextRenderer(),
        tempo=settings.tempo if tempo is None else tempo,
        repo=repo,
    )
    controller.generate(seed=seed if seed is not None else settings.seed)
    click.echo("Commands: generate [seed], animate, solve, pause, resume, step, reset, status, quit")
    try:
        while True:
            try:
                line = click.prompt("maze", prompt_suffix="> ", default="", show_default=False)
            except click.Abort:
                break
            parts = line.split()
            if not parts:
                continue
            if parts[0].lower() in {"quit", "exit"}:
                break
            out = controller.handle(Command(verb=parts[0], args=parts[1:]))
            for message in out.messages:
                click.echo(message)
            if parts[0].lower() == "status":
                view = out.view
                click.echo(
                    f"{view.status}: {view.width}x{view.height}, {view.wall_count} walls, "
                    f"wave {view.wave_step}, {view.visited_count} cells discovered"
                )
            try:
                scheduler.run_until_idle()
            except KeyboardInterrupt:
                controller.pause()
                click.echo("\nPaused.")
    finally:
        if repo is not None:
            repo.close()


@cli.command()
@click.option("--history", "history_path", type=click.Path(path_type=Path), default=None, help="History file to read.")
@click.option("--limit", "-n", type=click.IntRange(min=1), default=10, help="Number of runs to list.")
@click.option("--best", is_flag=True, help="List the shortest solved runs for one grid size instead.")
@click.option("--width", type=click.IntRange(min=1), default=None, help="Grid columns for --best.")
@click.option("--height", type=click.IntRange(min=1), default=None, help="Grid rows for --best.")
@click.pass_obj
def history(
    settings: Settings,
    history_path: Optional[Path],
    limit: int,
    best: bool,
    width: Optional[int],
    height: Optional[int],
):
    """List recently recorded solves, or the shortest ones with --best."""
    repo = _open_history(history_path, settings)
    if repo is None:
        click.echo("Error: no history file given (use --history or MAZE_HISTORY_PATH).", err=True)
        sys.exit(1)
    try:
        if best:
            runs = repo.shortest_runs(width or settings.width, height or settings.height, limit=limit)
        else:
            runs = repo.recent_runs(limit=limit)
    finally:
        repo.close()
    if not runs:
        click.echo("No runs recorded.")
        return
    for run in runs:
        steps = f"{run['steps']} steps" if run["outcome"] == "solved" else "no path"
        click.echo(
            f"{run['created_at']}  {run['width']}x{run['height']}  seed={run['seed']}  "
            f"{run['outcome']:<9}  {steps}  ({run['waves']} waves, {run['explored']} expanded)"
        )


if __name__ == "__main__":
    cli()
