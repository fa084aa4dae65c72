import pytest


def _open(controller, maze_module):
    controller.state.maze = maze_module.build_open_maze(controller.width, controller.height)
    return controller.state.maze


def test_generate_notifies_renderer(make_controller, renderer, main_module):
    controller = make_controller(seed=1)
    assert controller.generate() is True
    walls = renderer.of("walls")
    assert len(walls) == 1
    assert walls[0] is controller.state.maze
    assert controller.status is main_module.ControllerStatus.IDLE


def test_reset_then_generate_with_seed_reproduces_walls(make_controller):
    controller = make_controller()
    controller.generate(seed=7)
    first = controller.state.maze.walls
    controller.reset()
    controller.generate(seed=7)
    assert controller.state.maze.walls == first


def test_animated_solve_pulls_one_wave_per_tick(make_controller, scheduler, renderer, maze_module, main_module):
    controller = make_controller()
    _open(controller, maze_module)
    assert controller.solve_animated() is True
    assert controller.status is main_module.ControllerStatus.RUNNING
    assert renderer.of("snapshot") == []

    scheduler.tick()
    assert [s.wave_step for s in renderer.of("snapshot")] == [1]
    scheduler.tick()
    assert [s.wave_step for s in renderer.of("snapshot")] == [1, 2]


def test_animated_solve_traces_path_then_terminates(make_controller, scheduler, renderer, maze_module, main_module):
    controller = make_controller()
    _open(controller, maze_module)
    Point = maze_module.Point
    controller.solve_animated()
    scheduler.run_until_idle()

    assert controller.status is main_module.ControllerStatus.IDLE
    assert controller.state.solver is None
    assert scheduler.pending is None
    assert len(renderer.of("snapshot")) == 4
    assert renderer.of("segment") == [
        (Point(0, 3), Point(0, 2)),
        (Point(0, 2), Point(0, 1)),
        (Point(0, 1), Point(0, 0)),
    ]
    kinds = [k for k, _ in renderer.events if k != "walls"]
    assert kinds[-1] == "terminal"
    (result,) = renderer.of("terminal")
    assert result.solved and result.steps == 4


def test_timer_ticks_follow_tempo(make_controller, scheduler, renderer, maze_module):
    controller = make_controller()
    _open(controller, maze_module)
    controller.solve_animated()
    assert scheduler.advance(0.005) == 0
    assert scheduler.advance(0.02) == 2
    assert len(renderer.of("snapshot")) == 2


def test_pause_twice_stays_paused(make_controller, scheduler, maze_module, main_module):
    controller = make_controller()
    _open(controller, maze_module)
    controller.solve_animated()
    scheduler.tick()
    assert controller.pause() is True
    assert controller.pause() is False
    assert controller.status is main_module.ControllerStatus.PAUSED
    assert scheduler.pending is None


def test_resume_continues_same_sequence(make_controller, scheduler, renderer, maze_module, main_module):
    controller = make_controller()
    _open(controller, maze_module)
    controller.solve_animated()
    scheduler.tick()
    solver = controller.state.solver
    controller.pause()
    assert scheduler.tick() is False

    assert controller.resume() is True
    assert controller.resume() is False
    assert controller.status is main_module.ControllerStatus.RUNNING
    scheduler.tick()
    assert controller.state.solver is solver
    assert [s.wave_step for s in renderer.of("snapshot")] == [1, 2]


def test_start_while_running_is_noop(make_controller, scheduler, maze_module):
    controller = make_controller()
    _open(controller, maze_module)
    controller.solve_animated()
    solver = controller.state.solver
    assert controller.solve_animated() is False
    assert controller.state.solver is solver


def test_step_while_running_is_noop(make_controller, scheduler, renderer, maze_module):
    controller = make_controller()
    _open(controller, maze_module)
    controller.solve_animated()
    scheduler.tick()
    wave = controller.state.solver.wave_step
    assert controller.step() is False
    assert controller.state.solver.wave_step == wave
    assert len(renderer.of("snapshot")) == 1
    scheduler.run_until_idle()
    (result,) = renderer.of("terminal")
    assert result.steps == 4


def test_step_from_idle_pulls_one_wave_and_pauses(make_controller, renderer, scheduler, maze_module, main_module):
    controller = make_controller()
    _open(controller, maze_module)
    assert controller.step() is True
    assert controller.status is main_module.ControllerStatus.PAUSED
    assert [s.wave_step for s in renderer.of("snapshot")] == [1]
    assert scheduler.pending is None

    controller.step()
    assert [s.wave_step for s in renderer.of("snapshot")] == [1, 2]


def test_stepping_to_the_end_goes_idle(make_controller, renderer, maze_module, main_module):
    controller = make_controller()
    _open(controller, maze_module)
    for _ in range(5):
        controller.step()
    assert controller.status is main_module.ControllerStatus.IDLE
    assert renderer.of("segment") == []
    (result,) = renderer.of("terminal")
    assert result.solved


def test_solve_animated_from_paused_resumes(make_controller, scheduler, maze_module, main_module):
    controller = make_controller()
    _open(controller, maze_module)
    controller.step()
    solver = controller.state.solver
    assert controller.solve_animated() is True
    assert controller.status is main_module.ControllerStatus.RUNNING
    assert controller.state.solver is solver


def test_solve_immediate_forwards_only_terminal(make_controller, scheduler, renderer, maze_module, main_module):
    controller = make_controller()
    _open(controller, maze_module)
    assert controller.solve_immediate() is True
    assert renderer.of("snapshot") == []
    assert renderer.of("segment") == []
    (result,) = renderer.of("terminal")
    assert result.steps == 4
    assert controller.status is main_module.ControllerStatus.IDLE
    assert scheduler.pending is None


def test_solve_immediate_while_running_is_noop(make_controller, maze_module):
    controller = make_controller()
    _open(controller, maze_module)
    controller.solve_animated()
    assert controller.solve_immediate() is False


def test_solve_immediate_finishes_paused_backtrace(make_controller, scheduler, renderer, maze_module, main_module):
    controller = make_controller()
    _open(controller, maze_module)
    controller.solve_animated()
    # Four waves, then the tick that reaches the exit.
    for _ in range(5):
        scheduler.tick()
    controller.pause()
    assert controller.state.pending_result is not None
    controller.solve_immediate()
    assert controller.status is main_module.ControllerStatus.IDLE
    assert len(renderer.of("terminal")) == 1


def test_exhausted_maze_reports_no_path(make_controller, scheduler, renderer, maze_module, main_module):
    controller = make_controller()
    controller.state.maze = maze_module.build_closed_maze(4, 4)
    controller.solve_animated()
    scheduler.run_until_idle()
    (result,) = renderer.of("terminal")
    assert result.outcome.value == "exhausted"
    assert controller.status is main_module.ControllerStatus.IDLE


def test_solve_without_maze_generates_one(make_controller, renderer):
    controller = make_controller(seed=3)
    controller.solve_immediate()
    assert len(renderer.of("walls")) == 1
    assert len(renderer.of("terminal")) == 1


def test_reset_cancels_running_solve(make_controller, scheduler, renderer, maze_module, main_module):
    controller = make_controller(seed=2)
    _open(controller, maze_module)
    controller.solve_animated()
    scheduler.tick()
    assert controller.reset() is True
    assert controller.status is main_module.ControllerStatus.IDLE
    assert controller.state.solver is None
    assert scheduler.pending is None
    assert renderer.of("terminal") == []
    assert len(renderer.of("walls")) == 1


def test_generate_while_paused_is_noop(make_controller, maze_module):
    controller = make_controller()
    maze = _open(controller, maze_module)
    controller.step()
    assert controller.generate(seed=1) is False
    assert controller.state.maze is maze


def test_finished_runs_are_recorded(make_controller, repo, maze_module):
    controller = make_controller(repo=repo)
    controller.generate(seed=11)
    controller.state.maze = maze_module.build_open_maze(4, 4)
    controller.solve_immediate()
    (run,) = repo.recent_runs()
    assert run["outcome"] == "solved"
    assert run["steps"] == 4
    assert run["seed"] == 11
    assert (run["width"], run["height"]) == (4, 4)


def test_handle_maps_verbs(make_controller, main_module, maze_module):
    Command = main_module.Command
    controller = make_controller()
    _open(controller, maze_module)

    out = controller.handle(Command(verb="pause"))
    assert out.acted is False
    assert out.messages == ["Nothing is running."]

    out = controller.handle(Command(verb="Step"))
    assert out.acted is True
    assert out.view.status == "paused"
    assert out.view.wave_step == 1
    assert out.view.visited_count == 4

    out = controller.handle(Command(verb="solve"))
    assert out.view.status == "idle"
    assert out.view.outcome == "solved"
    assert out.view.path_length == 4
    assert out.messages and out.messages[0].startswith("Solved in 4 steps")


def test_handle_generate_parses_seed(make_controller, main_module):
    Command = main_module.Command
    controller = make_controller()
    out = controller.handle(Command(verb="generate", args=["42"]))
    assert out.acted is True
    assert controller.state.seed == 42

    out = controller.handle(Command(verb="generate", args=["abc"]))
    assert out.messages == ["Seed must be an integer."]


def test_handle_unknown_command(make_controller, main_module):
    controller = make_controller()
    before = controller.view()
    out = controller.handle(main_module.Command(verb="warp", args=["now"]))
    assert out.messages == ["Unknown command."]
    assert controller.view() == before


@pytest.mark.parametrize("verb", ["pause", "resume"])
def test_idle_noops_do_not_touch_state(make_controller, main_module, verb):
    controller = make_controller()
    assert getattr(controller, verb)() is False
    assert controller.status is main_module.ControllerStatus.IDLE
    assert controller.state.maze is None


def test_view_keeps_final_wave_after_animated_solve(make_controller, scheduler, maze_module):
    controller = make_controller()
    _open(controller, maze_module)
    controller.solve_animated()
    scheduler.run_until_idle()
    view = controller.view()
    assert view.status == "idle"
    assert view.wave_step == 4
    assert view.visited_count == 16


def test_view_keeps_final_wave_after_immediate_solve(make_controller, renderer, maze_module):
    controller = make_controller()
    _open(controller, maze_module)
    controller.solve_immediate()
    assert renderer.of("snapshot") == []
    view = controller.view()
    assert (view.wave_step, view.visited_count) == (4, 16)


def test_new_maze_clears_wave_counts(make_controller, maze_module):
    controller = make_controller()
    _open(controller, maze_module)
    controller.solve_immediate()
    controller.generate(seed=2)
    view = controller.view()
    assert (view.wave_step, view.visited_count) == (0, 0)


def test_controller_holds_the_only_pending_timer(make_controller, scheduler, maze_module):
    controller = make_controller()
    _open(controller, maze_module)
    controller.solve_animated()
    assert scheduler.pending is controller.state.timer
    scheduler.tick()
    assert scheduler.pending is controller.state.timer
    controller.pause()
    assert scheduler.pending is None
    assert controller.state.timer is None
    controller.resume()
    assert scheduler.pending is controller.state.timer
