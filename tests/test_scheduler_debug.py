"""Tests for scheduler debug output at different verbosity levels."""

import logging
from io import StringIO

from gantt_engine.logger import CHECKS_LEVEL, get_logger, reset_logger, setup_logger
from gantt_engine.models import Task
from gantt_engine.scheduler import ProjectInput, schedule_project
from tests.conftest import hours_team, make_project, make_task


def sample_project() -> ProjectInput:
    return make_project(
        [
            make_task("task1", "12h", team="alice"),
            make_task("task2", "4h", team="alice", dependencies=["task1"]),
            make_task("task3", team="alice"),
            make_task("task4", "8h", team="alice", done=True),
            Task(id="ship", milestone=True, dependencies=["task2"]),
        ],
        [hours_team("alice")],
    )


def scheduler_output(verbosity: int) -> str:
    output_stream = StringIO()
    setup_logger(verbosity, stream=output_stream)

    try:
        schedule_project(sample_project())
        return output_stream.getvalue()
    finally:
        reset_logger()


def test_verbosity_0_silent() -> None:
    """Test that verbosity 0 produces no debug output."""
    assert scheduler_output(0) == ""


def test_verbosity_1_shows_scheduled_tasks() -> None:
    """Test that verbosity 1 shows committed schedule entries only."""
    output = scheduler_output(1)

    assert "Scheduling 5 tasks from 2025-01-06" in output
    assert "Scheduled task task1 on alice: 2025-01-06 -> 2025-01-07" in output
    assert "Scheduled task task2 on alice" in output
    assert "Scheduled task ship" in output
    # Should NOT show detailed info like "Considering" or "Skipping"
    assert "Considering" not in output
    assert "Skipping" not in output


def test_verbosity_2_shows_consideration_and_skipping() -> None:
    """Test that verbosity 2 shows task consideration, skips and failures."""
    output = scheduler_output(2)

    assert "Considering task task1" in output
    # 12h at 8h a day
    assert "nominal_days=1.5" in output
    assert "Skipping task task4: done" in output
    assert "Unschedulable: task3 [no-estimate]" in output
    # Per-day detail is debug only
    assert "takes" not in output


def test_verbosity_3_shows_allocation_details() -> None:
    """Test that verbosity 3 shows per-day allocations."""
    output = scheduler_output(3)

    assert "2025-01-06: task1 takes 8 from alice, 4 left" in output
    assert "2025-01-07: task1 takes 4 from alice, 0 left" in output
    assert "Task task1 assigned to team alice" in output


def test_out_of_range_verbosity_is_clamped() -> None:
    """Test that verbosity outside 0-3 maps to the nearest level."""
    setup_logger(7, stream=StringIO())
    try:
        assert get_logger().level == logging.DEBUG
    finally:
        reset_logger()

    setup_logger(-1, stream=StringIO())
    try:
        assert not get_logger().isEnabledFor(CHECKS_LEVEL)
    finally:
        reset_logger()
