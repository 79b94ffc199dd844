"""
Pytest fixtures for TileRush tests.
"""

import pytest

from ..config import GameConfig
from ..engine_core.state import Board
from ..engine_core.tiles import TileFactory
from ..session import ManualScheduler, SessionStateMachine


@pytest.fixture
def factory() -> TileFactory:
    """Seeded tile factory."""
    return TileFactory(seed=1234)


@pytest.fixture
def make_board(factory):
    """Build a board from a value grid, 0 meaning empty."""
    def build(rows) -> Board:
        return Board.from_rows(
            [factory.create_tile(v) if v else None for v in row]
            for row in rows
        )
    return build


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def config() -> GameConfig:
    return GameConfig(seed=42)


@pytest.fixture
def machine(scheduler, config) -> SessionStateMachine:
    """State machine in IDLE on a virtual clock."""
    return SessionStateMachine(scheduler, config=config)


@pytest.fixture
def playing_machine(machine, scheduler) -> SessionStateMachine:
    """State machine that has finished its countdown and is PLAYING."""
    machine.start_countdown()
    scheduler.advance(machine.config.countdown_seconds)
    return machine
