"""Desktop simulator for the fortune cookie mini-app."""

from fortune_cookie.simulator.window import SimulatorWindow, WindowConfig
from fortune_cookie.simulator.host import create_simulated_capabilities
from fortune_cookie.simulator.main import FortuneSimulator, run_simulator

__all__ = [
    "SimulatorWindow",
    "WindowConfig",
    "create_simulated_capabilities",
    "FortuneSimulator",
    "run_simulator",
]
