"""
Smoke tests for the simulation runner.
"""

import config
from als_core.proto import Priority
from main import TrackingSimulation


def make_simulation(**overrides) -> TrackingSimulation:
    sim_config = dict(config.SIMULATION_CONFIG)
    sim_config.update(overrides)
    simulation = TrackingSimulation(sim_config)
    return simulation


class TestTrackingSimulation:
    """End-to-end trip through the controller."""

    def test_trip_completes(self, capsys):
        simulation = make_simulation(fixes=12)

        assert simulation.run() == 0

        captured = capsys.readouterr()
        assert "Initial fix from cached" in captured.out
        assert simulation.console.fix_count == 12
        assert not simulation.controller.is_active

    def test_tightens_near_destination(self):
        simulation = make_simulation(fixes=30, battery_level=1.0, battery_drain_per_fix=0.0)
        priorities = []
        simulation.registry.register("priorities", _PriorityRecorder(simulation, priorities))

        simulation.run()

        assert Priority.HIGH_ACCURACY in priorities

    def test_empty_route(self):
        assert make_simulation(fixes=0).run() == 1


class _PriorityRecorder:
    """Records the priority in force when each fix is delivered."""

    def __init__(self, simulation: TrackingSimulation, priorities: list):
        self._simulation = simulation
        self._priorities = priorities

    def on_fix_delivered(self, fix, source):
        current = self._simulation.controller.current_config
        if current is not None:
            self._priorities.append(current.priority)

    def on_error(self, cause):
        pass
