"""
Location sampling simulator.
Replays a synthetic trip through a TrackingController and prints how the
sampling configuration adapts to battery drain, motion and proximity.
"""

import sys
import logging
import argparse
from typing import List

import config
from als_core.proto import Fix, LocationSource
from als_core.sampling import (
    SamplingPolicy,
    SamplingPolicyConfig,
    FixQualityFilter,
    haversine_m,
)
from als_core.control import (
    TrackingController,
    TrackingConfig,
    AcquisitionController,
    LocationError,
)
from als_core.io import (
    ListenerRegistry,
    LocationSubscriber,
    SimulatedPositionSource,
    StaticPowerInfo,
    straight_route,
)
from als_core.metrics import get_metrics

logging.basicConfig(
    level=getattr(logging, config.LOGGING_CONFIG["level"]),
    format=config.LOGGING_CONFIG["format"]
)
logger = logging.getLogger(__name__)


class ConsoleSubscriber(LocationSubscriber):
    """Prints every delivery to stdout."""

    def __init__(self):
        self.fix_count = 0
        self.error_count = 0
        self.advisory_count = 0

    def on_fix_delivered(self, fix: Fix, source: LocationSource) -> None:
        self.fix_count += 1
        print(f"[fix {self.fix_count:3d}] ({fix.latitude:.5f}, {fix.longitude:.5f}) "
              f"{fix.speed_kmh:5.1f} km/h  source={source.value}")

    def on_error(self, cause: Exception) -> None:
        self.error_count += 1
        print(f"[error] {cause}")

    def on_advisory(self, advisory: Exception) -> None:
        self.advisory_count += 1
        print(f"[advisory] {advisory}")


class TrackingSimulation:
    """Drives one simulated trip."""

    def __init__(self, sim_config: dict):
        self.sim_config = sim_config
        self.metrics = get_metrics()

        self.source = SimulatedPositionSource()
        self.power = StaticPowerInfo(
            level=sim_config["battery_level"],
            power_save=sim_config["power_save"],
        )
        self.registry = ListenerRegistry(self.metrics)
        self.console = ConsoleSubscriber()
        self.registry.register("console", self.console)

        tracking_cfg = config.TRACKING_CONFIG
        self.controller = TrackingController(
            self.source,
            self.power,
            self.registry,
            policy=SamplingPolicy(SamplingPolicyConfig(**config.POLICY_CONFIG)),
            config=TrackingConfig(
                adaptive=tracking_cfg["adaptive"],
                high_accuracy=tracking_cfg["high_accuracy"],
                refresh_battery_on_fix=tracking_cfg["refresh_battery_on_fix"],
            ),
            quality_filter=FixQualityFilter() if tracking_cfg["quality_filter"] else None,
            metrics=self.metrics,
        )
        self.acquisition = AcquisitionController(self.source, metrics=self.metrics)

    def _route(self) -> List[Fix]:
        cfg = self.sim_config
        return straight_route(
            cfg["start"],
            cfg["destination"],
            count=cfg["fixes"],
            speed_m_s=cfg["speed_m_s"],
            accuracy_m=cfg["accuracy_m"],
            dt_s=cfg["dt_s"],
        )

    def _distance_km(self, fix: Fix) -> float:
        lat, lon = self.sim_config["destination"]
        return haversine_m(fix.latitude, fix.longitude, lat, lon) / 1000.0

    def run(self) -> int:
        route = self._route()
        if not route:
            logger.error("Empty route, nothing to simulate")
            return 1

        # Initial one-shot fix: the simulator only has a cached location
        self.source.last_known_fix = route[0]
        try:
            first = self.acquisition.get_current_fix()
            print(f"Initial fix from {first.source.value}: "
                  f"({first.fix.latitude:.5f}, {first.fix.longitude:.5f})")
        except LocationError as exc:
            logger.error(f"Initial acquisition failed: {exc}")
            return 1

        try:
            self.controller.start(initial_distance_km=self._distance_km(route[0]))
        except LocationError as exc:
            logger.error(f"Could not start tracking: {exc}")
            return 1

        drain = self.sim_config["battery_drain_per_fix"]
        last_config = None
        for fix in route:
            self.power.level = max(0.0, self.power.level - drain)
            self.controller.set_distance_to_destination(self._distance_km(fix))
            self.source.emit(fix)

            status = self.controller.status()
            if status.config != last_config:
                print(f"  -> {status.describe()}: interval={status.config.interval_ms}ms, "
                      f"priority={status.config.priority.name}, "
                      f"displacement={status.config.min_displacement_m:.0f}m")
                last_config = status.config

        self.controller.stop()
        self._print_statistics()
        return 0

    def _print_statistics(self):
        print("\n" + "=" * 60)
        print("               Simulation finished")
        print("=" * 60)
        print(f"Fixes delivered: {self.console.fix_count}")
        print(f"Errors:          {self.console.error_count}")
        print(f"Advisories:      {self.console.advisory_count}")
        print(f"Final battery:   {self.power.level * 100:.0f}%")
        print("=" * 60)
        self.metrics.print_summary()


def main():
    """Entry point."""
    parser = argparse.ArgumentParser(description='Adaptive location sampling simulator')
    parser.add_argument('--fixes', '-n', type=int, default=None,
                        help='number of fixes along the route')
    parser.add_argument('--battery', '-b', type=float, default=None,
                        help='initial battery fraction (0-1)')
    parser.add_argument('--drain', type=float, default=None,
                        help='battery fraction drained per fix')
    parser.add_argument('--speed', '-s', type=float, default=None,
                        help='reported speed (m/s); 0 simulates a parked device')
    parser.add_argument('--power-save', action='store_true',
                        help='simulate OS power-save mode')
    parser.add_argument('--fixed', action='store_true',
                        help='disable adaptive sampling')
    parser.add_argument('--debug', '-d', action='store_true',
                        help='enable debug logging')

    args = parser.parse_args()

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    sim_config = dict(config.SIMULATION_CONFIG)
    if args.fixes is not None:
        sim_config["fixes"] = args.fixes
    if args.battery is not None:
        sim_config["battery_level"] = args.battery
    if args.drain is not None:
        sim_config["battery_drain_per_fix"] = args.drain
    if args.speed is not None:
        sim_config["speed_m_s"] = args.speed
    if args.power_save:
        sim_config["power_save"] = True
    if args.fixed:
        config.TRACKING_CONFIG["adaptive"] = False

    simulation = TrackingSimulation(sim_config)
    sys.exit(simulation.run())


if __name__ == "__main__":
    main()
