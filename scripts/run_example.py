#!/usr/bin/env python
"""
Run the C57.91 example transformer through a daily load cycle.

Usage:
    python scripts/run_example.py [--peak 1.5] [--step 0.5] [--limit 140] [--csv out.csv]

Output:
    log of peak hot-spot / top-oil temperatures and aging;
    optionally the saved history as CSV.
"""

import sys
import argparse
import logging
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from xfmrsim.config import C57_91_EXAMPLE, SimulationConfig
from xfmrsim.integrator import ThermalIntegrator
from xfmrsim.loads import LoadCycle
from xfmrsim.overload import OverloadStudy

logger = logging.getLogger("run_example")


def daily_cycle(peak_pu: float, ambient_C: float) -> LoadCycle:
    """Суточный цикл: ночь 0.6 о.е., утренний рост, пик 4 ч, вечерний спад."""

    return LoadCycle.from_table(
        [
            (0.0, ambient_C, 0.6),
            (6.0, ambient_C, 0.6),
            (9.0, ambient_C + 5.0, 1.0),
            (14.0, ambient_C + 8.0, peak_pu),
            (18.0, ambient_C + 8.0, peak_pu),
            (21.0, ambient_C + 3.0, 0.8),
            (24.0, ambient_C, 0.6),
        ]
    )


def parse_args():
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Transient thermal run of the C57.91 example transformer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Default daily cycle with 1.5 pu peak
  python scripts/run_example.py

  # Find the peak load that keeps the hot spot at 140 C
  python scripts/run_example.py --limit 140
        """,
    )
    parser.add_argument("--peak", type=float, default=1.5, help="Peak load, pu (default: 1.5)")
    parser.add_argument("--ambient", type=float, default=20.0, help="Night ambient, C (default: 20)")
    parser.add_argument("--step", type=float, default=0.5, help="Time step, min (default: 0.5)")
    parser.add_argument("--save-interval", type=float, default=15.0, help="History interval, min (default: 15)")
    parser.add_argument("--limit", type=float, default=None, help="Hot-spot limit, C: search the peak load factor")
    parser.add_argument("--csv", type=str, default=None, help="Write saved history to this CSV file")
    parser.add_argument("--verbose", action="store_true", help="DEBUG logging")
    return parser.parse_args()


def main():
    args = parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    integrator = ThermalIntegrator(C57_91_EXAMPLE, SimulationConfig(stability_policy="subdivide"))
    study = OverloadStudy(integrator)
    cycle = daily_cycle(args.peak, args.ambient)

    result = study.run(cycle, step_min=args.step, save_interval_min=args.save_interval, settle=True)
    hs, to = result.max_hot_spot, result.max_top_oil

    logger.info("Результаты для суточного цикла (пик %.2f о.е.):", args.peak)
    logger.info("  Макс. ΘH: %.1f °C на %.0f мин", hs.temperature_C, hs.time_min)
    logger.info("  Макс. ΘTO: %.1f °C на %.0f мин", to.temperature_C, to.time_min)
    logger.info("  FEQA: %.3f", result.equivalent_aging())
    logger.info("  Потеря срока службы: %.4f %%", result.loss_of_life_pct())

    if args.csv:
        out = Path(args.csv)
        out.parent.mkdir(parents=True, exist_ok=True)
        result.saved_frame().to_csv(out)
        logger.info("History saved to %s", out)

    if args.limit is not None:
        factor = study.peak_load_limit(cycle, args.limit, step_min=args.step)
        logger.info("  Допустимый пик при ΘH = %.0f °C: %.3f о.е.", args.limit, factor * args.peak)


if __name__ == "__main__":
    main()
