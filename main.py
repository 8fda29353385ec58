import argparse
import logging

from ecosim.charts import final_charts
from ecosim.config import CFG
from ecosim.engine import SimulationEngine
from ecosim.observers import ConsoleListener, StatsCsvWriter, StatsHistory
from ecosim.sim import Simulation

logger = logging.getLogger("ecosim")


def parse_args(argv=None):
    defaults = CFG()
    ap = argparse.ArgumentParser(description="Grid ecosystem simulation (headless)")
    ap.add_argument("--days", type=int, default=100, help="days to run per simulation")
    ap.add_argument("--seed", type=int, default=defaults.SEED)
    ap.add_argument("--runs", type=int, default=1, help="simulations run side by side (seeds seed, seed+1, ...)")
    ap.add_argument("--variant", choices=["globe", "torus", "fire"], default=defaults.VARIANT)
    ap.add_argument("--width", type=int, default=defaults.W)
    ap.add_argument("--height", type=int, default=defaults.H)
    ap.add_argument("--animals", type=int, default=defaults.N_ANIMALS)
    ap.add_argument("--grass", type=int, default=defaults.INITIAL_GRASS)
    ap.add_argument("--grass-per-day", type=int, default=defaults.GRASS_PER_DAY)
    ap.add_argument("--uniform", action="store_true", help="grow grass uniformly instead of on the equator")
    ap.add_argument("--delay", type=float, default=defaults.DAY_DELAY, help="seconds between days")
    ap.add_argument("--csv", type=str, default=None, help="append daily stats of the first run to this CSV")
    ap.add_argument("--track", type=int, default=None, help="id of an animal of the first run to follow in the CSV")
    ap.add_argument("--charts", type=str, default=None, help="write end-of-run charts of the first run here")
    ap.add_argument("--log-level", default="INFO")
    args = ap.parse_args(argv)
    if args.runs < 1:
        ap.error(f"--runs must be at least 1, got {args.runs}")
    return args


def build_config(args, seed: int) -> CFG:
    return CFG(
        W=args.width, H=args.height, SEED=seed, VARIANT=args.variant,
        N_ANIMALS=args.animals, INITIAL_GRASS=args.grass, GRASS_PER_DAY=args.grass_per_day,
        GRASS_PLACEMENT="uniform" if args.uniform else "equator",
        DAY_DELAY=args.delay, N_DAYS=args.days,
    ).validate()


def run(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(threadName)s %(message)s")

    history = StatsHistory()
    sims = []
    for i in range(args.runs):
        sim = Simulation(build_config(args, args.seed + i), observers=[ConsoleListener()])
        sims.append(sim)
    sims[0].add_observer(history)
    if args.csv:
        sims[0].add_observer(StatsCsvWriter(args.csv, overwrite=True, tracked_id=args.track))

    engine = SimulationEngine(sims)
    engine.run()
    try:
        while not engine.join(timeout=0.5):
            pass
    except KeyboardInterrupt:
        logger.info("Simulation stopped by user")
        engine.stop()
        engine.join()

    if args.charts:
        final_charts(history.rows, args.charts)
    return 1 if engine.errors else 0


if __name__ == "__main__":
    raise SystemExit(run())
