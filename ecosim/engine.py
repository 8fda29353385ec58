"""
Runs several simulations side by side, one worker thread each.

Pausing is cooperative: a worker only checks the pause gate between two
days, so a day that has started always runs to completion and the next
day after a resume is exactly ``day + 1``.
"""
import logging
import threading
from typing import Dict, Iterable, List, Optional

from .sim import Simulation

logger = logging.getLogger(__name__)


class SimulationEngine:
    def __init__(self, simulations: Iterable[Simulation], day_delay: Optional[float] = None):
        self.simulations: List[Simulation] = list(simulations)
        self.day_delay = day_delay
        self.threads: List[threading.Thread] = []
        self.errors: Dict[int, BaseException] = {}

        self._gate = threading.Condition()
        self._paused = False
        self._in_day = 0
        self._stop = threading.Event()

    # ----- control -----

    def run(self) -> None:
        """Start one daemon thread per simulation and return immediately."""
        if self.threads:
            raise RuntimeError("engine already started")
        for idx, sim in enumerate(self.simulations):
            t = threading.Thread(target=self._worker, args=(idx, sim),
                                 name=f"simulation-{idx}", daemon=True)
            self.threads.append(t)
        for t in self.threads:
            t.start()
        logger.info(f"SimulationEngine started {len(self.threads)} simulation(s)")

    def run_sync(self) -> None:
        """Run every simulation to completion on the calling thread, one after another."""
        for idx, sim in enumerate(self.simulations):
            self._worker(idx, sim)

    def pause(self, wait: bool = True) -> None:
        """
        Stop workers at their next day boundary. With ``wait`` the call returns
        only once no simulation is in the middle of a day.
        """
        # a worker pausing from inside its own day cannot wait for that day to end
        wait = wait and threading.current_thread() not in self.threads
        with self._gate:
            self._paused = True
            if wait:
                while self._in_day and not self._stop.is_set():
                    self._gate.wait()
        logger.info("SimulationEngine paused")

    def resume(self) -> None:
        with self._gate:
            self._paused = False
            self._gate.notify_all()
        logger.info("SimulationEngine resumed")

    def stop(self) -> None:
        self._stop.set()
        with self._gate:
            self._gate.notify_all()
        logger.info("SimulationEngine stop requested")

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for workers to end; True if all of them did within ``timeout``."""
        for t in self.threads:
            t.join(timeout)
        return not self.is_running

    @property
    def is_paused(self) -> bool:
        return self._paused

    @property
    def is_running(self) -> bool:
        return any(t.is_alive() for t in self.threads)

    # ----- worker -----

    def _delay(self, sim: Simulation) -> float:
        return sim.cfg.DAY_DELAY if self.day_delay is None else self.day_delay

    def _enter_day(self) -> bool:
        with self._gate:
            while self._paused and not self._stop.is_set():
                self._gate.wait()
            if self._stop.is_set():
                return False
            self._in_day += 1
            return True

    def _leave_day(self) -> None:
        with self._gate:
            self._in_day -= 1
            self._gate.notify_all()

    def _worker(self, idx: int, sim: Simulation) -> None:
        logger.debug(f"simulation {idx} worker started at day {sim.day}")
        try:
            while not sim.finished:
                if not self._enter_day():
                    break
                try:
                    sim.advance_day()
                finally:
                    self._leave_day()
                delay = self._delay(sim)
                if delay > 0 and self._stop.wait(delay):
                    break
        except Exception as e:
            self.errors[idx] = e
            logger.exception(f"simulation {idx} failed on day {sim.day}")
        logger.info(f"simulation {idx} stopped at day {sim.day}")
