from threading import Event, Lock

from cineverse.models import Movie


class Flight:
    """One in-progress lookup: the event waiters block on and the owner's outcome."""

    def __init__(self):
        self.done = Event()
        self.result: Movie | None = None
        self.error: Exception | None = None


class SingleFlight:
    """Per-key request coalescing within one process.

    The first caller for a key becomes its owner and does the work; later
    callers join the owner's flight and wait on it, then take the outcome the
    owner recorded. Only the owner releases a slot, so a waiter that times out
    keeps waiting on the same flight instead of starting a second lookup.
    """

    def __init__(self, wait_timeout: float = 30.0):
        self.wait_timeout = wait_timeout
        self._lock = Lock()
        self._flights: dict[str, Flight] = {}

    def begin(self, key: str) -> tuple[bool, Flight]:
        """Register or join the flight for ``key``; returns ``(is_owner, flight)``."""
        with self._lock:
            existing = self._flights.get(key)
            if existing is not None:
                return False, existing
            flight = Flight()
            self._flights[key] = flight
            return True, flight

    def finish(
        self,
        key: str,
        flight: Flight,
        *,
        result: Movie | None = None,
        error: Exception | None = None,
    ) -> None:
        """Record the owner's outcome, release the slot and wake every waiter."""
        flight.result = result
        flight.error = error
        with self._lock:
            if self._flights.get(key) is flight:
                del self._flights[key]
        flight.done.set()

    def wait(self, flight: Flight, timeout: float | None = None) -> bool:
        return flight.done.wait(
            timeout=self.wait_timeout if timeout is None else timeout
        )

    def in_flight(self, key: str) -> bool:
        with self._lock:
            return key in self._flights

    def reset(self) -> None:
        """Drop every slot and wake all waiters."""
        with self._lock:
            flights = list(self._flights.values())
            self._flights.clear()
        for flight in flights:
            flight.done.set()
