"""Ordered collection of the cars taking part in a race."""

from __future__ import annotations

from typing import Callable, Iterator, Optional


class CarList:
    """Cars in race order; new cars are placed at the front."""

    def __init__(self) -> None:
        self._cars: list = []

    def add(self, car) -> None:
        """Put ``car`` at the front of the list."""
        self._cars.insert(0, car)

    def get(self, car_id: int) -> Optional[object]:
        """The first car whose ``id`` is ``car_id``, or None."""
        return next((car for car in self._cars if car.id == car_id), None)

    def sort(self, compare: Callable[[object, object], float]) -> None:
        """Reorder by exchange: a pair is swapped when ``compare`` is positive."""
        cars = self._cars
        for i in range(len(cars)):
            for j in range(i + 1, len(cars)):
                if compare(cars[i], cars[j]) > 0:
                    cars[i], cars[j] = cars[j], cars[i]

    def clear(self) -> None:
        self._cars.clear()

    def __iter__(self) -> Iterator:
        return iter(list(self._cars))

    def __len__(self) -> int:
        return len(self._cars)