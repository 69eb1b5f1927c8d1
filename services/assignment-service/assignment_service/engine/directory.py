from __future__ import annotations

from collections.abc import Iterable, Iterator

from ..schemas import CoachProfile


class CoachDirectory:
    """Read-mostly coach profiles, kept in roster order."""

    def __init__(self) -> None:
        self._coaches: dict[str, CoachProfile] = {}

    def __len__(self) -> int:
        return len(self._coaches)

    def __iter__(self) -> Iterator[CoachProfile]:
        return iter(list(self._coaches.values()))

    def get(self, coach_id: str) -> CoachProfile | None:
        coach = self._coaches.get(coach_id)
        return coach.model_copy(deep=True) if coach else None

    def list(self) -> list[CoachProfile]:
        return [coach.model_copy(deep=True) for coach in self._coaches.values()]

    def merge(self, coaches: Iterable[CoachProfile]) -> list[str]:
        """Upsert profiles from the roster and return the ids that were not known before."""
        added: list[str] = []
        for coach in coaches:
            if coach.id not in self._coaches:
                added.append(coach.id)
            self._coaches[coach.id] = coach.model_copy(deep=True)
        return added

    def clear(self) -> None:
        self._coaches.clear()
