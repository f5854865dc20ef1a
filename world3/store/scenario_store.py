# world3/store/scenario_store.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from world3.model.params import PRESETS, ScenarioParams
from world3.store.rwlock import RWLock
from world3.utils.errors import PresetProtected, ScenarioNotFound
from world3.utils.logger import logs


@dataclass(frozen=True)
class ScenarioEntry:
    params: ScenarioParams
    is_preset: bool = False

    @property
    def scenario_id(self) -> str:
        return self.params.meta.id

    def summary(self) -> dict:
        meta = self.params.meta
        return {
            "id": meta.id,
            "name": meta.name,
            "description": meta.description,
            "color_hex": meta.color_hex,
            "created_at": meta.created_at,
            "is_preset": self.is_preset,
        }


def _with_id(params: ScenarioParams, scenario_id: str) -> ScenarioParams:
    return params.model_copy(update={"meta": params.meta.model_copy(update={"id": scenario_id})})


class ScenarioStore:
    """
    In-memory scenario registry shared by streaming sessions and the API.

    Contract:
    - presets (bau / technology / stabilized) are seeded at construction
      and cannot be deleted
    - reads take the shared lock, writes the exclusive one
    - ScenarioParams is frozen, so returned entries are safe to hand out;
      runs still take their own private_copy()
    """

    def __init__(self, seed_presets: bool = True):
        self._lock = RWLock()
        self._entries: Dict[str, ScenarioEntry] = {}
        if seed_presets:
            self._seed()

    def _seed(self) -> None:
        for key, factory in PRESETS.items():
            self._entries[key] = ScenarioEntry(_with_id(factory(), key), is_preset=True)

    # ---------- read ----------
    def get(self, scenario_id: str) -> ScenarioEntry:
        with self._lock.read():
            try:
                return self._entries[scenario_id]
            except KeyError:
                raise ScenarioNotFound(scenario_id) from None

    def get_params(self, scenario_id: str) -> ScenarioParams:
        return self.get(scenario_id).params

    def find(self, scenario_id: str) -> Optional[ScenarioEntry]:
        with self._lock.read():
            return self._entries.get(scenario_id)

    def list(self) -> List[ScenarioEntry]:
        with self._lock.read():
            return list(self._entries.values())

    def presets(self) -> List[ScenarioEntry]:
        return [e for e in self.list() if e.is_preset]

    def __contains__(self, scenario_id: str) -> bool:
        return self.find(scenario_id) is not None

    # ---------- write ----------
    def create(self, params: ScenarioParams) -> ScenarioEntry:
        entry = ScenarioEntry(params)
        with self._lock.write():
            self._entries[entry.scenario_id] = entry
        logs.info(f"[ScenarioStore] created {entry.scenario_id} ({params.meta.name})")
        return entry

    def update_params(self, scenario_id: str, params: ScenarioParams) -> ScenarioEntry:
        """
        Replace the stored parameters of an existing scenario.

        The whole set is replaced; only the id is kept from the stored entry.
        Presets may be edited (they just cannot be deleted).
        """
        with self._lock.write():
            old = self._entries.get(scenario_id)
            if old is None:
                raise ScenarioNotFound(scenario_id)
            entry = ScenarioEntry(_with_id(params, scenario_id), is_preset=old.is_preset)
            self._entries[scenario_id] = entry
        logs.debug(f"[ScenarioStore] params updated {scenario_id}")
        return entry

    def delete(self, scenario_id: str) -> None:
        with self._lock.write():
            entry = self._entries.get(scenario_id)
            if entry is None:
                raise ScenarioNotFound(scenario_id)
            if entry.is_preset:
                raise PresetProtected(scenario_id)
            del self._entries[scenario_id]
        logs.info(f"[ScenarioStore] deleted {scenario_id}")

    def clear(self) -> None:
        """Drop user scenarios and restore the presets."""
        with self._lock.write():
            self._entries.clear()
            self._seed()
