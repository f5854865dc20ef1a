from world3.store.scenario_store import ScenarioEntry, ScenarioStore

__all__ = ["ScenarioEntry", "ScenarioStore"]
