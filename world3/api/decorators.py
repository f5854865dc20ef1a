# world3/api/decorators.py
from __future__ import annotations

from functools import wraps
from typing import Any, Callable

from flask import jsonify
from pydantic import ValidationError

from world3.utils.errors import PresetProtected, ScenarioNotFound, SolverError


def handle_scenario_errors(func: Callable[..., Any]):
    """
    Decorator: map store / model / solver errors to JSON HTTP errors.

    Contract:
    - ScenarioNotFound -> 404 {error, scenario_id}
    - PresetProtected  -> 403 {error, scenario_id}
    - ValidationError  -> 400 {error, details}
    - SolverError      -> 422 {error, kind}
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ScenarioNotFound as e:
            return jsonify({"error": str(e), "scenario_id": e.scenario_id}), 404
        except PresetProtected as e:
            return jsonify({"error": str(e), "scenario_id": e.scenario_id}), 403
        except ValidationError as e:
            return jsonify({
                "error": "invalid parameters",
                "details": e.errors(include_url=False, include_context=False),
            }), 400
        except SolverError as e:
            return jsonify({"error": str(e), "kind": e.kind}), 422

    return wrapper
