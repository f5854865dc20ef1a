# world3/lookup/table.py
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple

import numpy as np

from world3.utils.errors import MalformedTable


@dataclass(frozen=True)
class LookupTable:
    """
    Piecewise-linear lookup table (FINAL / FROZEN)

    World3 里每一个非线性关系（例如 "mortality vs food"）都编码为一张表。

    Invariants:
    - xs strictly increasing, len(xs) == len(ys) >= 2
    - breakpoints never mutate after construction
    - evaluation never extrapolates: outside [xs[0], xs[-1]] it returns
      the boundary y value
    """

    name: str
    xs: Tuple[float, ...]
    ys: Tuple[float, ...]

    def __post_init__(self):
        xs = tuple(float(x) for x in self.xs)
        ys = tuple(float(y) for y in self.ys)

        if len(xs) != len(ys):
            raise MalformedTable(
                f"[{self.name}] x/y length mismatch: {len(xs)} != {len(ys)}"
            )
        if len(xs) < 2:
            raise MalformedTable(f"[{self.name}] needs at least 2 breakpoints, got {len(xs)}")
        if not all(math.isfinite(v) for v in xs + ys):
            raise MalformedTable(f"[{self.name}] breakpoints must be finite")
        for i in range(1, len(xs)):
            if xs[i] <= xs[i - 1]:
                raise MalformedTable(
                    f"[{self.name}] x must be strictly increasing "
                    f"(x[{i - 1}]={xs[i - 1]}, x[{i}]={xs[i]})"
                )

        # frozen dataclass：通过 object.__setattr__ 规范化为 float tuple
        object.__setattr__(self, "xs", xs)
        object.__setattr__(self, "ys", ys)
        object.__setattr__(self, "_x_arr", np.asarray(xs, dtype=float))
        object.__setattr__(self, "_y_arr", np.asarray(ys, dtype=float))

    @classmethod
    def build(cls, breakpoints: Iterable[Sequence[float]], name: str = "table") -> "LookupTable":
        """
        Build from [(x, y), ...] pairs.
        """
        pairs = [tuple(p) for p in breakpoints]
        for p in pairs:
            if len(p) != 2:
                raise MalformedTable(f"[{name}] breakpoint must be an (x, y) pair, got {p!r}")
        return cls(name=name, xs=tuple(p[0] for p in pairs), ys=tuple(p[1] for p in pairs))

    @property
    def domain(self) -> Tuple[float, float]:
        return self.xs[0], self.xs[-1]

    def evaluate(self, x: float) -> float:
        # np.interp clamps to ys[0] / ys[-1] outside the domain
        return float(np.interp(x, self._x_arr, self._y_arr))

    def evaluate_many(self, xs: Iterable[float]) -> np.ndarray:
        return np.interp(np.asarray(list(xs), dtype=float), self._x_arr, self._y_arr)

    __call__ = evaluate
