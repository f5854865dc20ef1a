# world3/parallel/types.py
from enum import Enum


class ParallelKind(str, Enum):
    SCENARIO = "scenario"
    PRESET = "preset"
