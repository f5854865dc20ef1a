from world3.parallel.executor import ParallelExecutor
from world3.parallel.types import ParallelKind

__all__ = ["ParallelExecutor", "ParallelKind"]
