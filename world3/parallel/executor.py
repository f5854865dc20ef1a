# world3/parallel/executor.py
from __future__ import annotations

import os
from concurrent.futures import ProcessPoolExecutor
from typing import Any, Callable, Iterable

from world3.parallel.types import ParallelKind
from world3.utils.logger import logs


class ParallelExecutor:
    """
    ParallelExecutor

    - 统一的 ProcessPoolExecutor 封装（批量跑多个 scenario）
    - 单 worker 时退化为顺序执行（测试 / 调试友好）
    - 结果顺序与 items 顺序一致
    - handler 必须可 pickle（模块级函数）
    """

    @staticmethod
    def run(
            *,
            kind: ParallelKind,
            items: Iterable[Any],
            handler: Callable[[Any], Any],
            max_workers: int | None = None,
    ) -> list[Any]:
        items = list(items)
        if not items:
            logs.info("[ParallelExecutor] no items to process")
            return []

        logs.info(
            f"[ParallelExecutor] start "
            f"kind={kind.value} total={len(items)}"
        )

        workers = ParallelExecutor._resolve_workers(items, max_workers)

        if workers == 1:
            return ParallelExecutor._run_sequential(items, handler)
        return ParallelExecutor._run_parallel(items, handler, workers)

    # ---------------- internal ----------------

    @staticmethod
    def _resolve_workers(items: list, max_workers: int | None) -> int:
        cpu = os.cpu_count() or 1
        if max_workers is None:
            return min(cpu, len(items))
        return max(1, min(max_workers, len(items)))

    @staticmethod
    def _run_sequential(items: list, handler: Callable[[Any], Any]) -> list[Any]:
        return [handler(item) for item in items]

    @staticmethod
    def _run_parallel(items: list, handler: Callable[[Any], Any], workers: int) -> list[Any]:
        logs.info(f"[ParallelExecutor] run parallel | workers={workers}")

        with ProcessPoolExecutor(max_workers=workers) as pool:
            # map() keeps item order; a handler error propagates here
            return list(pool.map(handler, items))
