"""
どこで: `engine.runtime` のワーカ実行層。
何を: ストローク単位の走査/変換（ヒットテスト・拡大縮小・平行移動・ラスタライズ）を
      有界スレッドプールへ分配し、キー順序を保った結果を返す。例外は `WorkerTaskError`
      でストロークキー付きに伝搬し、`close()` は安全に停止する。
なぜ: 呼び出しは UI スレッドから同期的に行われるが、ストローク数に比例する処理は
      データ並列に分けたいため。

注意（重要）:
- 各タスクは互いに素なキーだけを触ること（ストローク本体とそのキーのコンポーネント）。
  アリーナへの挿入/削除やキャンバス共有値（chrono カウンタ等）の更新はタスク内で行わず、
  呼び出し側の逐次ポストパスで行う。
- `num_workers < 1` はインライン実行（呼び出しスレッドで順に処理）。テストや小規模キャンバス向け。
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Generic, Hashable, Iterable, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")
R = TypeVar("R")


class WorkerTaskError(Exception):
    """ストローク処理中の例外。どのキーで失敗したかと元の例外を保持する。"""

    def __init__(self, key: object, original: BaseException) -> None:
        super().__init__(f"WorkerTaskError(key={key}): {original!r}")
        self.key = key
        self.original = original


class StrokeWorkerPool(Generic[K, V]):
    """`(key, value)` の列に関数を適用するだけの有界ワーカープール。

    結果は入力順（＝アリーナの走査順）で返るため、呼び出し側のポストパスは決定的になる。
    """

    def __init__(self, num_workers: int = 4) -> None:
        self._num_workers = int(num_workers)
        self._inline = self._num_workers < 1
        self._executor: ThreadPoolExecutor | None = None
        if not self._inline:
            self._executor = ThreadPoolExecutor(
                max_workers=self._num_workers, thread_name_prefix="StrokeWorker"
            )
        # 冪等な close() のための内部フラグ
        self._closed: bool = False

    @property
    def inline(self) -> bool:
        return self._inline

    @property
    def num_workers(self) -> int:
        return max(0, self._num_workers)

    # --------- public API ---------
    def filter_map(
        self,
        fn: Callable[[K, V], R | None],
        items: Iterable[tuple[K, V]],
    ) -> list[tuple[K, R]]:
        """各 `(key, value)` に `fn` を適用し、None 以外の結果を `(key, result)` で返す。

        いずれかのタスクが例外を出した場合、全タスクの完了を待ってから最初の失敗
        （入力順）を `WorkerTaskError` として送出する。
        """
        if self._closed:
            raise RuntimeError("StrokeWorkerPool は既に close 済みです")
        pairs = list(items)
        if self._inline or self._executor is None or len(pairs) <= 1:
            return self._run_inline(fn, pairs)

        futures: list[tuple[K, Future]] = [
            (key, self._executor.submit(fn, key, value)) for key, value in pairs
        ]
        out: list[tuple[K, R]] = []
        first_error: WorkerTaskError | None = None
        for key, fut in futures:
            try:
                res = fut.result()
            except Exception as exc:
                logger.exception("[worker] stage=stroke_task key=%s error=%s", key, exc)
                if first_error is None:
                    first_error = WorkerTaskError(key, exc)
                continue
            if res is not None:
                out.append((key, res))
        if first_error is not None:
            raise first_error from first_error.original
        return out

    def close(self) -> None:
        """スレッドプールを停止（多重呼び出しに安全）。"""
        if self._closed:
            return
        # 以降の例外で途中離脱しても、次回は no-op になるよう先にフラグを立てる
        self._closed = True
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> "StrokeWorkerPool[K, V]":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ---- helpers ----
    @staticmethod
    def _run_inline(
        fn: Callable[[K, V], R | None], pairs: list[tuple[K, V]]
    ) -> list[tuple[K, R]]:
        out: list[tuple[K, R]] = []
        for key, value in pairs:
            try:
                res = fn(key, value)
            except Exception as exc:
                logger.exception("[worker] stage=stroke_task key=%s error=%s", key, exc)
                raise WorkerTaskError(key, exc) from exc
            if res is not None:
                out.append((key, res))
        return out


__all__ = ["StrokeWorkerPool", "WorkerTaskError"]
