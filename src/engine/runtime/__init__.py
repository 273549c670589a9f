"""
どこで: `engine.runtime` サブパッケージ。
何を: ストローク単位のデータ並列実行（`StrokeWorkerPool`）と例外伝播（`WorkerTaskError`）を提供。
なぜ: UI スレッドからの同期呼び出しを保ったまま、走査/変換フェーズを並列化するため。
"""

from .worker import StrokeWorkerPool, WorkerTaskError

__all__ = ["StrokeWorkerPool", "WorkerTaskError"]
