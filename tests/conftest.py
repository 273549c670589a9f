"""共通フィクスチャ。

- 乱数シード固定
- インライン/スレッドの両方で動くキャンバス集約と選択エンジン
- 小さなストローク試料
"""

from __future__ import annotations

from typing import Iterator

import numpy as np
import pytest

from engine.core.geometry import AABB
from engine.strokes import MarkerStroke, SelectionEngine, ShapeStroke, StrokesState


@pytest.fixture(scope="session", autouse=True)
def np_seed() -> None:
    """NumPy の乱数を固定。"""
    np.random.seed(12345)


@pytest.fixture(params=[0, 4], ids=["inline", "threaded"])
def state(request: pytest.FixtureRequest) -> Iterator[StrokesState]:
    st = StrokesState(num_workers=request.param)
    yield st
    st.close()


@pytest.fixture()
def engine(state: StrokesState) -> SelectionEngine:
    return SelectionEngine(state)


@pytest.fixture()
def marker_h() -> MarkerStroke:
    # 水平線 (0,0)->(10,0), 幅 2 → bounds (-1,-1)-(11,1)
    return MarkerStroke([[0.0, 0.0], [10.0, 0.0]], width=2.0)


@pytest.fixture()
def square_shape() -> ShapeStroke:
    # 矩形 (20,20)-(30,30), 幅 2 → bounds (19,19)-(31,31)
    return ShapeStroke.rectangle(AABB((20.0, 20.0), (30.0, 30.0)), width=2.0)
