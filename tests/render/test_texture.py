from __future__ import annotations

import pytest

from engine.core.geometry import AABB
from engine.render import RenderImage, image_to_texturenode


def test_texturenode_scales_bounds_by_zoom() -> None:
    img = RenderImage(bounds=AABB((1, 2), (3, 6)))
    node = image_to_texturenode(img, 2.0)
    assert node.bounds == AABB((2, 4), (6, 12))
    assert node.has_texture is False


def test_texturenode_reports_texture() -> None:
    img = RenderImage(bounds=AABB((0, 0), (1, 1)), data=b"\x00" * 4, pixel_width=1, pixel_height=1)
    node = image_to_texturenode(img, 1.0)
    assert node.has_texture is True
    assert (node.pixel_width, node.pixel_height) == (1, 1)


@pytest.mark.parametrize("zoom", [0.0, -1.0])
def test_texturenode_rejects_non_positive_zoom(zoom: float) -> None:
    with pytest.raises(ValueError):
        image_to_texturenode(RenderImage(bounds=AABB((0, 0), (1, 1))), zoom)
