"""
Unit tests for the viewport pan/zoom controller
"""

import pytest

from convomap.text_to_graph_pipeline.viewport import ViewportController, ViewState, ViewTransform


class TestPanning:

    def test_drag_translates_by_pointer_delta(self):
        viewport = ViewportController()
        viewport.pointer_down(10, 10)
        viewport.pointer_move(30, 5)
        viewport.pointer_move(40, 25)
        assert (viewport.transform.translate_x, viewport.transform.translate_y) == (30, 15)

    def test_move_while_idle_is_ignored(self):
        viewport = ViewportController()
        viewport.pointer_move(100, 100)
        assert (viewport.transform.translate_x, viewport.transform.translate_y) == (0, 0)

    @pytest.mark.parametrize("release", ["pointer_up", "pointer_leave"])
    def test_release_returns_to_idle(self, release):
        viewport = ViewportController()
        viewport.pointer_down(0, 0)
        assert viewport.state is ViewState.DRAGGING
        getattr(viewport, release)()
        assert viewport.state is ViewState.IDLE
        viewport.pointer_move(50, 50)
        assert viewport.transform.translate_x == 0


class TestZoom:

    def test_scroll_up_zooms_in_one_step(self):
        viewport = ViewportController()
        viewport.wheel(-120, 0, 0)
        assert viewport.transform.scale == pytest.approx(1.1)

    def test_scroll_down_zooms_out_one_step(self):
        viewport = ViewportController()
        viewport.wheel(3, 0, 0)
        assert viewport.transform.scale == pytest.approx(0.9)

    def test_zero_delta_is_a_no_op(self):
        viewport = ViewportController()
        viewport.wheel(0, 100, 100)
        assert viewport.transform == ViewTransform()

    def test_scale_is_clamped(self):
        viewport = ViewportController()
        for _ in range(40):
            viewport.wheel(-1, 0, 0)
        assert viewport.transform.scale == 3.0
        for _ in range(60):
            viewport.wheel(1, 0, 0)
        assert viewport.transform.scale == 0.5

    def test_clamped_wheel_leaves_translate_untouched(self):
        viewport = ViewportController(ViewTransform(scale=3.0, translate_x=12, translate_y=-7))
        viewport.wheel(-1, 400, 300)
        assert viewport.transform == ViewTransform(scale=3.0, translate_x=12, translate_y=-7)

    @pytest.mark.parametrize("delta_y", [-1, 1])
    @pytest.mark.parametrize("start", [
        ViewTransform(),
        ViewTransform(scale=1.7, translate_x=-250, translate_y=90),
        ViewTransform(scale=0.6, translate_x=33.3, translate_y=-12.5),
    ])
    def test_point_under_cursor_stays_fixed(self, start, delta_y):
        viewport = ViewportController(ViewTransform(start.scale, start.translate_x, start.translate_y))
        px, py = 321.5, 187.25
        world = viewport.screen_to_world(px, py)

        viewport.wheel(delta_y, px, py)

        sx, sy = viewport.world_to_screen(*world)
        assert sx == pytest.approx(px)
        assert sy == pytest.approx(py)

    def test_zoom_while_dragging_keeps_dragging(self):
        viewport = ViewportController()
        viewport.pointer_down(0, 0)
        viewport.wheel(-1, 50, 50)
        assert viewport.is_dragging


class TestTransform:

    def test_svg_transform_string(self):
        transform = ViewTransform(scale=1.5, translate_x=10, translate_y=-20.5)
        assert transform.to_svg() == "translate(10, -20.5) scale(1.5)"

    def test_screen_world_round_trip(self):
        viewport = ViewportController(ViewTransform(scale=2.0, translate_x=100, translate_y=50))
        assert viewport.screen_to_world(300, 150) == (100, 50)
        assert viewport.world_to_screen(100, 50) == (300, 150)

    def test_reset(self):
        viewport = ViewportController(ViewTransform(scale=2.0, translate_x=5, translate_y=5))
        viewport.pointer_down(1, 1)
        viewport.reset()
        assert viewport.transform == ViewTransform()
        assert viewport.state is ViewState.IDLE

    def test_to_dict(self):
        data = ViewportController().to_dict()
        assert data == {
            "state": "idle",
            "scale": 1.0,
            "translate": {"x": 0.0, "y": 0.0},
            "transform": "translate(0, 0) scale(1)",
        }
