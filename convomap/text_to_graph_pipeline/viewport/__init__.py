from convomap.text_to_graph_pipeline.viewport.viewport_controller import (
    ViewportController,
    ViewState,
    ViewTransform,
)

__all__ = ['ViewportController', 'ViewState', 'ViewTransform']
