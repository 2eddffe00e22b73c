from lifegl.core.frame_state import DisplayPayload
from lifegl.core.resize import ResizeEvent, ViewportResizeHandler, resize_queue


def test_last_resize_event_wins() -> None:
    events = resize_queue()
    events.extend([ResizeEvent(800, 600), ResizeEvent(1024, 768), ResizeEvent(640, 360)])
    display = DisplayPayload()

    assert ViewportResizeHandler().drain(events, display) is True
    assert display.viewport == (640.0, 360.0)
    assert len(events) == 0


def test_no_events_keeps_viewport() -> None:
    display = DisplayPayload(viewport=(300.0, 200.0))
    assert ViewportResizeHandler().drain(resize_queue(), display) is False
    assert display.viewport == (300.0, 200.0)
