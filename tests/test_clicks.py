"""Test polled double-click detection."""

from markview.clicks import DoubleClickState


def test_first_click_becomes_pending():
    state = DoubleClickState(timeout=0.4)
    assert state.process_click(5, 3, now=10.0) is False
    assert state.has_pending()


def test_second_click_in_time_is_double_click():
    state = DoubleClickState(timeout=0.4)
    state.process_click(5, 3, now=10.0)
    assert state.process_click(5, 3, now=10.2) is True
    # The pending click is consumed
    assert not state.has_pending()
    assert state.check_pending_timeout(now=20.0) is None


def test_second_click_too_late_is_new_pending_click():
    state = DoubleClickState(timeout=0.4)
    state.process_click(5, 3, now=10.0)
    assert state.process_click(5, 3, now=10.5) is False
    assert state.pending_single_click.at == 10.5


def test_second_click_elsewhere_is_not_double():
    state = DoubleClickState(timeout=0.4)
    state.process_click(5, 3, now=10.0)
    assert state.process_click(5, 4, now=10.1) is False
    assert state.process_click(9, 4, now=10.2) is False


def test_small_horizontal_drift_still_counts():
    state = DoubleClickState(timeout=0.4)
    state.process_click(5, 3, now=10.0)
    assert state.process_click(6, 3, now=10.1) is True


def test_pending_released_after_timeout():
    state = DoubleClickState(timeout=0.4)
    state.process_click(7, 2, now=1.0)
    assert state.check_pending_timeout(now=1.3) is None
    assert state.check_pending_timeout(now=1.5) == (7, 2)
    assert not state.has_pending()


def test_check_without_pending():
    state = DoubleClickState()
    assert state.check_pending_timeout(now=100.0) is None


def test_uses_injected_clock():
    times = iter([0.0, 1.0])
    state = DoubleClickState(timeout=0.4, clock=lambda: next(times))
    state.process_click(1, 1)
    assert state.check_pending_timeout() == (1, 1)


def test_clear_pending():
    state = DoubleClickState()
    state.process_click(1, 1, now=0.0)
    state.clear_pending()
    assert not state.has_pending()
