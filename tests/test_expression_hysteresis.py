from expressions.detector import Direction, ExpressionHysteresis
from expressions.models import EyeThresholds, MouthThresholds


def test_hysteresis_latches_after_confirmations_and_releases():
    h = ExpressionHysteresis("mouth_open", MouthThresholds(open_threshold=0.6, close_threshold=0.5, min_frames=2))

    # First open reading does not latch yet
    assert h.step(0.7) is False
    assert h.state.pending_direction is Direction.TOWARD_ACTIVE

    # Band readings should NOT reset the pending count
    assert h.step(0.55) is False
    assert h.step(0.55) is False
    assert h.state.pending_frames == 1

    # Second open reading latches and counts
    assert h.step(0.65) is True
    assert h.state.active and h.state.counter == 1

    # Closed reading releases without counting
    assert h.step(0.3) is False
    assert not h.state.active and h.state.counter == 1


def test_direction_for_falling_metric():
    h = ExpressionHysteresis("blink", EyeThresholds(close_threshold=0.2, open_threshold=0.25))
    assert h.direction(0.20) is Direction.TOWARD_ACTIVE
    assert h.direction(0.22) is Direction.NONE
    assert h.direction(0.25) is Direction.TOWARD_INACTIVE


def test_agreeing_evidence_breaks_a_pending_run():
    h = ExpressionHysteresis("blink", EyeThresholds(min_frames=3))
    h.step(0.1)
    h.step(0.1)
    h.step(0.3)
    assert h.state.pending_direction is Direction.NONE and h.state.pending_frames == 0
    h.step(0.1)
    assert h.state.pending_frames == 1 and not h.state.active
