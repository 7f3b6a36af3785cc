"""Tests for tap classification."""

from visionvoice.controls.taps import TapDisambiguator, TapIntent


class TestTapDisambiguator:
    def test_quick_pair_is_double(self):
        taps = TapDisambiguator()
        assert taps.classify(10.0) is TapIntent.SINGLE
        assert taps.classify(10.25) is TapIntent.DOUBLE

    def test_slow_pair_is_two_singles(self):
        taps = TapDisambiguator()
        assert taps.classify(10.0) is TapIntent.SINGLE
        assert taps.classify(10.4) is TapIntent.SINGLE

    def test_window_is_exclusive(self):
        taps = TapDisambiguator(window=0.5)
        taps.classify(1.0)
        assert taps.classify(1.5) is TapIntent.SINGLE

    def test_third_quick_tap_starts_over(self):
        taps = TapDisambiguator()
        taps.classify(1.0)
        assert taps.classify(1.1) is TapIntent.DOUBLE
        assert taps.classify(1.2) is TapIntent.SINGLE
        assert taps.classify(1.3) is TapIntent.DOUBLE

    def test_reset_forgets_previous_tap(self):
        taps = TapDisambiguator()
        taps.classify(1.0)
        taps.reset()
        assert taps.classify(1.1) is TapIntent.SINGLE

    def test_clock_going_backwards(self):
        taps = TapDisambiguator()
        taps.classify(5.0)
        assert taps.classify(4.9) is TapIntent.SINGLE
