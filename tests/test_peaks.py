"""Tests for spectrum peak finding."""

import itertools
import math

import numpy as np
import pytest

from chord_detector.analysis import Peak, PeakFinder, PeakFinderConfig, find_peaks
from chord_detector.analysis.peaks import as_spectrum, bin_resolution, semitone_distance
from chord_detector.core import closest_note

from synthetic import BIN_SIZE, FFT_SIZE, SAMPLE_RATE, make_spectrum


class TestSilence:
    """Silent and flat spectra produce no peaks."""

    def test_all_zero_spectrum(self):
        spectrum = np.zeros(FFT_SIZE // 2, dtype=np.uint8)
        assert find_peaks(spectrum, SAMPLE_RATE, FFT_SIZE) == []

    def test_quiet_band_is_silent(self):
        """A weak lobe leaves the band mean under the silence threshold."""
        spectrum = make_spectrum({20: 40})
        assert find_peaks(spectrum, SAMPLE_RATE, FFT_SIZE) == []

    def test_flat_noise_floor_has_no_peaks(self):
        spectrum = np.full(FFT_SIZE // 2, 50.0)
        assert find_peaks(spectrum, SAMPLE_RATE, FFT_SIZE) == []

    def test_weak_isolated_bin_is_silent(self):
        spectrum = np.zeros(FFT_SIZE // 2)
        spectrum[20] = 30
        assert find_peaks(spectrum, SAMPLE_RATE, FFT_SIZE) == []

    def test_silence_threshold_is_configurable(self):
        finder = PeakFinder(PeakFinderConfig(silence_threshold=0.0))
        spectrum = make_spectrum({20: 40})
        assert finder.find_peaks(spectrum, SAMPLE_RATE, FFT_SIZE) == [440.0]


class TestSinglePeak:
    """A single lobe in an otherwise empty spectrum."""

    def test_finds_440(self):
        peaks = find_peaks(make_spectrum({20: 255}), SAMPLE_RATE, FFT_SIZE)
        assert len(peaks) == 1
        assert abs(peaks[0] - 440.0) < 2.0

    def test_maps_to_a4(self):
        peaks = find_peaks(make_spectrum({20: 255}), SAMPLE_RATE, FFT_SIZE)
        note = closest_note(peaks[0])
        assert note.name == "A"
        assert note.octave == 4

    def test_peak_details(self):
        finder = PeakFinder()
        details = finder.find_peak_details(make_spectrum({20: 255}), SAMPLE_RATE, FFT_SIZE)
        assert details == [Peak(frequency=440.0, magnitude=255, bin=20)]

    def test_isolated_spike(self):
        """A single loud bin over silence is a peak of its own."""
        spectrum = np.zeros(FFT_SIZE // 2)
        spectrum[20] = 255
        assert find_peaks(spectrum, SAMPLE_RATE, FFT_SIZE) == [440.0]

    def test_flat_top_resolved_by_raw_level(self):
        finder = PeakFinder()
        spectrum = np.zeros(FFT_SIZE // 2)
        spectrum[20] = 255
        details = finder.find_peak_details(spectrum, SAMPLE_RATE, FFT_SIZE)
        assert details == [Peak(frequency=440.0, magnitude=255, bin=20)]

    def test_accepts_plain_lists(self):
        spectrum = [int(v) for v in make_spectrum({20: 255})]
        assert find_peaks(spectrum, SAMPLE_RATE, FFT_SIZE) == [440.0]


class TestBandLimits:
    """Only 80-1200 Hz is searched."""

    def test_ignores_peak_above_band(self):
        # bin 70 = 1540 Hz
        spectrum = make_spectrum({20: 200, 70: 255})
        assert find_peaks(spectrum, SAMPLE_RATE, FFT_SIZE) == [440.0]

    def test_band_bins(self):
        finder = PeakFinder()
        assert finder.band_bins(BIN_SIZE) == (3, 54)

    def test_short_spectrum(self):
        assert find_peaks([255, 255], SAMPLE_RATE, FFT_SIZE) == []


class TestMultiplePeaks:
    """Several independent notes."""

    @pytest.fixture
    def three_notes(self):
        # 440, 616 and 792 Hz - no integer ratios between them
        return make_spectrum({20: 255, 28: 200, 36: 150})

    def test_ordered_by_magnitude(self, three_notes):
        peaks = find_peaks(three_notes, SAMPLE_RATE, FFT_SIZE)
        assert peaks == [440.0, 616.0, 792.0]

    def test_max_peaks(self, three_notes):
        peaks = find_peaks(three_notes, SAMPLE_RATE, FFT_SIZE, max_peaks=2)
        assert peaks == [440.0, 616.0]

    def test_max_peaks_from_config(self, three_notes):
        finder = PeakFinder(PeakFinderConfig(max_peaks=1))
        assert finder.find_peaks(three_notes, SAMPLE_RATE, FFT_SIZE) == [440.0]

    def test_zero_max_peaks(self, three_notes):
        assert find_peaks(three_notes, SAMPLE_RATE, FFT_SIZE, max_peaks=0) == []

    def test_peaks_at_least_a_semitone_apart(self, three_notes):
        peaks = find_peaks(three_notes, SAMPLE_RATE, FFT_SIZE)
        for a, b in itertools.combinations(peaks, 2):
            assert semitone_distance(a, b) >= 1.0


class TestHarmonicSuppression:
    """Overtones of a stronger peak are not separate notes."""

    def test_second_harmonic_dropped(self):
        spectrum = make_spectrum({10: 255, 20: 128})
        assert find_peaks(spectrum, SAMPLE_RATE, FFT_SIZE) == [220.0]

    def test_third_harmonic_dropped(self):
        # 220 Hz and 660 Hz
        spectrum = make_spectrum({10: 255, 30: 128})
        assert find_peaks(spectrum, SAMPLE_RATE, FFT_SIZE) == [220.0]

    def test_weaker_fundamental_kept(self):
        """Only peaks above a kept, stronger peak are suppressed."""
        spectrum = make_spectrum({10: 128, 20: 255})
        assert find_peaks(spectrum, SAMPLE_RATE, FFT_SIZE) == [440.0, 220.0]

    def test_harmonic_ratios_are_configurable(self):
        finder = PeakFinder(PeakFinderConfig(harmonic_ratios=()))
        spectrum = make_spectrum({10: 255, 20: 128})
        assert finder.find_peaks(spectrum, SAMPLE_RATE, FFT_SIZE) == [220.0, 440.0]


class TestDeduplication:
    """Candidates closer than a semitone keep the stronger one."""

    def test_keeps_stronger_of_close_pair(self):
        finder = PeakFinder()
        candidates = [
            Peak(frequency=440.0, magnitude=100, bin=20),
            Peak(frequency=450.0, magnitude=200, bin=20),
            Peak(frequency=600.0, magnitude=50, bin=27),
        ]
        kept = finder._deduplicate(candidates)
        assert [p.frequency for p in kept] == [450.0, 600.0]

    def test_separation_is_logarithmic(self):
        """Same 30 Hz gap: less than a semitone at 1000 Hz, more at 200 Hz."""
        assert semitone_distance(1000.0, 1030.0) < 1.0
        assert semitone_distance(200.0, 230.0) > 1.0


class TestRefinement:
    """Parabolic interpolation and thresholds."""

    def test_parabolic_offset(self):
        data = np.array([0.0, 100.0, 200.0, 150.0, 0.0])
        assert PeakFinder._parabolic_offset(data, 2) == pytest.approx(1 / 6)

    def test_parabolic_offset_flat(self):
        data = np.array([5.0, 5.0, 5.0])
        assert PeakFinder._parabolic_offset(data, 1) == 0.0

    def test_parabolic_offset_clamped(self):
        data = np.array([0.0, 10.0, 10.0, 9.0])
        offset = PeakFinder._parabolic_offset(data, 1)
        assert -0.5 <= offset <= 0.5

    def test_parabolic_offset_at_edge(self):
        data = np.array([10.0, 5.0])
        assert PeakFinder._parabolic_offset(data, 0) == 0.0

    def test_asymmetric_lobe_refined_towards_heavier_side(self):
        spectrum = make_spectrum({20: 255})
        spectrum[21] = 240
        peaks = find_peaks(spectrum, SAMPLE_RATE, FFT_SIZE)
        assert len(peaks) == 1
        assert 440.0 < peaks[0] < 440.0 + BIN_SIZE / 2

    def test_threshold_decays_with_frequency(self):
        finder = PeakFinder()
        low = finder.threshold(4, 3)
        high = finder.threshold(50, 3)
        assert low > high
        assert high == pytest.approx(15.0, abs=0.01)
        assert finder.threshold(0, 3) == pytest.approx(45.0)

    def test_smoothing_leaves_edges_zero(self):
        finder = PeakFinder()
        smoothed = finder.smooth(np.full(10, 70.0))
        assert list(smoothed[:3]) == [0.0, 0.0, 0.0]
        assert list(smoothed[-3:]) == [0.0, 0.0, 0.0]
        assert smoothed[3:7] == pytest.approx([70.0] * 4)


class TestDegenerateInput:
    """Bad input never raises."""

    @pytest.mark.parametrize("sample_rate, fft_size", [
        (0, FFT_SIZE),
        (-44100, FFT_SIZE),
        (SAMPLE_RATE, 0),
        (float("nan"), FFT_SIZE),
        (SAMPLE_RATE, None),
    ])
    def test_bad_metadata(self, sample_rate, fft_size):
        assert find_peaks(make_spectrum({20: 255}), sample_rate, fft_size) == []

    def test_empty_spectrum(self):
        assert find_peaks([], SAMPLE_RATE, FFT_SIZE) == []

    def test_non_numeric_spectrum(self):
        assert find_peaks("not a spectrum", SAMPLE_RATE, FFT_SIZE) == []

    def test_non_finite_values_are_zeroed(self):
        spectrum = make_spectrum({20: 255})
        spectrum[100:110] = np.nan
        assert find_peaks(spectrum, SAMPLE_RATE, FFT_SIZE) == [440.0]

    def test_as_spectrum_clips(self):
        data = as_spectrum([-5, 300, float("nan"), 12])
        assert list(data) == [0.0, 255.0, 0.0, 12.0]

    def test_bin_resolution(self):
        assert bin_resolution(44100, 2048) == pytest.approx(21.533, abs=1e-3)
        assert bin_resolution(44100, 0) is None
        assert math.isclose(bin_resolution(SAMPLE_RATE, FFT_SIZE), BIN_SIZE)

    def test_input_not_modified(self):
        spectrum = make_spectrum({20: 255})
        before = spectrum.copy()
        find_peaks(spectrum, SAMPLE_RATE, FFT_SIZE)
        assert np.array_equal(spectrum, before)
