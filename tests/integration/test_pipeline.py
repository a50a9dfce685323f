"""End-to-end pipeline test: mocked microphone stream through to measurements."""

import pytest
import numpy as np

from tickscope.config import TickScopeConfig
from tickscope.models.events import NoiseReason
from tickscope.models.statistics import StabilityRating
from tickscope.services.session import AnalysisSession

SAMPLE_RATE = 44100
CHUNK_SIZE = 1024
CHUNKS_PER_BEAT = 22
BEAT_MS = CHUNKS_PER_BEAT * CHUNK_SIZE / SAMPLE_RATE * 1000


class TickingStream:
    """Produces int16 chunks with an 800 Hz tick every CHUNKS_PER_BEAT chunks."""

    def __init__(self, audio_test_data):
        tick = audio_test_data("tick", num_samples=CHUNK_SIZE, amplitude=0.5)
        self.tick = (tick * 32767).astype(np.int16).tobytes()
        self.quiet = np.zeros(CHUNK_SIZE, dtype=np.int16).tobytes()
        self.chunk_index = 0

    def read(self, frames, exception_on_overflow=True):
        chunk = self.tick if self.chunk_index % CHUNKS_PER_BEAT == 0 else self.quiet
        self.chunk_index += 1
        return chunk


@pytest.fixture
def ticking_session(mock_pyaudio, audio_test_data, fake_clock):
    stream = TickingStream(audio_test_data)
    mock_pyaudio['stream'].read.side_effect = stream.read

    session = AnalysisSession(TickScopeConfig(), clock=fake_clock)
    session.start(run_loop=False)
    yield session
    session.dispose()


def run_cycles(session, clock, count):
    for _ in range(count):
        clock.advance(CHUNK_SIZE / SAMPLE_RATE)
        session.poll()


@pytest.mark.integration
class TestPipeline:

    def test_steady_ticks_become_measurements(self, ticking_session, fake_clock, recorder):
        run_cycles(ticking_session, fake_clock, CHUNKS_PER_BEAT * 5 + 1)

        assert len(recorder.pulses) == 6
        assert len(recorder.measurements) == 5
        assert [m.interval_ms for m in recorder.measurements] == pytest.approx([BEAT_MS] * 5, abs=0.01)
        assert all(m.frequency_bpm == pytest.approx(60000 / BEAT_MS, abs=0.01)
                   for m in recorder.measurements)
        assert all(abs(m.deviation_pct) < 0.01 for m in recorder.measurements)

        summary = ticking_session.session_summary()
        assert summary.stability is StabilityRating.EXCELLENT

    def test_tick_ringdown_reported_as_noise(self, ticking_session, fake_clock, recorder):
        run_cycles(ticking_session, fake_clock, CHUNKS_PER_BEAT * 2)

        assert len(recorder.pulses) == 2
        assert recorder.artifacts
        assert all(a.reason is NoiseReason.REFRACTORY for a in recorder.artifacts)
        assert all(a.elapsed_ms < 100 for a in recorder.artifacts)

    def test_every_cycle_publishes_frames(self, ticking_session, fake_clock, recorder):
        run_cycles(ticking_session, fake_clock, 10)

        assert len(recorder.waveform_frames) == 10
        assert len(recorder.frequency_frames) == 10
        assert ticking_session.get_session_stats().total_frames == 10

    def test_spectrum_shows_tick_band(self, ticking_session, fake_clock, recorder):
        run_cycles(ticking_session, fake_clock, 1)

        newest_row = recorder.frequency_frames[0][-256:]
        # 800 Hz sits in bin 37 of 1024, i.e. group 9 after averaging 4 bins
        assert newest_row[9] == newest_row.max()
        assert newest_row[9] > 0
        assert newest_row[200] < newest_row[9]

    def test_stop_releases_stream(self, ticking_session, mock_pyaudio):
        ticking_session.stop()

        mock_pyaudio['stream'].close.assert_called_once()
        mock_pyaudio['instance'].terminate.assert_called_once()
