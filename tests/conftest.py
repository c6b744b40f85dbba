import threading

import numpy as np
import pytest

from mixport.application.export_scheduler import ExportScheduler
from mixport.application.profile_registry import load_default_registry
from mixport.audio_contract import AudioBuffer
from mixport.infrastructure.project_stores import InMemoryProjectStore


class RecordingPublisher:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.events = []

    def publish(self, event) -> None:
        with self._lock:
            self.events.append(event)

    def for_job(self, job_id):
        with self._lock:
            return [event for event in self.events if event.correlation_id == job_id]


def tone(
    frequency_hz: float = 440.0,
    *,
    amplitude: float = 0.3,
    seconds: float = 1.0,
    sample_rate: int = 44_100,
    channels: int = 2,
) -> AudioBuffer:
    t = np.arange(int(sample_rate * seconds), dtype=np.float64) / sample_rate
    signal = amplitude * np.sin(2 * np.pi * frequency_hz * t)
    return AudioBuffer(samples=np.tile(signal, (channels, 1)).astype(np.float32), sample_rate_hz=sample_rate)


@pytest.fixture
def make_tone():
    return tone


@pytest.fixture
def sine_wave():
    sample_rate = 44100
    duration_s = 2.0
    t = np.linspace(0.0, duration_s, int(sample_rate * duration_s), endpoint=False)
    base = np.sin(2 * np.pi * 440.0 * t) + 0.5 * np.sin(2 * np.pi * 110.0 * t)
    return {
        "sample_rate": sample_rate,
        "quiet": 0.1 * base,
        "loud": 0.5 * base,
    }


@pytest.fixture
def stereo_mix(sine_wave) -> AudioBuffer:
    """Two slightly different channels built from the sine-wave fixture."""

    left = sine_wave["loud"]
    t = np.arange(left.size) / sine_wave["sample_rate"]
    right = 0.9 * left + 0.05 * np.sin(2 * np.pi * 3_000.0 * t)
    return AudioBuffer(samples=np.stack((left, right)).astype(np.float32), sample_rate_hz=sine_wave["sample_rate"])


@pytest.fixture
def registry():
    return load_default_registry()


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def make_scheduler(registry, publisher):
    created = []

    def factory(projects=None, **kwargs):
        sources = projects if projects is not None else {"demo": tone()}
        kwargs.setdefault("event_publisher", publisher)
        scheduler = ExportScheduler(registry=registry, project_store=InMemoryProjectStore(sources), **kwargs)
        created.append(scheduler)
        return scheduler

    yield factory
    for scheduler in created:
        scheduler.shutdown(wait=True)


def click_train(*, seconds: float = 3.0, sample_rate: int = 44_100, bed: float = 0.01, click: float = 0.99) -> AudioBuffer:
    """A quiet bed with full-scale clicks every quarter second; crest factor above 30 dB."""

    t = np.arange(int(sample_rate * seconds), dtype=np.float64) / sample_rate
    signal = bed * np.sin(2 * np.pi * 220.0 * t)
    signal[:: sample_rate // 4] = click
    return AudioBuffer(samples=np.tile(signal, (2, 1)).astype(np.float32), sample_rate_hz=sample_rate)


def white_noise(*, seconds: float = 2.0, sample_rate: int = 44_100, amplitude: float = 0.05, seed: int = 7) -> AudioBuffer:
    rng = np.random.default_rng(seed)
    samples = rng.normal(0.0, amplitude, size=(2, int(sample_rate * seconds)))
    return AudioBuffer(samples=samples.astype(np.float32), sample_rate_hz=sample_rate)


def anti_correlated(*, seconds: float = 2.0, sample_rate: int = 44_100) -> AudioBuffer:
    t = np.arange(int(sample_rate * seconds), dtype=np.float64) / sample_rate
    left = 0.3 * np.sin(2 * np.pi * 330.0 * t) + 0.1 * np.sin(2 * np.pi * 5_000.0 * t)
    right = -0.8 * left + 0.05 * np.sin(2 * np.pi * 90.0 * t)
    return AudioBuffer(samples=np.stack((left, right)).astype(np.float32), sample_rate_hz=sample_rate)


@pytest.fixture(params=["two_tone", "click_train", "white_noise", "anti_correlated"])
def delivery_source(request, stereo_mix) -> AudioBuffer:
    """Sources with very different crest factors, spectra and stereo images."""

    builders = {
        "two_tone": lambda: stereo_mix,
        "click_train": click_train,
        "white_noise": white_noise,
        "anti_correlated": anti_correlated,
    }
    return builders[request.param]()


@pytest.fixture
def click_mix() -> AudioBuffer:
    return click_train()
