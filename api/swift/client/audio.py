"""Microphone capture, WAV encoding and playback of reply audio.

Capture and playback go through sounddevice (PortAudio). Reply audio is MP3,
decoded with soundfile.
"""

import io
import logging
import queue
import threading
from typing import Callable

import numpy as np
import soundfile as sf

from swift.client.segmenter import FRAME_SAMPLES, SAMPLE_RATE

logger = logging.getLogger("swift.client")


def encode_wav(audio: np.ndarray, sr: int = SAMPLE_RATE) -> bytes:
    """Encode float32 mono samples as 16-bit PCM WAV bytes."""
    buf = io.BytesIO()
    sf.write(buf, audio, sr, format="WAV", subtype="PCM_16")
    return buf.getvalue()


def decode_audio(data: bytes) -> tuple[np.ndarray, int]:
    audio, sr = sf.read(io.BytesIO(data), dtype="float32")
    return audio, sr


class Microphone:
    """16kHz mono capture delivered as fixed-size frames through a queue."""

    def __init__(self, device=None, frame_samples: int = FRAME_SAMPLES):
        import sounddevice as sd

        self._frames: queue.Queue[np.ndarray] = queue.Queue()
        self._paused = threading.Event()
        self._stream = sd.InputStream(
            samplerate=SAMPLE_RATE,
            channels=1,
            dtype="float32",
            blocksize=frame_samples,
            device=device,
            callback=self._callback,
        )

    def _callback(self, indata, frames, time_info, status):
        if status:
            logger.debug("Input status: %s", status)
        if not self._paused.is_set():
            self._frames.put(indata[:, 0].copy())

    def start(self):
        self._stream.start()
        logger.info("Microphone started")

    def pause(self):
        self._paused.set()
        # Drop frames captured before the pause
        while not self._frames.empty():
            try:
                self._frames.get_nowait()
            except queue.Empty:
                break

    def resume(self):
        self._paused.clear()

    def read(self, timeout: float = 0.1) -> np.ndarray | None:
        try:
            return self._frames.get(timeout=timeout)
        except queue.Empty:
            return None

    def close(self):
        self._stream.stop()
        self._stream.close()


class Player:
    """Plays one reply at a time; a new reply or stop() cuts the current one."""

    def __init__(self, device=None):
        import sounddevice as sd

        self._sd = sd
        self._device = device
        self._generation = 0
        self._lock = threading.Lock()

    def play(self, data: bytes, on_done: Callable[[], None] | None = None):
        audio, sr = decode_audio(data)
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._sd.play(audio, sr, device=self._device)

        def wait():
            self._sd.wait()
            with self._lock:
                current = generation == self._generation
            if current and on_done:
                on_done()

        threading.Thread(target=wait, daemon=True).start()

    def stop(self):
        with self._lock:
            self._generation += 1
            self._sd.stop()
