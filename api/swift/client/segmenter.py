import logging
from typing import Callable

import numpy as np

logger = logging.getLogger("swift.client")

SAMPLE_RATE = 16000
FRAME_SAMPLES = 512  # 32ms at 16kHz, one Silero window


class SpeechSegmenter:
    """Turns per-frame speech probabilities into utterances.

    Speech starts on the first frame at or above `positive_threshold`. It ends
    after `redemption_frames` consecutive frames below `negative_threshold`.
    Segments with fewer than `min_speech_frames` speech frames are dropped as
    misfires. `pre_speech_pad_frames` frames before the start are kept.
    """

    def __init__(
        self,
        positive_threshold: float = 0.6,
        negative_threshold: float | None = None,
        min_speech_frames: int = 4,
        redemption_frames: int = 8,
        pre_speech_pad_frames: int = 1,
        on_speech_start: Callable[[], None] | None = None,
        on_speech_end: Callable[[np.ndarray], None] | None = None,
        on_misfire: Callable[[], None] | None = None,
    ):
        if negative_threshold is None:
            negative_threshold = positive_threshold - 0.15
        self.positive_threshold = positive_threshold
        self.negative_threshold = negative_threshold
        self.min_speech_frames = min_speech_frames
        self.redemption_frames = redemption_frames
        self.pre_speech_pad_frames = pre_speech_pad_frames
        self.on_speech_start = on_speech_start
        self.on_speech_end = on_speech_end
        self.on_misfire = on_misfire

        self._frames: list[tuple[np.ndarray, bool]] = []
        self._redemption = 0
        self.speaking = False

    def process(self, frame: np.ndarray, probability: float) -> np.ndarray | None:
        """Feed one frame. Returns the utterance audio when speech just ended."""
        is_speech = probability >= self.positive_threshold
        self._frames.append((frame, is_speech))

        if is_speech:
            self._redemption = 0
            if not self.speaking:
                self.speaking = True
                if self.on_speech_start:
                    self.on_speech_start()

        segment = None
        if probability < self.negative_threshold and self.speaking:
            self._redemption += 1
            if self._redemption >= self.redemption_frames:
                segment = self._end_segment()

        if not self.speaking:
            del self._frames[: max(0, len(self._frames) - self.pre_speech_pad_frames)]

        return segment

    def _end_segment(self) -> np.ndarray | None:
        frames = self._frames
        speech_frames = sum(1 for _, speech in frames if speech)
        self.reset()

        if speech_frames < self.min_speech_frames:
            logger.debug("VAD misfire: %d speech frames", speech_frames)
            if self.on_misfire:
                self.on_misfire()
            return None

        audio = np.concatenate([f for f, _ in frames]).astype(np.float32)
        logger.info("Speech segment: %d samples (%.1fs)", len(audio), len(audio) / SAMPLE_RATE)
        if self.on_speech_end:
            self.on_speech_end(audio)
        return audio

    def reset(self):
        self._frames = []
        self._redemption = 0
        self.speaking = False
