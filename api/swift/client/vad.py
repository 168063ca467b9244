import logging

import numpy as np
import torch

from swift.client.segmenter import FRAME_SAMPLES, SAMPLE_RATE

logger = logging.getLogger("swift.client")


class SileroVAD:
    SAMPLE_RATE = SAMPLE_RATE

    def __init__(self, model):
        self.model = model

    def speech_probability(self, frame: np.ndarray) -> float:
        """Speech probability of one 512-sample 16kHz frame.

        Shorter frames are zero-padded; longer ones are scored window by window
        and the highest probability wins.
        """
        if len(frame) < FRAME_SAMPLES:
            frame = np.pad(frame, (0, FRAME_SAMPLES - len(frame)))

        max_conf = 0.0
        for start in range(0, len(frame) - FRAME_SAMPLES + 1, FRAME_SAMPLES):
            window = torch.from_numpy(frame[start:start + FRAME_SAMPLES].copy()).float()
            with torch.no_grad():
                conf = self.model(window, self.SAMPLE_RATE).item()
            max_conf = max(max_conf, conf)
        return max_conf

    def reset(self):
        """Clear the model's recurrent state between utterances."""
        self.model.reset_states()


def load_vad() -> SileroVAD:
    logger.info("Loading Silero VAD v5")
    model, _utils = torch.hub.load(
        repo_or_dir="snakers4/silero-vad",
        model="silero_vad",
        force_reload=False,
        onnx=False,
        trust_repo=True,
    )
    return SileroVAD(model)
