import logging
import time
from contextlib import contextmanager

from swift.middleware.metrics import PIPELINE_STAGE_DURATION
from swift.schemas.assistant import Latencies

logger = logging.getLogger("swift")

# Stage name -> Latencies field
STAGES = {
    "transcription": "transcription",
    "textCompletion": "text_completion",
    "speechSynthesis": "speech_synthesis",
}


class LatencyTimer:
    """Collects one duration per pipeline stage for a single request."""

    def __init__(self, request_id: str = ""):
        self.request_id = request_id
        self._ms: dict[str, int] = {}

    @contextmanager
    def measure(self, stage: str):
        if stage not in STAGES:
            raise ValueError(f"Unknown stage: {stage}")
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed = time.perf_counter() - start
            self._ms[stage] = round(elapsed * 1000)
            PIPELINE_STAGE_DURATION.labels(stage=stage).observe(elapsed)
            logger.info("[%s] %s: %dms", self.request_id, stage, self._ms[stage])

    def latencies(self) -> Latencies:
        return Latencies(**{STAGES[k]: v for k, v in self._ms.items()})
