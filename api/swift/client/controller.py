"""Voice controller: conversation state plus the listen/submit/play cycle.

State machine:
    IDLE --(start, unmuted)--> LISTENING --(speech end / typed text)-->
    SUBMITTING --(reply)--> PLAYING --(playback done)--> LISTENING

A failed submission goes back to LISTENING (IDLE while muted). Muting pauses
the detector without touching the conversation. Unless barge-in is enabled,
frames heard while the reply plays are dropped.
"""

import logging
import threading
import time
from enum import Enum, auto
from typing import Callable

import numpy as np

from swift.client.api import AssistantClient, AssistantError, ChatMessage, Exchange
from swift.client.audio import encode_wav
from swift.client.segmenter import SpeechSegmenter

logger = logging.getLogger("swift.client")

LANGUAGES = ("en", "el")


class State(Enum):
    IDLE = auto()        # Detector not armed
    LISTENING = auto()   # Detector armed, waiting for speech
    SUBMITTING = auto()  # Request in flight
    PLAYING = auto()     # Reply audio playing


class VoiceController:
    def __init__(
        self,
        client: AssistantClient,
        vad=None,
        microphone=None,
        player=None,
        segmenter: SpeechSegmenter | None = None,
        language: str = "en",
        on_state_change: Callable[[State], None] | None = None,
        on_reply: Callable[[Exchange], None] | None = None,
        on_error: Callable[[str], None] | None = None,
        barge_in: bool = False,
    ):
        self.client = client
        self.vad = vad
        self.microphone = microphone
        self.player = player
        self.segmenter = segmenter or SpeechSegmenter()
        self.segmenter.on_speech_end = self.on_speech_end

        self.on_state_change = on_state_change
        self.on_reply = on_reply
        self.on_error = on_error
        # Score frames during playback; needs a headset or echo cancellation
        self.barge_in = barge_in

        self.messages: list[ChatMessage] = []
        self.input_text = ""
        self.language = language
        self.muted = False
        self.theme = "dark"

        self._state = State.IDLE
        self._armed = False
        self._running = False
        self._thread: threading.Thread | None = None

    @property
    def state(self) -> State:
        return self._state

    @state.setter
    def state(self, new_state: State):
        old = self._state
        self._state = new_state
        logger.info("Voice: %s -> %s", old.name, new_state.name)
        if self.on_state_change:
            try:
                self.on_state_change(new_state)
            except Exception as e:
                logger.warning("State change callback failed: %s", e)

    @property
    def last_latencies(self) -> dict[str, int] | None:
        if self.messages and self.messages[-1].latencies:
            return self.messages[-1].latencies
        return None

    def _rest_state(self) -> State:
        return State.LISTENING if self._armed and not self.muted else State.IDLE

    # -- detector -------------------------------------------------------

    def start(self):
        """Arm the detector and start the capture loop, if a microphone is attached."""
        if self._running:
            return
        self._armed = True
        if self.microphone is not None:
            self._running = True
            self.microphone.start()
            if self.muted:
                self.microphone.pause()
            self._thread = threading.Thread(target=self._listen_loop, daemon=True)
            self._thread.start()
        self.state = self._rest_state()

    def stop(self):
        self._running = False
        self._armed = False
        if self._thread is not None:
            self._thread.join(timeout=1.0)
            self._thread = None
        if self.microphone is not None:
            self.microphone.close()
        if self.player is not None:
            self.player.stop()
        self.state = State.IDLE

    def _listen_loop(self):
        while self._running:
            frame = self.microphone.read()
            if frame is None or self.muted:
                continue
            try:
                self.process_frame(frame)
            except Exception as e:
                logger.error("Voice loop error: %s", e)

    def process_frame(self, frame: np.ndarray):
        if self._state == State.PLAYING and not self.barge_in:
            return
        probability = self.vad.speech_probability(frame)
        self.segmenter.process(frame, probability)

    def on_speech_end(self, audio: np.ndarray):
        if self.muted:
            return
        if self.vad is not None:
            self.vad.reset()
        self.submit(encode_wav(audio))

    # -- submissions ----------------------------------------------------

    def submit_text(self, text: str) -> bool:
        if not text.strip():
            return False
        return self.submit(text)

    def submit(self, data: str | bytes) -> bool:
        """Send one turn and play the reply. Returns False when the exchange failed."""
        if self.player is not None:
            self.player.stop()
        self.state = State.SUBMITTING
        start = time.monotonic()

        try:
            exchange = self.client.send(data, list(self.messages), self.language)
        except AssistantError as e:
            logger.warning("Exchange failed: %s", e.message)
            if self.on_error:
                self.on_error(e.message)
            self.state = self._rest_state()
            return False

        total = round((time.monotonic() - start) * 1000)
        self.messages = [
            *self.messages,
            ChatMessage(role="user", content=exchange.transcript),
            ChatMessage(
                role="assistant",
                content=exchange.reply,
                latencies={**exchange.latencies, "total": total},
            ),
        ]
        self.input_text = exchange.transcript
        if self.on_reply:
            self.on_reply(exchange)

        if self.player is None:
            self.state = self._rest_state()
            return True

        self.state = State.PLAYING
        if not self.barge_in:
            self.segmenter.reset()
        self.player.play(exchange.audio, on_done=self._playback_done)
        return True

    def _playback_done(self):
        if self._state == State.PLAYING:
            self.state = self._rest_state()

    # -- UI toggles -----------------------------------------------------

    def toggle_mute(self) -> bool:
        self.muted = not self.muted
        if self.muted:
            self.segmenter.reset()
            if self.microphone is not None:
                self.microphone.pause()
        elif self.microphone is not None:
            self.microphone.resume()

        if self._state in (State.IDLE, State.LISTENING):
            self.state = self._rest_state()
        return self.muted

    def toggle_language(self) -> str:
        self.language = LANGUAGES[(LANGUAGES.index(self.language) + 1) % len(LANGUAGES)]
        return self.language

    def toggle_theme(self) -> str:
        self.theme = "light" if self.theme == "dark" else "dark"
        return self.theme

    def clear_input(self):
        self.input_text = ""
