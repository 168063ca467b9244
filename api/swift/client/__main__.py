"""Swift voice client.

Usage:
    python -m swift.client                          # Talk: listen, answer, repeat
    python -m swift.client --text "Hello"           # One typed turn
    python -m swift.client --test-tts -o test.mp3   # Fetch the TTS test phrase
"""

import argparse
import logging
import sys
import time

from swift.client.api import AssistantClient, AssistantError

logger = logging.getLogger("swift.client")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Swift voice assistant client")
    parser.add_argument("--url", default="http://localhost:8000", help="Server base URL")
    parser.add_argument("--language", choices=["en", "el"], default="en")
    parser.add_argument("--text", help="Send one typed turn instead of listening")
    parser.add_argument("--test-tts", action="store_true", help="Fetch the TTS test phrase")
    parser.add_argument("-o", "--output", help="Write reply audio to this file")
    parser.add_argument("--no-play", action="store_true", help="Do not play reply audio")
    parser.add_argument(
        "--barge-in",
        action="store_true",
        help="Keep listening while the reply plays (use with a headset)",
    )
    parser.add_argument("--log-level", default="info")
    return parser.parse_args(argv)


def _print_latencies(latencies):
    if not latencies:
        return
    print(f"Transcription: {latencies.get('transcription')}ms")
    print(f"Text Completion: {latencies.get('textCompletion')}ms")
    print(f"Speech Synthesis: {latencies.get('speechSynthesis')}ms")
    if "total" in latencies:
        print(f"Total Latency: {latencies['total']}ms")


def _output(audio: bytes, args):
    if args.output:
        with open(args.output, "wb") as f:
            f.write(audio)
        print(f"Audio written to {args.output}")
    if not args.no_play:
        from swift.client.audio import Player

        done = []
        Player().play(audio, on_done=lambda: done.append(True))
        while not done:
            time.sleep(0.05)


def run_once(args) -> int:
    from swift.client.controller import VoiceController

    client = AssistantClient(args.url)
    replies = []
    controller = VoiceController(
        client,
        language=args.language,
        on_reply=replies.append,
        on_error=lambda msg: print(f"Error: {msg}", file=sys.stderr),
        barge_in=args.barge_in,
    )
    try:
        if not controller.submit_text(args.text):
            return 1
    finally:
        client.close()

    user, assistant = controller.messages[-2:]
    print(f"You: {user.content}")
    print(f"Assistant: {assistant.content}")
    _print_latencies(assistant.latencies)
    _output(replies[-1].audio, args)
    return 0


def run_test_tts(args) -> int:
    client = AssistantClient(args.url)
    try:
        audio = client.test_tts()
    except AssistantError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    finally:
        client.close()
    _output(audio, args)
    return 0


def run_live(args) -> int:
    from swift.client.audio import Microphone, Player
    from swift.client.controller import VoiceController
    from swift.client.vad import load_vad

    client = AssistantClient(args.url)

    def on_reply(exchange):
        print(f"You: {exchange.transcript}")
        print(f"Assistant: {exchange.reply}")

    controller = VoiceController(
        client,
        vad=load_vad(),
        microphone=Microphone(),
        player=None if args.no_play else Player(),
        language=args.language,
        on_reply=on_reply,
        on_error=lambda msg: print(f"Error: {msg}", file=sys.stderr),
        barge_in=args.barge_in,
    )
    controller.start()
    print("Start talking to chat. Ctrl-C to quit.")
    try:
        while True:
            time.sleep(0.5)
    except KeyboardInterrupt:
        pass
    finally:
        controller.stop()
        client.close()
    _print_latencies(controller.last_latencies)
    return 0


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)

    if args.test_tts:
        return run_test_tts(args)
    if args.text is not None:
        return run_once(args)
    return run_live(args)


if __name__ == "__main__":
    sys.exit(main())
