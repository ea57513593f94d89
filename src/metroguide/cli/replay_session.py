"""CLI for replaying recorded guidance sessions."""

import argparse
import json
from pathlib import Path
from typing import Iterator, List

import numpy as np
import pandas as pd
from tqdm import tqdm

from metroguide.config import ProjectConfig
from metroguide.pipelines import GuidanceSession
from metroguide.speech import LoggingSpeechSink
from metroguide.types import Box, Detection
from metroguide.utils.logging_config import set_verbosity, setup_logger

logger = setup_logger(__name__)

EVENT_TYPES = ("frame", "utterance", "partial", "error", "speech_done")


class ScriptedOcr:
    """OCR collaborator returning the text attached to the latest frame event."""

    def __init__(self):
        self.text = ""

    def read_text(self, image) -> str:
        return self.text


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for replay."""
    parser = argparse.ArgumentParser(
        description="Replay a JSON-lines event script through a guidance session",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Event lines:
  {"type": "utterance", "alternatives": ["estoy en franklin"]}
  {"type": "frame", "width": 640, "height": 640, "ocr_text": "direccion a los leones",
   "detections": [{"label": "door", "confidence": 0.9, "box": [20, 100, 80, 400]}]}
  {"type": "speech_done"}

Examples:
  python -m metroguide.cli.replay_session --events session.jsonl
  python -m metroguide.cli.replay_session --events session.jsonl --output spoken.csv
        """,
    )

    parser.add_argument(
        "--events",
        type=Path,
        required=True,
        help="Path to JSON-lines event script",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to guidance config YAML (default: environment variables)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Path to save spoken phrases as CSV (optional)",
    )
    parser.add_argument(
        "--step",
        type=float,
        default=0.5,
        help="Simulated seconds between events (default: 0.5)",
    )
    parser.add_argument(
        "--manual-speech-done",
        action="store_true",
        help="Only finish phrases on speech_done events in the script",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        help="Also write the session log to this file (optional)",
    )

    return parser


def load_events(path: Path) -> Iterator[dict]:
    """Parse one event per non-blank line; malformed lines are skipped."""
    with open(path, encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            try:
                event = json.loads(line)
            except json.JSONDecodeError as e:
                logger.warning(f"Line {line_no}: invalid JSON ({e})")
                continue
            if event.get("type") not in EVENT_TYPES:
                logger.warning(f"Line {line_no}: unknown event type {event.get('type')!r}")
                continue
            yield event


def parse_detections(records: List[dict]) -> List[Detection]:
    detections = []
    for record in records or []:
        left, top, right, bottom = record["box"]
        detections.append(Detection(
            label=str(record["label"]),
            confidence=float(record.get("confidence", 1.0)),
            box=Box(left, top, right, bottom),
        ))
    return detections


class ReplayClock:
    """Simulated monotonic clock advanced by the replay loop."""

    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def replay(
    events: List[dict],
    config: ProjectConfig,
    step_s: float = 0.5,
    auto_complete: bool = True,
) -> GuidanceSession:
    """
    Feed events through a session on the calling thread.

    With ``auto_complete`` every phrase finishes as soon as it is spoken;
    otherwise the script must contain speech_done events.

    Returns:
        The session, for inspecting spoken history and final state
    """
    clock = ReplayClock()
    ocr = ScriptedOcr()
    sink = LoggingSpeechSink()
    session = GuidanceSession(
        config,
        tts_sink=sink,
        ocr_reader=ocr,
        clock=clock,
        ocr_in_background=False,
    )
    if auto_complete:
        sink.on_done = session.notify_speech_done

    for frame_id, event in enumerate(tqdm(events, desc="Replaying", unit="event")):
        clock.now += step_s
        kind = event["type"]
        if kind == "frame":
            width = int(event.get("width", config.perception.model_input_size))
            height = int(event.get("height", config.perception.model_input_size))
            ocr.text = event.get("ocr_text", "")
            frame = np.zeros((height, width, 3), dtype=np.uint8)
            session.submit_frame(
                parse_detections(event.get("detections")),
                width,
                height,
                frame=frame,
                frame_id=event.get("frame_id", frame_id),
            )
        elif kind == "utterance":
            session.submit_utterance(event.get("alternatives", []), event.get("confidences"))
        elif kind == "partial":
            session.submit_partial(event.get("text", ""))
        elif kind == "error":
            session.submit_recognition_error(event.get("code"))
        elif kind == "speech_done":
            session.notify_speech_done(event.get("utterance_id"))
        session.process_pending()

    return session


def main():
    """Main replay entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if args.log_file:
        setup_logger(__name__, log_file=args.log_file)

    logger.info("=" * 80)
    logger.info("MetroGuide Session Replay")
    logger.info("=" * 80)

    if not args.events.exists():
        logger.error(f"Event script not found: {args.events}")
        raise FileNotFoundError(f"Events not found: {args.events}")

    config = ProjectConfig.from_yaml(args.config) if args.config else ProjectConfig.from_env()
    set_verbosity(config.debug)
    events = list(load_events(args.events))
    logger.info(f"Events: {len(events)} from {args.events}")

    session = replay(events, config, step_s=args.step, auto_complete=not args.manual_speech_done)

    snapshot = session.snapshot()
    logger.info(f"Origin: {snapshot.origin}, destination: {snapshot.destination}, stage: {snapshot.stage.value}")
    logger.info(f"Spoken phrases: {len(session.arbiter.history)}")

    if args.output:
        df = pd.DataFrame([
            {
                "timestamp": a.timestamp,
                "kind": a.kind.value,
                "key": a.key,
                "phrase": a.phrase,
            }
            for a in session.arbiter.history
        ])
        args.output.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(args.output, index=False)
        logger.info(f"✅ Spoken log saved to: {args.output}")


if __name__ == "__main__":
    main()
