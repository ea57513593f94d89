"""CLI for live guidance over a video file or camera."""

import argparse
import time
from pathlib import Path

import cv2
from tqdm import tqdm
from ultralytics import YOLO

from metroguide.config import ProjectConfig
from metroguide.ocr import TextReader
from metroguide.perception import detections_from_yolo
from metroguide.pipelines import GuidanceSession
from metroguide.signage import model_view
from metroguide.speech import LoggingSpeechSink
from metroguide.utils.logging_config import set_verbosity, setup_logger

logger = setup_logger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for video guidance."""
    parser = argparse.ArgumentParser(
        description="Run metro guidance (YOLO + signage OCR) on a video or camera",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m metroguide.cli.infer_video --video platform.mp4 --model weights/best.pt
  python -m metroguide.cli.infer_video --camera 0 --origin franklin --destination "los leones"
        """,
    )

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--video",
        type=Path,
        help="Path to input video file",
    )
    source.add_argument(
        "--camera",
        type=int,
        help="Camera index for live capture",
    )
    parser.add_argument(
        "--model",
        type=Path,
        default="weights/best.pt",
        help="Path to YOLO model weights (default: weights/best.pt)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to guidance config YAML (default: environment variables)",
    )
    parser.add_argument(
        "--conf",
        type=float,
        default=0.30,
        help="Detector confidence threshold (default: 0.30)",
    )
    parser.add_argument(
        "--device",
        type=str,
        default="cuda",
        help="Device to run on: cuda or cpu (default: cuda)",
    )
    parser.add_argument(
        "--skip-frames",
        type=int,
        default=1,
        help="Process every Nth frame (default: 1)",
    )
    parser.add_argument(
        "--origin",
        type=str,
        help="Station the rider is at (enables signage validation)",
    )
    parser.add_argument(
        "--destination",
        type=str,
        help="Station the rider is heading to",
    )
    parser.add_argument(
        "--target",
        type=str,
        help="Only announce this object label",
    )
    parser.add_argument(
        "--no-ocr",
        action="store_true",
        help="Disable signage OCR",
    )

    return parser


def main():
    """Main video guidance entry point."""
    parser = create_parser()
    args = parser.parse_args()

    logger.info("=" * 80)
    logger.info("MetroGuide Video Guidance")
    logger.info("=" * 80)

    if args.video is not None and not args.video.exists():
        logger.error(f"Video file not found: {args.video}")
        raise FileNotFoundError(f"Video not found: {args.video}")
    if not args.model.exists():
        logger.error(f"Model file not found: {args.model}")
        raise FileNotFoundError(f"Model not found: {args.model}")

    config = ProjectConfig.from_yaml(args.config) if args.config else ProjectConfig.from_env()
    set_verbosity(config.debug)
    model_size = config.perception.model_input_size

    logger.info(f"Model: {args.model}")
    logger.info(f"Device: {args.device}")
    logger.info(f"Route: {args.origin or '?'} -> {args.destination or '?'}")

    model = YOLO(str(args.model))
    reader = None if args.no_ocr else TextReader(use_gpu=args.device.startswith("cuda"))

    sink = LoggingSpeechSink()
    session = GuidanceSession(config, tts_sink=sink, ocr_reader=reader)
    sink.on_done = session.notify_speech_done
    if args.origin:
        session.post(lambda: session.dialogue.set_origin(args.origin))
    if args.destination:
        session.post(lambda: session.dialogue.set_destination(args.destination))
    if args.target:
        session.engine.target_label = args.target

    source = str(args.video) if args.video is not None else args.camera
    cap = cv2.VideoCapture(source)
    if not cap.isOpened():
        raise RuntimeError(f"Failed to open source: {source}")

    total_frames = int(cap.get(cv2.CAP_PROP_FRAME_COUNT)) if args.video is not None else None
    frame_idx = 0
    start = time.time()
    session.start()
    try:
        with tqdm(total=total_frames, desc="Guiding", unit="frame") as pbar:
            while True:
                ret, frame = cap.read()
                if not ret:
                    break
                if frame_idx % args.skip_frames == 0:
                    view = model_view(frame, model_size)
                    results = model(view, conf=args.conf, device=args.device, verbose=False)[0]
                    detections = detections_from_yolo(results, model_size, min_confidence=args.conf)
                    session.submit_frame(detections, model_size, model_size, frame=frame, frame_id=frame_idx)
                frame_idx += 1
                pbar.update(1)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        cap.release()
        session.stop()

    elapsed = max(time.time() - start, 1e-6)
    logger.info(f"✅ Processed {frame_idx} frames in {elapsed:.1f}s ({frame_idx / elapsed:.1f} fps)")
    logger.info(f"Spoken phrases: {len(session.arbiter.history)}")
    for announcement in session.arbiter.history:
        logger.info(f"  [{announcement.kind.value}] {announcement.phrase}")


if __name__ == "__main__":
    main()
