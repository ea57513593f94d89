"""
Signage Validator - checks platform signs against the expected terminal.

When origin and destination are known, the largest sign detections are
cropped and read with OCR. A sign reading "direction to <terminal>" that names
the terminal the rider must head toward yields a turn instruction. When no
sign names it, the rider gets a corrective warning instead.

A pass is split in three so OCR can run off the consumer thread:

    job = validator.begin(results, frame, origin, destination)   # consumer
    report = validator.run_ocr(job, reader)                      # worker
    outcome = validator.complete(job, report)                    # consumer
"""

import logging
import re
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

import numpy as np

from ..config import SignageConfig
from ..navigation import RouteDirectionResolver, StationNotFoundError
from ..types import GuidanceResult, NavInstruction, NavType
from ..utils.text import normalize_text
from .cropping import crop_model_box
from .turn_inference import (
    format_nav_phrase,
    infer_by_geometry,
    override_with_text,
    wrong_direction_phrase,
)

logger = logging.getLogger(__name__)

DIRECTION_PATTERN = re.compile(r"\b(?:direction to|direccion a|direccion hacia) (.+)$")

WRONG_DIRECTION_KEY = "nav:WRONG_DIRECTION"


def read_direction(text: str) -> Optional[str]:
    """Normalized name following "direction to" in a sign text, if any."""
    match = DIRECTION_PATTERN.search(normalize_text(text))
    return match.group(1).strip() if match else None


def names_terminal(sign_name: str, terminal: str) -> bool:
    """Sign name is the terminal, possibly followed by more words (platform, line...)."""
    expected = normalize_text(terminal)
    return sign_name == expected or sign_name.startswith(expected + " ")


@dataclass
class SignCandidate:
    """A sign detection and its crop from the full-resolution frame."""
    result: GuidanceResult
    crop: Optional[np.ndarray]


@dataclass
class SignageJob:
    """One claimed OCR pass."""
    origin: str
    destination: str
    expected_terminal: str
    candidates: List[SignCandidate]
    started_at: float


@dataclass
class OcrReport:
    """Worker-side OCR findings for a job."""
    matched: Optional[SignCandidate] = None
    matched_text: str = ""
    texts: List[str] = field(default_factory=list)
    other_directions: List[str] = field(default_factory=list)
    ocr_calls: int = 0


@dataclass(frozen=True)
class SignageOutcome:
    """What the pass wants announced."""
    phrase: Optional[str]
    instruction: Optional[NavInstruction]
    matched: bool
    cooldown_key: Optional[str] = None


class SignageValidator:
    """
    Throttled, single-flight signage OCR validation.

    At most one pass per ``interval_s`` and never two at once; calls that
    arrive while a pass is running are dropped, not queued.
    """

    def __init__(
        self,
        resolver: RouteDirectionResolver,
        config: Optional[SignageConfig] = None,
        model_input_size: int = 640,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.resolver = resolver
        self.config = config or SignageConfig()
        self.model_input_size = model_input_size
        self.clock = clock
        self.signage_labels = {label.lower() for label in self.config.signage_labels}

        self.busy = False
        self.last_run: Optional[float] = None
        self.last_nav: Optional[NavType] = None

    def select_signs(self, results: Sequence[GuidanceResult]) -> List[GuidanceResult]:
        """Largest-area signage detections, at most ``max_signs``."""
        signs = [r for r in results if r.label.lower() in self.signage_labels]
        signs.sort(key=lambda r: r.box.area, reverse=True)
        return signs[: self.config.max_signs]

    def begin(
        self,
        results: Sequence[GuidanceResult],
        frame: Optional[np.ndarray],
        origin: Optional[str],
        destination: Optional[str],
    ) -> Optional[SignageJob]:
        """
        Claim an OCR pass if one is due.

        Returns:
            A SignageJob (validator is now busy), or None when the pass is not
            due, a pass is in flight, or there is nothing to read
        """
        if not origin or not destination or frame is None:
            return None
        if self.busy:
            return None
        now = self.clock()
        if self.last_run is not None and now - self.last_run < self.config.interval_s:
            return None

        signs = self.select_signs(results)
        if not signs:
            return None

        try:
            terminal = self.resolver.expected_terminal(origin, destination)
        except StationNotFoundError as e:
            logger.debug(f"Skipping signage check: {e}")
            return None
        if terminal is None:
            return None

        candidates = [
            SignCandidate(result=s, crop=crop_model_box(frame, s.box, self.model_input_size))
            for s in signs
        ]
        self.busy = True
        self.last_run = now
        return SignageJob(
            origin=origin,
            destination=destination,
            expected_terminal=terminal,
            candidates=candidates,
            started_at=now,
        )

    @staticmethod
    def run_ocr(job: SignageJob, reader) -> OcrReport:
        """
        Read the job's crops until one names the expected terminal.

        Safe to call from a worker thread: touches only the job. Reader
        failures count as empty text.

        Args:
            job: Claimed pass from ``begin``
            reader: Object with ``read_text(image) -> str``, or such a callable
        """
        read_text = getattr(reader, "read_text", reader)
        report = OcrReport()
        for candidate in job.candidates:
            if candidate.crop is None:
                continue
            report.ocr_calls += 1
            try:
                raw = read_text(candidate.crop) or ""
            except Exception as e:
                logger.warning(f"OCR failed on {candidate.result.label}: {e}")
                raw = ""
            if not raw.strip():
                continue
            report.texts.append(raw)

            sign_name = read_direction(raw)
            if sign_name is None:
                continue
            if names_terminal(sign_name, job.expected_terminal):
                report.matched = candidate
                report.matched_text = raw
                break
            report.other_directions.append(sign_name)
        return report

    def complete(self, job: SignageJob, report: Optional[OcrReport]) -> SignageOutcome:
        """
        Turn OCR findings into an announcement and release the busy flag.

        A matched sign is announced only when its instruction type differs
        from the last announced one. A pass where no sign names the expected
        terminal warns the rider to head toward it; ``None`` (a failed pass)
        yields nothing. Call ``record_announced`` once the phrase was
        actually spoken.
        """
        self.busy = False
        if report is None:
            return SignageOutcome(phrase=None, instruction=None, matched=False)

        if report.matched is not None:
            sign = report.matched.result
            nav = infer_by_geometry(
                sign.box,
                self.model_input_size,
                self.config.turn_threshold,
                self.config.hysteresis,
            )
            nav = override_with_text(report.matched_text, nav)
            if nav.type is self.last_nav:
                return SignageOutcome(phrase=None, instruction=nav, matched=True)
            return SignageOutcome(
                phrase=format_nav_phrase(nav, sign.distance),
                instruction=nav,
                matched=True,
                cooldown_key=f"nav:{nav.type.name}",
            )

        logger.info(
            f"No sign names {job.expected_terminal}, read {report.other_directions or report.texts}"
        )
        return SignageOutcome(
            phrase=wrong_direction_phrase(job.expected_terminal),
            instruction=None,
            matched=False,
            cooldown_key=WRONG_DIRECTION_KEY,
        )

    def record_announced(self, outcome: SignageOutcome):
        """Remember what was spoken so the same instruction is not repeated."""
        if outcome.instruction is not None:
            self.last_nav = outcome.instruction.type
        elif outcome.cooldown_key == WRONG_DIRECTION_KEY:
            self.last_nav = None

    def validate(
        self,
        results: Sequence[GuidanceResult],
        frame: Optional[np.ndarray],
        origin: Optional[str],
        destination: Optional[str],
        reader,
    ) -> Optional[SignageOutcome]:
        """Run a whole pass inline (begin, OCR, complete)."""
        job = self.begin(results, frame, origin, destination)
        if job is None:
            return None
        report = None
        try:
            report = self.run_ocr(job, reader)
        finally:
            outcome = self.complete(job, report)
        return outcome

    def reset(self):
        self.busy = False
        self.last_run = None
        self.last_nav = None
