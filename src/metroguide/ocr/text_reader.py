"""
Text reader for platform sign crops, backed by EasyOCR.

Crops are enhanced with OpenCV before recognition. ``read_text`` is the
collaborator interface used by signage validation and never raises.
"""

import logging
from typing import List, Sequence, Tuple

import cv2
import easyocr
import numpy as np
import torch

logger = logging.getLogger(__name__)


class TextReader:
    """
    EasyOCR-based reader for metro signage.

    Signs are in Spanish with occasional English, so both languages are
    loaded by default.
    """

    def __init__(
        self,
        languages: Sequence[str] = ('es', 'en'),
        use_gpu: bool = True,
        min_confidence: float = 0.3,
        min_crop_size: int = 20,
    ):
        """
        Initialize the EasyOCR reader.

        Args:
            languages: EasyOCR language codes
            use_gpu: Use CUDA when torch reports it available
            min_confidence: Drop recognized fragments below this score
            min_crop_size: Crops smaller than this on either side are skipped
        """
        gpu_flag = use_gpu and torch.cuda.is_available()
        self.reader = easyocr.Reader(list(languages), gpu=gpu_flag)
        self.min_confidence = min_confidence
        self.min_crop_size = min_crop_size
        logger.info(f"EasyOCR initialized (languages={list(languages)}, gpu={gpu_flag})")

    def extract_text(self, crop: np.ndarray) -> Tuple[str, float]:
        """
        Extract text from a sign crop.

        Args:
            crop: Image crop (BGR or grayscale numpy array)

        Returns:
            (text, confidence): joined fragments and their mean score,
            ("", 0.0) if nothing was read
        """
        if crop is None or crop.size == 0:
            return "", 0.0
        if crop.shape[0] < self.min_crop_size or crop.shape[1] < self.min_crop_size:
            logger.debug(f"Crop too small for OCR: {crop.shape}")
            return "", 0.0

        enhanced = self._preprocess(crop)
        result = self.reader.readtext(enhanced, detail=1, paragraph=False)
        if not result:
            return "", 0.0

        texts: List[str] = []
        confidences: List[float] = []
        for _, text, score in result:
            text_clean = str(text).strip()
            if score >= self.min_confidence and text_clean:
                texts.append(text_clean)
                confidences.append(float(score))
        if not texts:
            return "", 0.0

        full_text = " ".join(texts)
        avg_conf = float(np.mean(confidences))
        logger.debug(f"OCR: \"{full_text}\" (conf: {avg_conf:.2f})")
        return full_text, avg_conf

    def read_text(self, image: np.ndarray) -> str:
        """Recognized text, or "" on any failure."""
        try:
            text, _ = self.extract_text(image)
        except Exception as e:
            logger.error(f"OCR extraction failed: {e}")
            return ""
        return text

    def __call__(self, image: np.ndarray) -> str:
        return self.read_text(image)

    @staticmethod
    def _preprocess(crop: np.ndarray) -> np.ndarray:
        """
        Enhance a crop for OCR.

        Upscales small crops, boosts contrast with CLAHE on the luminance
        channel and sharpens text edges.
        """
        if len(crop.shape) == 2:
            crop = cv2.cvtColor(crop, cv2.COLOR_GRAY2BGR)

        h, w = crop.shape[:2]
        if h < 64 or w < 64:
            scale = max(2, 64 // min(h, w))
            crop = cv2.resize(crop, (w * scale, h * scale), interpolation=cv2.INTER_CUBIC)

        lab = cv2.cvtColor(crop, cv2.COLOR_BGR2LAB)
        l, a, b = cv2.split(lab)
        clahe = cv2.createCLAHE(clipLimit=3.0, tileGridSize=(8, 8))
        enhanced = cv2.cvtColor(cv2.merge([clahe.apply(l), a, b]), cv2.COLOR_LAB2BGR)

        kernel = np.array([[-1, -1, -1], [-1, 9, -1], [-1, -1, -1]], dtype=np.float32)
        return cv2.filter2D(enhanced, -1, kernel)
