#!/usr/bin/env python3
"""
OCR Engines Module - screenshot -> transcript

Supported engines:
1. EasyOCR (primary)
2. Tesseract (fallback, system install)
3. PaddleOCR (optional extra)

Features:
- one interface for all engines
- GPU support (optional)
- automatic fallback between engines
- progress callback for callers that show a progress bar
"""

import os
from typing import Callable, List, Optional, Tuple

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError

import config
from utils import log_debug, log_text

ProgressCallback = Callable[[float, str], None]


class ImageLoadError(OSError):
    """Screenshot could not be read or decoded."""


# -----------------------
# Engine Initialization Status
# -----------------------
_paddle_reader = None
_paddle_available = False
_easyocr_reader = None
_easyocr_available = False

ENGINES = ("easyocr", "tesseract", "paddle")


def _gpu_available(use_gpu: bool) -> bool:
    if not use_gpu:
        return False
    try:
        import torch
        available = torch.cuda.is_available()
    except Exception as exc:
        log_debug(f"[GPU] PyTorch/CUDA not usable, falling back to CPU: {exc}")
        return False
    if not available:
        log_debug("[GPU] requested but CUDA not available, falling back to CPU")
    return available


def init_paddle_ocr(use_gpu: bool = False, lang: str = "en") -> bool:
    """
    Create the PaddleOCR reader once.

    Returns:
        True when the reader is ready
    """
    global _paddle_reader, _paddle_available

    if _paddle_available and _paddle_reader is not None:
        return True

    try:
        from paddleocr import PaddleOCR

        _paddle_reader = PaddleOCR(lang=lang, use_angle_cls=False, device="gpu" if use_gpu else "cpu")
        _paddle_available = True
        log_debug(f"PaddleOCR initialized ({'GPU' if use_gpu else 'CPU'} mode)")
        return True
    except Exception as e:
        _paddle_available = False
        log_debug(f"PaddleOCR initialization failed: {e}")
        return False


def init_easyocr(use_gpu: bool = False, lang: Optional[List[str]] = None) -> bool:
    """
    Create the EasyOCR reader once.

    Args:
        use_gpu: try CUDA (falls back to CPU when unavailable)
        lang: language list (default: config.OCR_LANGUAGES)

    Returns:
        True when the reader is ready
    """
    global _easyocr_reader, _easyocr_available

    if _easyocr_available and _easyocr_reader is not None:
        return True

    if lang is None:
        lang = config.OCR_LANGUAGES

    gpu = _gpu_available(use_gpu)
    try:
        import easyocr

        _easyocr_reader = easyocr.Reader(
            lang,
            gpu=gpu,
            verbose=False,
            quantize=not gpu,
            cudnn_benchmark=gpu,
        )
        _easyocr_available = True
        log_debug(f"EasyOCR initialized ({'GPU' if gpu else 'CPU'} mode)")
        return True
    except Exception as e:
        _easyocr_available = False
        log_debug(f"EasyOCR initialization failed: {e}")
        return False


# -----------------------
# Image handling
# -----------------------
def load_image(source) -> np.ndarray:
    """
    Screenshot as an RGB numpy array.

    Args:
        source: file path, PIL image or numpy array
    """
    if isinstance(source, np.ndarray):
        return source
    if isinstance(source, Image.Image):
        return np.array(source.convert("RGB"))

    path = os.fspath(source)
    if not os.path.isfile(path):
        raise ImageLoadError(f"Screenshot not found: {path}")
    try:
        with Image.open(path) as img:
            return np.array(img.convert("RGB"))
    except (UnidentifiedImageError, OSError) as e:
        raise ImageLoadError(f"Cannot read screenshot {path}: {e}") from e


def preprocess(img, adaptive=True, fast_mode=False):
    """
    Grayscale + contrast for OCR.

    Args:
        img: RGB, RGBA or grayscale array
        adaptive: gentle CLAHE contrast boost
        fast_mode: only a linear contrast stretch
    """
    if img.ndim == 3 and img.shape[2] == 4:
        gray = cv2.cvtColor(img, cv2.COLOR_RGBA2GRAY)
    elif img.ndim == 3:
        gray = cv2.cvtColor(img, cv2.COLOR_RGB2GRAY)
    else:
        gray = img.copy()

    if fast_mode:
        return cv2.convertScaleAbs(gray, alpha=1.3, beta=15)

    # Bot dashboards are mostly light text on dark background; CLAHE keeps both readable
    if adaptive:
        clahe = cv2.createCLAHE(clipLimit=1.5, tileGridSize=(8, 8))
        gray = clahe.apply(gray)

    kernel_sharp = np.array([
        [0, -0.5, 0],
        [-0.5, 3, -0.5],
        [0, -0.5, 0]
    ])
    sharpened = cv2.filter2D(gray, -1, kernel_sharp)

    return cv2.convertScaleAbs(sharpened, alpha=1.2, beta=10)


def _to_rgb(img):
    if img.ndim == 2:
        return cv2.cvtColor(img, cv2.COLOR_GRAY2RGB)
    if img.shape[2] == 4:
        return cv2.cvtColor(img, cv2.COLOR_RGBA2RGB)
    return img


def group_blocks_into_lines(blocks) -> List[Tuple[str, float]]:
    """
    Merge detected text boxes into screen rows.

    EasyOCR returns one box per word group; rows are rebuilt from the box
    centers so the transcript keeps one log row per line.

    Args:
        blocks: [(bbox, text, confidence)] with bbox = four (x, y) corners
    """
    boxes = []
    for entry in blocks:
        if len(entry) != 3:
            log_debug(f"Unexpected OCR entry format: {len(entry)} values")
            continue
        bbox, text, conf = entry
        if not str(text).strip():
            continue
        ys = [pt[1] for pt in bbox]
        xs = [pt[0] for pt in bbox]
        top, bottom = min(ys), max(ys)
        boxes.append((min(xs), top, bottom, str(text).strip(), float(conf)))

    boxes.sort(key=lambda b: ((b[1] + b[2]) / 2, b[0]))

    rows = []
    for box in boxes:
        center = (box[1] + box[2]) / 2
        if rows:
            row = rows[-1]
            height = max(row["bottom"] - row["top"], 1)
            if abs(center - row["center"]) <= height / 2:
                row["boxes"].append(box)
                row["top"] = min(row["top"], box[1])
                row["bottom"] = max(row["bottom"], box[2])
                continue
        rows.append({"center": center, "top": box[1], "bottom": box[2], "boxes": [box]})

    lines = []
    for row in rows:
        ordered = sorted(row["boxes"], key=lambda b: b[0])
        text = " ".join(b[3] for b in ordered)
        conf = sum(b[4] for b in ordered) / len(ordered)
        lines.append((text, conf))
    return lines


# -----------------------
# Engines
# -----------------------
def ocr_with_easyocr(img, confidence_threshold: float = 0.3) -> List[Tuple[str, float]]:
    """
    OCR with EasyOCR.

    Returns:
        list of (line text, confidence)
    """
    if not init_easyocr(use_gpu=config.USE_GPU):
        return []

    try:
        result = _easyocr_reader.readtext(_to_rgb(img), detail=1, paragraph=False)
        confident = [entry for entry in result if len(entry) == 3 and entry[2] >= confidence_threshold]
        lines = group_blocks_into_lines(confident)
        if lines:
            avg = sum(conf for _, conf in lines) / len(lines)
            log_debug(f"EasyOCR confidence: avg={avg:.3f}, lines={len(lines)}, blocks={len(confident)}")
        return lines
    except Exception as e:
        log_debug(f"EasyOCR error: {e}")
        return []


def ocr_with_tesseract(img, whitelist: Optional[str] = None) -> List[Tuple[str, float]]:
    """
    OCR with Tesseract.

    Returns:
        one (text, 1.0) entry; Tesseract keeps the row layout itself
    """
    try:
        import pytesseract

        if config.TESS_PATH:
            pytesseract.pytesseract.tesseract_cmd = config.TESS_PATH

        pil = Image.fromarray(img) if isinstance(img, np.ndarray) else img

        # PSM 6 = uniform block of text (one log row per line)
        tess_config = "--psm 6"
        if whitelist:
            tess_config += f' -c tessedit_char_whitelist="{whitelist}"'

        text = pytesseract.image_to_string(pil, config=tess_config)
        if text.strip():
            return [(text.strip(), 1.0)]
        return []
    except Exception as e:
        log_debug(f"Tesseract error: {e}")
        return []


def ocr_with_paddle(img, confidence_threshold: float = 0.5) -> List[Tuple[str, float]]:
    """OCR with PaddleOCR; boxes are regrouped into rows like EasyOCR output."""
    if not init_paddle_ocr(use_gpu=config.USE_GPU):
        return []

    try:
        result = _paddle_reader.ocr(_to_rgb(img))
        if not result or not result[0]:
            return []

        # Format: [[bbox, (text, confidence)], ...]
        blocks = []
        for line in result[0]:
            if len(line) != 2:
                continue
            bbox, (text, conf) = line
            if conf >= confidence_threshold:
                blocks.append((bbox, text, conf))
        return group_blocks_into_lines(blocks)
    except Exception as e:
        log_debug(f"PaddleOCR error: {e}")
        return []


def engine_order(engine: str = "easyocr", fallback_enabled: bool = True) -> List[str]:
    """Engines to try, primary first."""
    engine = (engine or "").lower()
    if engine not in ENGINES:
        engine = "easyocr"
    if not fallback_enabled:
        return [engine]
    return [engine] + [e for e in ENGINES if e != engine]


def ocr_auto(img,
             engine: str = "easyocr",
             fallback_enabled: bool = True,
             confidence_threshold: float = 0.3,
             tesseract_whitelist: Optional[str] = None) -> str:
    """
    OCR with multi-engine fallback.

    Returns:
        text of the first engine that recognized something, one row per line
    """
    for eng in engine_order(engine, fallback_enabled):
        if eng == "easyocr":
            result = ocr_with_easyocr(img, confidence_threshold)
        elif eng == "tesseract":
            result = ocr_with_tesseract(img, tesseract_whitelist)
        else:
            result = ocr_with_paddle(img, max(confidence_threshold, 0.5))

        if result:
            log_debug(f"OCR engine used: {eng} ({len(result)} lines)")
            return "\n".join(line[0] for line in result)

    return ""


def get_engine_info() -> dict:
    return {
        "easyocr": {
            "available": _easyocr_available,
            "initialized": _easyocr_reader is not None
        },
        "paddle": {
            "available": _paddle_available,
            "initialized": _paddle_reader is not None
        },
        "tesseract": {
            "available": True,
            "initialized": True
        }
    }


def _report(progress: Optional[ProgressCallback], fraction: float, status: str):
    if progress is not None:
        progress(fraction, status)


def extract_text(source, method: str = "auto", progress: Optional[ProgressCallback] = None,
                 fast_mode: bool = False) -> str:
    """
    Screenshot -> OCR transcript.

    Args:
        source: file path, PIL image or numpy array
        method: 'auto' (config.OCR_ENGINE), 'easyocr', 'tesseract' or 'paddle'
        progress: called with (fraction 0..1, status text)
        fast_mode: skip CLAHE/sharpening

    Returns:
        transcript ('' when no engine recognized anything)

    Raises:
        ImageLoadError: file missing or not an image
    """
    _report(progress, 0.0, "loading image")
    img = load_image(source)

    _report(progress, 0.2, "preprocessing")
    processed = preprocess(img, fast_mode=fast_mode)

    engine = config.OCR_ENGINE if method in (None, "", "auto") else method
    _report(progress, 0.4, "recognizing text")
    text = ocr_auto(
        processed,
        engine=engine,
        fallback_enabled=config.OCR_FALLBACK_ENABLED,
        confidence_threshold=config.OCR_CONFIDENCE_THRESHOLD,
        tesseract_whitelist=config.TESSERACT_WHITELIST,
    )

    if text:
        log_text(text)
        log_debug(f"OCR complete: engine={engine}, length={len(text)}")
    else:
        log_debug("OCR returned empty result (all engines failed)")

    _report(progress, 1.0, "done")
    return text
