"""Image preprocessing utilities for curve-digitizer.

This module provides a convenience class :class:`ImagePreprocessor`
that turns a decoded raster into the binary edge map consumed by axis
calibration and curve extraction.
"""

from __future__ import annotations

import asyncio
import logging

import cv2
import numpy as np

from .detector_config import InvalidImageError


logger = logging.getLogger(__name__)


class ImagePreprocessor:
    """Utility class for image preprocessing operations.

    All methods are implemented as instance methods so the blur size and
    binarization threshold can be configured per instance.
    """

    def __init__(
        self,
        threshold: int = 128,
        blur_ksize: tuple[int, int] = (5, 5),
        invert: bool = True,
    ) -> None:
        self.threshold = threshold
        self.blur_ksize = blur_ksize
        self.invert = invert

    def load_image(self, image_path: str) -> np.ndarray:
        """Load an image from disk and convert it to RGBA.

        Parameters
        ----------
        image_path:
            Path to the input image file.

        Returns
        -------
        np.ndarray
            Image array in RGBA format with shape (H, W, 4).

        Raises
        ------
        InvalidImageError
            If the image cannot be decoded (missing, unreadable or not an image).
        """
        image_bgr = cv2.imread(str(image_path), cv2.IMREAD_COLOR)
        if image_bgr is None:
            raise InvalidImageError(f"Could not decode image: {image_path}", stage="decode")
        return cv2.cvtColor(image_bgr, cv2.COLOR_BGR2RGBA)

    async def load_image_async(self, image_path: str) -> np.ndarray:
        """Decode an image off the event loop.

        Digitization must not start before this coroutine completes.
        """
        return await asyncio.to_thread(self.load_image, image_path)

    def from_rgba_buffer(self, width: int, height: int, buffer: bytes) -> np.ndarray:
        """Wrap a raw RGBA byte buffer (canvas pixel data) as an image array.

        Raises
        ------
        InvalidImageError
            If the dimensions are not positive or the buffer size does not match.
        """
        if width <= 0 or height <= 0:
            raise InvalidImageError(
                f"Image has zero width or height: {width}x{height}", stage="decode"
            )
        expected = width * height * 4
        if len(buffer) != expected:
            raise InvalidImageError(
                f"RGBA buffer has {len(buffer)} bytes, expected {expected} "
                f"for {width}x{height}",
                stage="decode",
            )
        return np.frombuffer(buffer, dtype=np.uint8).reshape(height, width, 4).copy()

    def validate_image(self, image) -> None:
        """Validate that image is suitable for processing.

        Raises
        ------
        InvalidImageError
            If image is None, not an array, has an unsupported shape, or has
            zero width or height.
        """
        if image is None:
            raise InvalidImageError("Image is None")

        if not isinstance(image, np.ndarray):
            raise InvalidImageError(f"Image must be numpy array, got {type(image)}")

        if image.ndim not in (2, 3) or (image.ndim == 3 and image.shape[2] not in (1, 3, 4)):
            raise InvalidImageError(
                f"Image must be grayscale, RGB or RGBA, got shape {image.shape}"
            )

        if image.shape[0] == 0 or image.shape[1] == 0:
            raise InvalidImageError(
                f"Image has zero width or height: shape {image.shape}"
            )

    def to_grayscale(self, image: np.ndarray) -> np.ndarray:
        """Convert an RGBA, RGB or single-channel image to one intensity channel."""
        if image.ndim == 2:
            gray = image
        elif image.shape[2] == 4:
            gray = cv2.cvtColor(image, cv2.COLOR_RGBA2GRAY)
        elif image.shape[2] == 3:
            gray = cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)
        else:
            gray = image[:, :, 0]

        if gray.dtype != np.uint8:
            gray = np.clip(gray, 0, 255).astype(np.uint8)
        return gray

    def remove_noise(self, image: np.ndarray) -> np.ndarray:
        """Apply a fixed-radius Gaussian blur to suppress sensor/compression noise."""
        return cv2.GaussianBlur(image, ksize=self.blur_ksize, sigmaX=0)

    def binarize(self, gray: np.ndarray) -> np.ndarray:
        """Binarize a grayscale image at the configured intensity threshold.

        With ``invert`` enabled (the default) dark ink becomes foreground (255)
        and light paper becomes background (0), which is the polarity the
        line and contour detectors expect.
        """
        mode = cv2.THRESH_BINARY_INV if self.invert else cv2.THRESH_BINARY
        _, binary = cv2.threshold(gray, self.threshold, 255, mode)
        return binary

    def preprocess(self, image: np.ndarray) -> np.ndarray:
        """Full preprocessing: grayscale -> denoise -> binarize.

        Parameters
        ----------
        image:
            Decoded raster (RGBA, RGB or grayscale).

        Returns
        -------
        np.ndarray
            Binary edge map (uint8, values 0 or 255) with shape (H, W).

        Raises
        ------
        InvalidImageError
            If the image is invalid or has zero width or height.
        """
        self.validate_image(image)

        gray = self.to_grayscale(image)
        denoised = self.remove_noise(gray)
        binary = self.binarize(denoised)

        logger.debug(
            f"Preprocessed {image.shape[1]}x{image.shape[0]} image, "
            f"threshold={self.threshold}, foreground pixels={int(np.count_nonzero(binary))}"
        )
        return binary

    def detect_edges(self, image: np.ndarray, threshold1: int = 50, threshold2: int = 150) -> np.ndarray:
        """Detect edges using Canny edge detection (debug output only).

        Parameters
        ----------
        image:
            Input image (RGBA, RGB or grayscale).
        threshold1:
            First threshold for the hysteresis procedure.
        threshold2:
            Second threshold for the hysteresis procedure.

        Returns
        -------
        np.ndarray
            Edge map as a single channel binary image.
        """
        self.validate_image(image)
        gray = self.to_grayscale(image)
        return cv2.Canny(gray, threshold1=threshold1, threshold2=threshold2)

    def normalize_size(self, image: np.ndarray, max_size: int = 2048) -> np.ndarray:
        """Resize image to a maximum dimension while preserving aspect ratio.

        Uses INTER_AREA interpolation for downscaling.

        Parameters
        ----------
        image:
            Input image.
        max_size:
            Maximum dimension (width or height). If image is smaller, no resize.

        Returns
        -------
        np.ndarray
            Resized image with same number of channels, or original if already smaller.
        """
        h, w = image.shape[:2]
        if max(h, w) <= max_size:
            return image

        scale = max_size / max(h, w)
        new_w, new_h = int(w * scale), int(h * scale)
        return cv2.resize(image, (new_w, new_h), interpolation=cv2.INTER_AREA)
