"""QR payload reading from receipt photos using OpenCV."""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class QRImageReader:
    """Decode the fiscal QR code printed on a photographed receipt."""

    # Upscale factors tried when the code is too small to be found as is
    SCALES: tuple[float, ...] = (1.0, 2.0)

    def read(self, image_path: str | Path) -> str:
        """Return the payload of the first QR code found in the image.

        Raises:
            ImportError: If OpenCV is not installed.
            FileNotFoundError: If the image does not exist.
            RuntimeError: If the image can't be read or holds no QR code.
        """
        try:
            import cv2
        except ImportError:
            raise ImportError(
                "opencv-python is required: pip install 'expendita[qr]'"
            ) from None

        path = Path(image_path)
        if not path.exists():
            raise FileNotFoundError(f"Image not found: {path}")

        image = cv2.imread(str(path))
        if image is None:
            raise RuntimeError(f"Could not read image: {path}")

        detector = cv2.QRCodeDetector()
        gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        for scale in self.SCALES:
            candidate = gray
            if scale != 1.0:
                candidate = cv2.resize(
                    gray, None, fx=scale, fy=scale, interpolation=cv2.INTER_CUBIC
                )
            text, _points, _ = detector.detectAndDecode(candidate)
            if text:
                logger.debug("Decoded QR code from %s at scale %.1f", path, scale)
                return text

        raise RuntimeError(f"No QR code found in {path}")
