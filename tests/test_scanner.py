"""Tests for QR image reading (mocked OpenCV)."""

import sys
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from expendita.scanner import QRImageReader

IPS_PAYLOAD = "K:PR|V:01|C:1|N:JKP INFOSTAN TEHNOLOGIJE|I:RSD4142,74"


@pytest.fixture
def mock_cv2():
    """Inject a mock cv2 module into sys.modules."""
    mock = MagicMock()
    mock.imread.return_value = np.zeros((480, 640, 3), dtype=np.uint8)
    mock.cvtColor.return_value = np.zeros((480, 640), dtype=np.uint8)
    mock.resize.return_value = np.zeros((960, 1280), dtype=np.uint8)
    with patch.dict(sys.modules, {"cv2": mock}):
        yield mock


@pytest.fixture
def image(tmp_path):
    path = tmp_path / "receipt.jpg"
    path.write_bytes(b"\xff\xd8\xff")
    return path


class TestQRImageReader:
    def test_read_success(self, mock_cv2, image):
        detector = mock_cv2.QRCodeDetector.return_value
        detector.detectAndDecode.return_value = (IPS_PAYLOAD, np.zeros((1, 4, 2)), None)

        assert QRImageReader().read(image) == IPS_PAYLOAD
        mock_cv2.imread.assert_called_once_with(str(image))
        mock_cv2.resize.assert_not_called()

    def test_retries_upscaled(self, mock_cv2, image):
        detector = mock_cv2.QRCodeDetector.return_value
        detector.detectAndDecode.side_effect = [
            ("", None, None),
            (IPS_PAYLOAD, np.zeros((1, 4, 2)), None),
        ]

        assert QRImageReader().read(image) == IPS_PAYLOAD
        mock_cv2.resize.assert_called_once()
        assert detector.detectAndDecode.call_count == 2

    def test_no_qr_code(self, mock_cv2, image):
        detector = mock_cv2.QRCodeDetector.return_value
        detector.detectAndDecode.return_value = ("", None, None)

        with pytest.raises(RuntimeError, match="No QR code"):
            QRImageReader().read(image)

    def test_unreadable_image(self, mock_cv2, image):
        mock_cv2.imread.return_value = None

        with pytest.raises(RuntimeError, match="Could not read image"):
            QRImageReader().read(image)

    def test_missing_file(self, mock_cv2, tmp_path):
        with pytest.raises(FileNotFoundError):
            QRImageReader().read(tmp_path / "missing.jpg")

    def test_missing_opencv(self, image):
        with patch.dict(sys.modules, {"cv2": None}):
            with pytest.raises(ImportError, match="opencv-python"):
                QRImageReader().read(image)
