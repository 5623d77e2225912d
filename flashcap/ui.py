#!/usr/bin/env python3
"""
FlashCap preview window.

Shows a CaptureResult in a small PyQt6 window and sizes the window to
the image using the geometry advisor:
- Image drawn at logical size (HiDPI aware)
- Window grows to fit the image, never shrinks, stays inside the work area
- Window re-centered on its screen after a resize
"""

import logging
import os
import sys
from typing import Optional

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QPixmap
from PyQt6.QtWidgets import (
    QApplication,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QScrollArea,
    QVBoxLayout,
    QWidget,
)

from flashcap.utils.geometry import PADDING, TOOLBAR_HEIGHT, compute_target_size
from flashcap.utils.image_ingest import CaptureResult, decode_image_data

logger = logging.getLogger(__name__)


class CapturePreviewWindow(QWidget):
    """Window showing a single captured screenshot."""

    def __init__(self, result: Optional[CaptureResult] = None, parent=None):
        super().__init__(parent)
        self.result: Optional[CaptureResult] = None
        self.setWindowTitle("FlashCap")
        self._setup_ui()
        if result is not None:
            self.show_result(result)

    def _setup_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(PADDING, PADDING, PADDING, PADDING)
        layout.setSpacing(0)

        toolbar = QWidget(self)
        toolbar.setFixedHeight(TOOLBAR_HEIGHT)
        toolbar_layout = QHBoxLayout(toolbar)
        toolbar_layout.setContentsMargins(0, 0, 0, 0)

        self.info_label = QLabel("", toolbar)
        self.close_button = QPushButton("Close", toolbar)
        self.close_button.clicked.connect(self.close)
        toolbar_layout.addWidget(self.info_label)
        toolbar_layout.addStretch()
        toolbar_layout.addWidget(self.close_button)

        self.image_label = QLabel(self)
        self.image_label.setAlignment(Qt.AlignmentFlag.AlignCenter)

        scroll = QScrollArea(self)
        scroll.setWidget(self.image_label)
        scroll.setWidgetResizable(True)
        scroll.setFrameShape(QScrollArea.Shape.NoFrame)

        layout.addWidget(toolbar)
        layout.addWidget(scroll)

    def show_result(self, result: CaptureResult):
        """Display result and fit the window to it."""
        self.result = result

        pixmap = QPixmap()
        if not pixmap.loadFromData(decode_image_data(result.data)):
            logger.error(f"Could not display screenshot: {result.file_path}")
            return

        scale = self._display_scale()
        pixmap.setDevicePixelRatio(scale)
        self.image_label.setPixmap(pixmap)
        self.info_label.setText(f"{os.path.basename(result.file_path)}  {result.width}x{result.height}")

        self.fit_to_image(result.width, result.height)

    def _display_scale(self) -> float:
        screen = self.screen() or QApplication.primaryScreen()
        return screen.devicePixelRatio() if screen else 1.0

    def fit_to_image(self, image_width: int, image_height: int) -> bool:
        """Apply geometry advice for an image. Returns True if the window changed."""
        screen = self.screen() or QApplication.primaryScreen()
        if screen is None:
            return False

        area = screen.availableGeometry()
        advice = compute_target_size(
            image_width,
            image_height,
            screen.devicePixelRatio(),
            (self.width(), self.height()),
            (area.width(), area.height()),
        )
        if advice is None:
            return False

        self.resize(round(advice.width), round(advice.height))
        if advice.recenter:
            frame = self.frameGeometry()
            frame.moveCenter(area.center())
            self.move(frame.topLeft())

        logger.debug(f"Preview resized to {self.width()}x{self.height()}")
        return True


def main(result: CaptureResult) -> int:
    """Show result in a preview window and run the Qt event loop."""
    app = QApplication.instance() or QApplication(sys.argv)
    window = CapturePreviewWindow(result)
    window.show()
    return app.exec()
