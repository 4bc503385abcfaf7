"""
Main application window for the local Whisper serving manager
"""

import logging

from PyQt5.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
    QLabel, QPushButton, QProgressBar, QComboBox,
    QGroupBox, QGridLayout, QStatusBar
)
from PyQt5.QtCore import Qt

from core.broadcaster import SERVING_STATUS_TOPIC
from core.serving_status import Idle, Loading, describe, format_elapsed, progress_percent
from core.system_checker import SystemChecker

logger = logging.getLogger(__name__)

MODEL_SIZES = ["tiny", "base", "small", "medium", "large"]


class ServingWindow(QMainWindow):
    """Main application window"""

    def __init__(self, manager, settings):
        super().__init__()
        self.manager = manager
        self.settings = settings

        self.init_ui()
        self.manager.broadcaster.published.connect(self.on_published, Qt.QueuedConnection)
        self.render_status(self.manager.status())

    def init_ui(self):
        """Initialize user interface"""
        self.setWindowTitle("See My Speech - Local Model")
        self.setMinimumSize(480, 260)

        central_widget = QWidget()
        self.setCentralWidget(central_widget)
        main_layout = QVBoxLayout(central_widget)

        # Model controls
        model_group = QGroupBox("Local Model")
        model_layout = QGridLayout(model_group)

        model_layout.addWidget(QLabel("Model Size:"), 0, 0)
        self.model_combo = QComboBox()
        self.model_combo.addItems(MODEL_SIZES)
        if self.settings.local_model not in MODEL_SIZES:
            self.model_combo.addItem(self.settings.local_model)
        self.model_combo.setCurrentText(self.settings.local_model)
        model_layout.addWidget(self.model_combo, 0, 1)

        buttons = QHBoxLayout()
        self.load_btn = QPushButton("Load")
        self.load_btn.clicked.connect(self.load_model)
        self.unload_btn = QPushButton("Unload")
        self.unload_btn.clicked.connect(self.manager.stop)
        buttons.addWidget(self.load_btn)
        buttons.addWidget(self.unload_btn)
        model_layout.addLayout(buttons, 0, 2)

        main_layout.addWidget(model_group)

        # Loading progress
        progress_group = QGroupBox("Status")
        progress_layout = QVBoxLayout(progress_group)

        self.status_label = QLabel()
        self.status_label.setWordWrap(True)
        progress_layout.addWidget(self.status_label)

        self.progress_bar = QProgressBar()
        self.progress_bar.setRange(0, 100)
        progress_layout.addWidget(self.progress_bar)

        self.step_label = QLabel()
        self.step_label.setAlignment(Qt.AlignCenter)
        progress_layout.addWidget(self.step_label)

        main_layout.addWidget(progress_group)

        self.cache_label = QLabel(f"Model cache location: {SystemChecker.cache_dir()}")
        self.cache_label.setWordWrap(True)
        main_layout.addWidget(self.cache_label)
        main_layout.addStretch()

        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)

    def load_model(self):
        """Load the selected model and remember the choice"""
        model = self.model_combo.currentText()
        self.settings.local_model = model
        self.settings.save()
        self.manager.load(model)

    def on_published(self, topic, event):
        if topic == SERVING_STATUS_TOPIC:
            self.render_status(event.status)

    def render_status(self, status):
        """Update widgets for a serving status"""
        loading = isinstance(status, Loading)

        self.status_label.setText(describe(status, self.manager.step_label))
        self.progress_bar.setVisible(loading)
        self.step_label.setVisible(loading)
        self.cache_label.setVisible(not loading)
        self.load_btn.setEnabled(not loading)
        self.unload_btn.setEnabled(not isinstance(status, Idle))

        if loading:
            self.progress_bar.setValue(progress_percent(status))
            step = self.manager.step_label(status.step) if status.step else "Initializing…"
            elapsed = format_elapsed(status.elapsed)
            self.step_label.setText(f"{step}  {elapsed} elapsed" if elapsed else step)
            self.status_bar.showMessage("First load downloads the model. Subsequent loads use cache.")
        else:
            self.status_bar.clearMessage()

    def closeEvent(self, event):
        """Handle application close"""
        try:
            self.manager.broadcaster.published.disconnect(self.on_published)
        except TypeError:
            logger.debug("[ServingWindow] Status updates already disconnected")
        event.accept()
