"""Main window for latmon."""

import logging

from PySide6.QtCore import Qt
from PySide6.QtGui import QCloseEvent, QGuiApplication
from PySide6.QtWidgets import (
    QComboBox,
    QHBoxLayout,
    QHeaderView,
    QLabel,
    QMainWindow,
    QPushButton,
    QTableView,
    QVBoxLayout,
    QWidget,
)

from latmon.collector import Prober
from latmon.config import Settings
from latmon.pool import ProbePool
from latmon.registry import TargetRegistry
from latmon.scheduler import RoundScheduler, SchedulerMode
from latmon.stats import StatsAggregator
from latmon.ui.ranking_model import RankingModel

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    """Main application window.

    Owns the probing engine (registry, aggregator, pool, scheduler) and
    renders every snapshot the aggregator publishes.
    """

    def __init__(self, settings: Settings, prober: Prober):
        super().__init__()
        self.setWindowTitle("latmon")
        self.setGeometry(100, 100, 900, 600)

        self.settings = settings

        # Engine
        self.registry = TargetRegistry(settings.targets)
        self.aggregator = StatsAggregator(self.registry.get_targets(), self)
        self.pool = ProbePool(prober, self.aggregator, settings.max_concurrent, self)
        self.scheduler = RoundScheduler(
            self.pool,
            self.registry,
            total_rounds=settings.total_rounds,
            round_pause_ms=settings.round_pause_ms,
            parent=self,
        )

        self.ranking_model = RankingModel(self)

        self.setup_ui()

        self.aggregator.snapshot_changed.connect(self.on_snapshot)
        self.pool.error.connect(self.on_probe_error)
        self.scheduler.round_started.connect(self.on_round_started)
        self.scheduler.run_finished.connect(self.on_run_finished)

        self.ranking_model.set_snapshot(self.aggregator.snapshot())

    def setup_ui(self):
        """Set up the main user interface."""
        central_widget = QWidget()
        self.setCentralWidget(central_widget)
        layout = QVBoxLayout(central_widget)

        title = QLabel("API Latency Monitor")
        title.setAlignment(Qt.AlignCenter)
        title.setStyleSheet("font-weight: bold; font-size: 16px; margin: 10px;")
        layout.addWidget(title)

        hint = QLabel("Click a row to copy its host")
        hint.setAlignment(Qt.AlignCenter)
        layout.addWidget(hint)

        controls = QHBoxLayout()

        self.start_button = QPushButton("Start Test")
        self.start_button.clicked.connect(self.start_manual_test)
        controls.addWidget(self.start_button)

        self.auto_button = QPushButton("Start Auto")
        self.auto_button.clicked.connect(self.toggle_auto)
        controls.addWidget(self.auto_button)

        self.clear_button = QPushButton("Clear Data")
        self.clear_button.clicked.connect(self.clear_data)
        controls.addWidget(self.clear_button)

        controls.addStretch()

        controls.addWidget(QLabel("Service:"))
        self.filter_combo = QComboBox()
        self.filter_combo.addItem("All", None)
        for service in self.registry.services():
            self.filter_combo.addItem(service.value, service)
        self.filter_combo.currentIndexChanged.connect(self.on_filter_changed)
        controls.addWidget(self.filter_combo)

        layout.addLayout(controls)

        self.table = QTableView()
        self.table.setModel(self.ranking_model)
        self.table.setSelectionBehavior(QTableView.SelectRows)
        self.table.setAlternatingRowColors(True)
        self.table.horizontalHeader().setSectionResizeMode(QHeaderView.Stretch)
        self.table.clicked.connect(self.on_row_clicked)
        layout.addWidget(self.table)

        self.status_label = QLabel("Status: Ready")
        self.status_label.setStyleSheet("font-weight: bold;")
        layout.addWidget(self.status_label)

    def closeEvent(self, event: QCloseEvent) -> None:
        """Stop scheduling and give in-flight probes a moment to finish."""
        self.scheduler.stop()
        self.pool.wait_for_done(1000)
        super().closeEvent(event)

    def start_manual_test(self):
        """Handle start button click."""
        if not self.scheduler.start_manual():
            return
        self.start_button.setEnabled(False)
        self.auto_button.setEnabled(False)

    def toggle_auto(self):
        """Start or stop auto mode."""
        if self.scheduler.mode == SchedulerMode.AUTO and self.scheduler.is_busy:
            self.scheduler.stop()
            self.auto_button.setText("Start Auto")
            self.status_label.setText("Status: Stopping")
            return

        if self.scheduler.start_auto():
            self.auto_button.setText("Stop Auto")
            self.start_button.setEnabled(False)

    def clear_data(self):
        """Reset all statistics; a running test keeps going."""
        self.aggregator.reset()
        self.status_label.setText("Status: Cleared")

    def on_snapshot(self, snapshot):
        self.ranking_model.set_snapshot(snapshot)

    def on_round_started(self, current_round, total_rounds):
        if total_rounds:
            self.start_button.setText(f"Testing ({current_round}/{total_rounds})")
            self.status_label.setText(f"Status: Round {current_round}/{total_rounds}")
        else:
            self.status_label.setText(f"Status: Auto pass {current_round}")

    def on_run_finished(self):
        self.start_button.setText("Start Test")
        self.start_button.setEnabled(True)
        self.auto_button.setText("Start Auto")
        self.auto_button.setEnabled(True)
        self.status_label.setText("Status: Done")

    def on_probe_error(self, host, error_msg):
        self.status_label.setText(f"Status: Probe error on {host} - {error_msg}")

    def on_filter_changed(self, index):
        self.ranking_model.set_service_filter(self.filter_combo.itemData(index))

    def on_row_clicked(self, index):
        """Copy the clicked row's host to the clipboard."""
        host = self.ranking_model.host_at(index.row())
        if host is None:
            return

        clipboard = QGuiApplication.clipboard()
        if clipboard is None:
            self.status_label.setText("Status: Copy failed")
            return

        clipboard.setText(host)
        self.status_label.setText(f"Status: Copied {host}")
        logger.debug("Copied host to clipboard: %s", host)
