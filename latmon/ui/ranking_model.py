"""Qt table model presenting the ranked target snapshot."""

from PySide6.QtCore import QAbstractTableModel, QModelIndex, Qt
from PySide6.QtGui import QColor

from latmon.models import ServiceType, TargetStatus
from latmon.stats import (
    average_latency,
    format_latency,
    format_packet_loss,
    latency_grade,
    max_latency,
    min_latency,
)

GRADE_COLORS = {
    "good": QColor("#22c55e"),
    "fair": QColor("#eab308"),
    "poor": QColor("#ef4444"),
}

STATUS_TEXT = {
    TargetStatus.PENDING: "Pending",
    TargetStatus.TESTING: "Testing",
    TargetStatus.SUCCESS: "OK",
    TargetStatus.ERROR: "Error",
}

# Columns whose cells are latencies, mapped to the metric they show
LATENCY_COLUMNS = {3: min_latency, 4: max_latency, 5: average_latency}


class RankingModel(QAbstractTableModel):
    """Table model over a RankedSnapshot.

    The whole snapshot is replaced on every update; rows keep the ranking
    order of the snapshot. An optional service filter hides other services.
    """

    def __init__(self, parent=None):
        super().__init__(parent)
        self._snapshot = ()
        self._rows = []
        self._service_filter = None

        self._columns = ["Host", "Service", "Status", "Min", "Max", "Average", "Loss"]

    def rowCount(self, parent=QModelIndex()):
        if parent.isValid():
            return 0
        return len(self._rows)

    def columnCount(self, parent=QModelIndex()):
        if parent.isValid():
            return 0
        return len(self._columns)

    def data(self, index, role=Qt.DisplayRole):
        """Return data for a given cell."""
        if not index.isValid():
            return None

        if index.row() >= len(self._rows) or index.row() < 0:
            return None

        state = self._rows[index.row()]
        col = index.column()

        if role == Qt.DisplayRole:
            if col == 0:
                return state.host
            elif col == 1:
                return state.service.value
            elif col == 2:
                return STATUS_TEXT[state.status]
            elif col in LATENCY_COLUMNS:
                return format_latency(LATENCY_COLUMNS[col](state))
            elif col == 6:
                return format_packet_loss(state)

        elif role == Qt.BackgroundRole:
            if col in LATENCY_COLUMNS:
                grade = latency_grade(LATENCY_COLUMNS[col](state))
                if grade is not None:
                    return GRADE_COLORS[grade]

        elif role == Qt.TextAlignmentRole:
            if col >= 3:
                return Qt.AlignRight | Qt.AlignVCenter
            return Qt.AlignLeft | Qt.AlignVCenter

        return None

    def headerData(self, section, orientation, role=Qt.DisplayRole):
        if role == Qt.DisplayRole and orientation == Qt.Horizontal:
            if 0 <= section < len(self._columns):
                return self._columns[section]
        return None

    def flags(self, index):
        """Return item flags (read-only)."""
        if not index.isValid():
            return Qt.NoItemFlags
        return Qt.ItemIsEnabled | Qt.ItemIsSelectable

    def set_snapshot(self, snapshot):
        """Replace the displayed snapshot."""
        self.beginResetModel()
        self._snapshot = tuple(snapshot)
        self._rows = self._filtered()
        self.endResetModel()

    def set_service_filter(self, service: ServiceType | None):
        """Show only targets of one service, or all when service is None."""
        self.beginResetModel()
        self._service_filter = service
        self._rows = self._filtered()
        self.endResetModel()

    def service_filter(self) -> ServiceType | None:
        return self._service_filter

    def host_at(self, row: int) -> str | None:
        if 0 <= row < len(self._rows):
            return self._rows[row].host
        return None

    def _filtered(self):
        if self._service_filter is None:
            return list(self._snapshot)
        return [state for state in self._snapshot if state.service == self._service_filter]
