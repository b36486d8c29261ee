# seats.py - Bus seat map and multi-seat selection for one schedule

from collections import namedtuple

TOTAL_ROWS = 10
SEATS_PER_ROW = (5, 4, 4, 4, 4, 4, 4, 4, 4, 5)
WALKWAY_AFTER = 2      # aisle gap after this column on every row but the last
MAX_SELECTION = 5

BOOKED_NOTICE = "This seat is already booked."
LIMIT_NOTICE = "Cannot select more than %d seats."

Cell = namedtuple("Cell", "kind label booked")


class SeatSelectionError(Exception):
    """Raised when a toggle is refused. The selection is left untouched."""


class SeatUnavailable(SeatSelectionError):
    pass


class SelectionLimitReached(SeatSelectionError):
    pass


class UnknownSeat(SeatSelectionError):
    pass


def seat_label(row, column):
    return f"{row}{chr(64 + column)}"


def seat_labels():
    labels = []
    for row in range(1, TOTAL_ROWS):
        for column in range(1, SEATS_PER_ROW[row] + 1):
            labels.append(seat_label(row, column))
    return labels


_ALL_SEATS = frozenset(seat_labels())
TOTAL_SEATS = len(_ALL_SEATS)


def is_valid_seat(label):
    return label in _ALL_SEATS


def flatten_booked_seats(groups):
    """Split comma-joined seat groupings ("1A,2B") into single labels."""
    labels = []
    for group in groups or ():
        labels.extend(s.strip() for s in group.split(",") if s.strip())
    return labels


def build_seat_layout(booked_seats):
    """Return the seat grid as rows of cells.

    Row 0 is the door/driver row and holds no seats. The last row is a full
    bench of five without a walkway.
    """
    booked = set(booked_seats)
    rows = []
    for row in range(TOTAL_ROWS):
        cells = []
        if row == 0:
            cells.append(Cell("door", "Door", False))
            cells.extend(Cell("empty-space", None, False) for _ in range(3))
            cells.append(Cell("driver-seat", "Driver", False))
        else:
            for column in range(1, SEATS_PER_ROW[row] + 1):
                label = seat_label(row, column)
                cells.append(Cell("seat", label, label in booked))
                if column == WALKWAY_AFTER and row != TOTAL_ROWS - 1:
                    cells.append(Cell("walkway", None, False))
        rows.append(cells)
    return rows


def confirmation_message(selected):
    count = len(selected)
    return f"You selected {count} seat{'s' if count > 1 else ''}: {', '.join(selected)}. Proceed?"


class SeatSelection:
    """Seats picked for one booking, bounded and disjoint from the booked set."""

    def __init__(self, booked_seats, selected=(), limit=MAX_SELECTION):
        self.booked = frozenset(booked_seats)
        self.limit = limit
        self._selected = []
        # restored state goes through the same guard as clicks
        for label in selected:
            if label in self.booked or not is_valid_seat(label) or label in self._selected:
                continue
            if len(self._selected) >= limit:
                break
            self._selected.append(label)

    @property
    def selected(self):
        return list(self._selected)

    def __len__(self):
        return len(self._selected)

    def __contains__(self, label):
        return label in self._selected

    def toggle(self, label):
        if label in self.booked:
            raise SeatUnavailable(BOOKED_NOTICE)
        if not is_valid_seat(label):
            raise UnknownSeat(f"Unknown seat: {label}")
        if label in self._selected:
            self._selected.remove(label)
            return "deselected"
        if len(self._selected) >= self.limit:
            raise SelectionLimitReached(LIMIT_NOTICE % self.limit)
        self._selected.append(label)
        return "selected"

    @property
    def field_value(self):
        return ",".join(self._selected)

    @property
    def submit_disabled(self):
        return not self._selected

    @property
    def submit_label(self):
        return f"Proceed to Payment ({len(self._selected)} seats)"

    def state(self):
        return {
            "selectedSeats": self.selected,
            "seatNumbers": self.field_value,
            "submitDisabled": self.submit_disabled,
            "submitLabel": self.submit_label,
        }

