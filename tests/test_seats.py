"""
Seat map and seat selection tests
"""

import pytest

from seats import (
    MAX_SELECTION, TOTAL_SEATS, SeatSelection, SeatUnavailable, SelectionLimitReached, UnknownSeat,
    build_seat_layout, confirmation_message, flatten_booked_seats, is_valid_seat, seat_labels,
)


class TestLayout:

    def test_first_row_is_door_and_driver(self):
        row = build_seat_layout([])[0]
        assert [c.kind for c in row] == ["door", "empty-space", "empty-space", "empty-space", "driver-seat"]
        assert row[0].label == "Door"
        assert row[-1].label == "Driver"

    def test_middle_rows_have_walkway_after_second_seat(self):
        row = build_seat_layout([])[1]
        assert [c.kind for c in row] == ["seat", "seat", "walkway", "seat", "seat"]
        assert [c.label for c in row if c.kind == "seat"] == ["1A", "1B", "1C", "1D"]

    def test_back_row_is_a_bench_of_five(self):
        row = build_seat_layout([])[-1]
        assert [c.kind for c in row] == ["seat"] * 5
        assert row[-1].label == "9E"

    def test_thirty_seven_seats(self):
        layout = build_seat_layout([])
        assert len(layout) == 10
        assert sum(1 for row in layout for c in row if c.kind == "seat") == TOTAL_SEATS == 37
        assert len(seat_labels()) == 37

    def test_booked_seats_are_flagged(self):
        layout = build_seat_layout(["1A", "3C"])
        booked = {c.label for row in layout for c in row if c.booked}
        assert booked == {"1A", "3C"}

    def test_seat_label_validity(self):
        assert is_valid_seat("1A")
        assert is_valid_seat("9E")
        assert not is_valid_seat("1E")
        assert not is_valid_seat("0A")
        assert not is_valid_seat("10A")


def test_flatten_booked_seat_groups():
    assert flatten_booked_seats(["1A,1B", "3C", " 4D , 5A "]) == ["1A", "1B", "3C", "4D", "5A"]
    assert flatten_booked_seats([]) == []
    assert flatten_booked_seats(None) == []


class TestSeatSelection:

    def test_empty_selection_disables_submit(self):
        sel = SeatSelection(["1A"])
        assert sel.submit_disabled
        assert sel.submit_label == "Proceed to Payment (0 seats)"
        assert sel.field_value == ""

    def test_toggle_selects_and_deselects(self):
        sel = SeatSelection(["1A"])
        assert sel.toggle("3A") == "selected"
        assert sel.toggle("3B") == "selected"
        assert sel.field_value == "3A,3B"
        assert sel.submit_label == "Proceed to Payment (2 seats)"
        assert not sel.submit_disabled
        assert sel.toggle("3A") == "deselected"
        assert sel.selected == ["3B"]

    def test_booked_seat_is_refused(self):
        sel = SeatSelection(["1A", "1B"])
        sel.toggle("2A")
        with pytest.raises(SeatUnavailable) as exc:
            sel.toggle("1A")
        assert str(exc.value) == "This seat is already booked."
        assert sel.selected == ["2A"]

    def test_sixth_seat_is_refused(self):
        sel = SeatSelection([])
        for label in ["1A", "1B", "1C", "1D", "2A"]:
            sel.toggle(label)
        with pytest.raises(SelectionLimitReached) as exc:
            sel.toggle("2B")
        assert str(exc.value) == "Cannot select more than 5 seats."
        assert len(sel) == MAX_SELECTION
        assert "2B" not in sel

    def test_deselect_allowed_at_limit(self):
        sel = SeatSelection([], ["1A", "1B", "1C", "1D", "2A"])
        assert sel.toggle("1C") == "deselected"
        assert sel.toggle("2B") == "selected"

    def test_unknown_seat_is_refused(self):
        sel = SeatSelection([])
        with pytest.raises(UnknownSeat):
            sel.toggle("11Z")
        assert sel.selected == []

    def test_restored_selection_drops_booked_and_unknown(self):
        sel = SeatSelection(["2A"], ["2A", "3A", "XX", "3A", "3B"])
        assert sel.selected == ["3A", "3B"]

    def test_state_payload(self):
        sel = SeatSelection([], ["4C"])
        assert sel.state() == {
            "selectedSeats": ["4C"],
            "seatNumbers": "4C",
            "submitDisabled": False,
            "submitLabel": "Proceed to Payment (1 seats)",
        }


def test_confirmation_message():
    assert confirmation_message(["3A"]) == "You selected 1 seat: 3A. Proceed?"
    assert confirmation_message(["3A", "3B"]) == "You selected 2 seats: 3A, 3B. Proceed?"


def test_booked_then_free_seat_scenario():
    sel = SeatSelection(["1A", "2B"])
    with pytest.raises(SeatUnavailable):
        sel.toggle("1A")
    assert sel.selected == []
    sel.toggle("3C")
    assert sel.state() == {
        "selectedSeats": ["3C"],
        "seatNumbers": "3C",
        "submitDisabled": False,
        "submitLabel": "Proceed to Payment (1 seats)",
    }
    sel.toggle("3C")
    assert sel.selected == []
    assert sel.submit_disabled
