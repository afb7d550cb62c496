"""Tests for the in-memory editing model: totals, currency edits and the request guard."""

import pytest

from components.boq_models import BoqItem, Room
from components.exceptions import BusyError


class TestTotals:
    def test_totals_follow_edits(self, store):
        assert store.room_total("room-A") == pytest.approx(3500.0 + 2 * 2800.0)
        store.update_item_field("room-A", 1, "quantity", "3")
        assert store.room_total("room-A") == pytest.approx(3500.0 + 3 * 2800.0)
        assert store.grand_total() == pytest.approx(3500.0 + 3 * 2800.0 + 1999.99)

    def test_totals_follow_add_and_delete(self, store):
        store.add_item("room-B", BoqItem(item_name="Cable", quantity=4, unit_price=10.0))
        assert store.room_total("room-B") == pytest.approx(2039.99)
        store.delete_item("room-B", 0)
        assert store.room_total("room-B") == pytest.approx(40.0)

    def test_default_new_item(self, store):
        item = store.add_item("room-B")
        assert item.category == "General"
        assert item.quantity == 1
        assert item.unit_price == 0.0
        assert store.rooms[1].boq[-1] is item

    def test_display_totals_use_selected_currency(self, store):
        store.set_currency("INR")
        assert store.display_room_total("room-B") == pytest.approx(1999.99 * 83.45)
        assert store.display_grand_total() == pytest.approx(store.grand_total() * 83.45)
        # stored values stay in USD
        assert store.rooms[1].boq[0].unit_price == 1999.99


class TestEdits:
    def test_price_edit_is_stored_in_usd(self, store):
        store.set_currency("EUR")
        store.update_item_field("room-B", 0, "unit_price", "930")
        assert store.rooms[1].boq[0].unit_price == pytest.approx(1000.0)
        assert store.to_display(store.rooms[1].boq[0].unit_price) == pytest.approx(930.0)

    def test_currency_switch_round_trips(self, store):
        before = store.rooms[0].boq[0].unit_price
        for code in ("GBP", "AED", "SGD", "USD"):
            store.set_currency(code)
        assert store.rooms[0].boq[0].unit_price == before
        assert store.display_grand_total() == pytest.approx(store.grand_total())

    @pytest.mark.parametrize("raw", ["-1", "two", "1.5", ""])
    def test_invalid_quantity_keeps_previous_value(self, store, raw):
        with pytest.raises(ValueError):
            store.update_item_field("room-A", 1, "quantity", raw)
        assert store.rooms[0].boq[1].quantity == 2

    def test_invalid_price_keeps_previous_value(self, store):
        with pytest.raises(ValueError):
            store.update_item_field("room-A", 0, "unit_price", "-5")
        assert store.rooms[0].boq[0].unit_price == 3500.0

    def test_text_edit(self, store):
        store.update_item_field("room-A", 0, "brand", "Samsung")
        assert store.rooms[0].boq[0].brand == "Samsung"

    def test_total_price_is_not_editable(self, store):
        with pytest.raises(KeyError):
            store.update_item_field("room-A", 0, "total_price", "1")

    def test_bad_index(self, store):
        with pytest.raises(IndexError):
            store.update_item_field("room-B", 5, "quantity", 1)
        with pytest.raises(IndexError):
            store.delete_item("room-B", -1)

    def test_unknown_currency(self, store):
        with pytest.raises(ValueError):
            store.set_currency("JPY")
        assert store.state.currency == "USD"


class TestRooms:
    def test_add_rename_delete(self, store):
        room = store.add_room("  Training Room ")
        assert room.name == "Training Room"
        assert room.id not in ("room-A", "room-B")
        store.rename_room(room.id, "Lab")
        assert store.get_room(room.id).name == "Lab"
        store.delete_room("room-A")
        assert [r.id for r in store.rooms] == ["room-B", room.id]

    def test_blank_names_rejected(self, store):
        with pytest.raises(ValueError):
            store.add_room("   ")
        with pytest.raises(ValueError):
            store.rename_room("room-A", "")
        assert store.get_room("room-A").name == "Boardroom"

    def test_unknown_room(self, store):
        with pytest.raises(KeyError):
            store.get_room("room-Z")


class TestRequestGuard:
    def test_second_request_is_rejected(self, store):
        store.begin_request()
        assert store.busy
        with pytest.raises(BusyError):
            store.begin_request()

    def test_mutations_blocked_while_busy(self, store):
        store.begin_request()
        with pytest.raises(BusyError):
            store.add_item("room-A")
        with pytest.raises(BusyError):
            store.update_item_field("room-A", 0, "quantity", 5)
        with pytest.raises(BusyError):
            store.delete_room("room-B")
        assert len(store.rooms) == 2
        assert store.rooms[0].boq[0].quantity == 1

    def test_finish_installs_rooms(self, store):
        token = store.begin_request()
        new_rooms = [Room(id="room-C", name="Lobby")]
        assert store.finish_request(token, new_rooms) is True
        assert not store.busy
        assert [r.id for r in store.rooms] == ["room-C"]

    def test_finish_without_rooms_keeps_state(self, store):
        token = store.begin_request()
        assert store.finish_request(token) is True
        assert [r.id for r in store.rooms] == ["room-A", "room-B"]

    def test_stale_result_is_discarded(self, store):
        stale = store.begin_request()
        store.abandon_request()
        current = store.begin_request()
        assert store.finish_request(stale, [Room(id="room-X", name="Late")]) is False
        assert store.busy
        assert [r.id for r in store.rooms] == ["room-A", "room-B"]
        assert store.finish_request(current) is True


def test_replace_rooms_and_items(store):
    store.replace_room_items("room-A", [BoqItem(item_name="Projector", quantity=1, unit_price=2500.0)])
    assert store.room_total("room-A") == pytest.approx(2500.0)
    store.replace_rooms([Room(id="room-Z", name="Auditorium")])
    assert [r.id for r in store.rooms] == ["room-Z"]
    assert store.grand_total() == 0
