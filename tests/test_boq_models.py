"""Tests for the BOQ data model: coercion, derived totals and serialization."""

import pytest

from components.boq_models import (
    BoqItem, ClientDetails, FieldKind, ITEM_FIELDS, ProjectState, Room,
    coerce_field_value, coerce_price, coerce_quantity, new_room_id,
)


class TestCoercion:
    @pytest.mark.parametrize("raw, expected", [(3, 3), ("4", 4), (2.0, 2), (" 7 ", 7), (0, 0)])
    def test_quantity_accepts_whole_numbers(self, raw, expected):
        assert coerce_quantity(raw) == expected

    @pytest.mark.parametrize("raw", [-1, "abc", "", 1.5, None, True, float("nan")])
    def test_quantity_rejects_invalid(self, raw):
        with pytest.raises(ValueError):
            coerce_quantity(raw)

    @pytest.mark.parametrize("raw, expected", [(10, 10.0), ("1,250.50", 1250.5), (0, 0.0), ("99.9", 99.9)])
    def test_price_accepts_non_negative_decimals(self, raw, expected):
        assert coerce_price(raw) == pytest.approx(expected)

    @pytest.mark.parametrize("raw", [-0.01, "free", "", None, float("inf")])
    def test_price_rejects_invalid(self, raw):
        with pytest.raises(ValueError):
            coerce_price(raw)

    def test_field_kinds_are_declared_once(self):
        assert ITEM_FIELDS['quantity'] is FieldKind.QUANTITY
        assert ITEM_FIELDS['unit_price'] is FieldKind.CURRENCY
        assert ITEM_FIELDS['notes'] is FieldKind.TEXT

    def test_coerce_field_value_dispatches_on_kind(self):
        assert coerce_field_value('quantity', "5") == 5
        assert coerce_field_value('unit_price', "12.5") == 12.5
        assert coerce_field_value('brand', 42) == "42"
        assert coerce_field_value('notes', None) == ""

    def test_unknown_field_is_rejected(self):
        with pytest.raises(KeyError):
            coerce_field_value('total_price', 10)


class TestBoqItem:
    def test_total_price_is_derived(self):
        item = BoqItem(quantity=3, unit_price=19.5)
        assert item.total_price == pytest.approx(58.5)
        item.quantity = 4
        assert item.total_price == pytest.approx(78.0)

    def test_from_dict_reads_camel_case_wire_names(self):
        item = BoqItem.from_dict({
            'category': 'Audio', 'itemName': 'Mic', 'brand': 'Shure', 'modelNumber': 'MXA310',
            'description': 'Table array mic', 'quantity': 2, 'unitPrice': 1099.0,
            'imageUrl': 'https://example.com/mic.png', 'notes': 'PoE',
        })
        assert item.item_name == 'Mic'
        assert item.model_number == 'MXA310'
        assert item.unit_price == 1099.0
        assert item.image_url == 'https://example.com/mic.png'

    def test_from_dict_accepts_snake_case(self):
        item = BoqItem.from_dict({'item_name': 'Rack', 'unit_price': "450", 'quantity': "1"})
        assert item.item_name == 'Rack'
        assert item.unit_price == 450.0
        assert item.quantity == 1

    def test_from_dict_falls_back_to_zero_for_bad_numbers(self):
        item = BoqItem.from_dict({'itemName': 'Cable', 'quantity': -2, 'unitPrice': 'n/a'})
        assert item.quantity == 0
        assert item.unit_price == 0.0

    def test_to_dict_uses_wire_names(self):
        data = BoqItem(item_name='Display', model_number='X1', unit_price=10.0).to_dict()
        assert set(data) == {'category', 'itemName', 'brand', 'modelNumber', 'description',
                             'quantity', 'unitPrice', 'imageUrl', 'notes'}


class TestRoomAndProject:
    def test_room_total_is_sum_of_item_totals(self, two_rooms):
        boardroom = two_rooms[0]
        assert boardroom.total == pytest.approx(sum(i.quantity * i.unit_price for i in boardroom.boq))

    def test_grand_total_is_sum_of_room_totals(self, state):
        assert state.grand_total == pytest.approx(sum(room.total for room in state.rooms))

    def test_empty_room_total_is_zero(self):
        assert Room(id="r", name="Empty").total == 0

    def test_room_ids_are_unique(self):
        ids = {new_room_id() for _ in range(200)}
        assert len(ids) == 200
        assert all(room_id.startswith("room-") for room_id in ids)

    def test_room_to_dict_can_omit_id(self, two_rooms):
        assert 'id' not in two_rooms[0].to_dict(include_id=False)
        assert two_rooms[0].to_dict()['id'] == "room-A"

    def test_project_round_trip_keeps_rooms_and_client(self, state):
        restored = ProjectState.from_dict(state.to_dict())
        assert [r.id for r in restored.rooms] == ["room-A", "room-B"]
        assert restored.client.project_name == "HQ Refresh"
        assert restored.grand_total == pytest.approx(state.grand_total)

    def test_client_defaults(self):
        client = ClientDetails()
        assert client.prepared_by == "GenBOQ AI Assistant"
        assert len(client.date) == 10
        assert client.budget is None

    def test_client_from_dict_drops_bad_budget(self):
        assert ClientDetails.from_dict({'budget': 'lots'}).budget is None
        assert ClientDetails.from_dict({'budget': '25000'}).budget == 25000.0
