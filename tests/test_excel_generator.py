"""Tests for the multi-sheet workbook export."""

import copy
from io import BytesIO

import openpyxl
import pytest

from components.boq_models import BoqItem, ClientDetails, Room
from components.exceptions import EmptyStateError
from components.excel_generator import (
    FIXED_SHEETS, currency_number_format, export_filename, generate_company_excel, safe_sheet_name,
)


def load(data: bytes):
    return openpyxl.load_workbook(BytesIO(data))


def find_row(sheet, column, value):
    for row in range(1, sheet.max_row + 1):
        if sheet.cell(row=row, column=column).value == value:
            return row
    raise AssertionError(f"{value!r} not found in column {column}")


class TestSheetNames:
    def test_illegal_characters_removed(self):
        assert safe_sheet_name("Room/A") == "RoomA"
        assert safe_sheet_name("Q1: [Plan]*?") == "Q1 Plan"

    def test_collisions_get_suffix(self):
        first = safe_sheet_name("Room/A")
        second = safe_sheet_name("Room\\A", taken=[first])
        assert (first, second) == ("RoomA", "RoomA (2)")
        assert safe_sheet_name("rooma", taken=[first, second]) == "rooma (3)"

    def test_length_is_capped(self):
        long_name = "Executive Boardroom Level 42 East Wing"
        name = safe_sheet_name(long_name)
        assert len(name) == 31
        again = safe_sheet_name(long_name, taken=[name])
        assert len(again) <= 31
        assert again.endswith(" (2)")

    def test_truncation_never_leaves_edge_apostrophe(self):
        name = safe_sheet_name("Executive Boardroom of the CEO's Office")
        assert name == "Executive Boardroom of the CEO"
        again = safe_sheet_name("Executive Boardroom of the CEO's Office", taken=[name])
        assert again == "Executive Boardroom of the (2)"
        assert safe_sheet_name("'Lobby'") == "Lobby"
        assert safe_sheet_name("Training Room 2 - Partners'Wing") == "Training Room 2 - Partners'Wing"

    def test_blank_name_falls_back(self):
        assert safe_sheet_name("///") == "Room"

    def test_fixed_sheet_names_are_reserved(self):
        assert safe_sheet_name("Proposal Summary", taken=FIXED_SHEETS) == "Proposal Summary (2)"


def test_filename():
    assert export_filename(ClientDetails(project_name="HQ/Refresh")) == "HQRefresh - BOQ.xlsx"
    assert export_filename(ClientDetails(project_name="HQ"), "Board Room") == "HQ - Board Room BOQ.xlsx"


def test_number_format_uses_currency_symbol():
    assert currency_number_format("USD") == '"$"#,##0.00'
    assert currency_number_format("INR") == '"₹"#,##0.00'


class TestWorkbook:
    def test_sheet_order(self, state):
        workbook = load(generate_company_excel(state))
        assert workbook.sheetnames == list(FIXED_SHEETS) + ["Boardroom", "Huddle"]
        assert workbook.active.title == "Version Control"

    def test_rooms_without_items_get_no_sheet(self, state):
        state.rooms.append(Room(id="room-C", name="Storage"))
        workbook = load(generate_company_excel(state))
        assert "Storage" not in workbook.sheetnames
        summary = workbook["Proposal Summary"]
        assert summary.cell(row=find_row(summary, 2, "Storage"), column=3).value == 0

    def test_room_sheet_values(self, state):
        sheet = load(generate_company_excel(state))["Boardroom"]
        assert sheet["A1"].value == "Boardroom - Bill of Quantities"
        assert sheet["A2"].value == "Requirements: 12 seats"
        assert sheet["G4"].value == "Unit Price (USD)"
        assert sheet["H4"].value == "Total Price (USD)"
        assert sheet["D5"].value == "86in Display"
        assert sheet["F6"].value == 2
        assert sheet["H6"].value == pytest.approx(5600.0)
        assert sheet["G6"].number_format == '"$"#,##0.00'
        total_row = find_row(sheet, 7, "Grand Total")
        assert sheet.cell(row=total_row, column=8).value == pytest.approx(9100.0)

    def test_prices_converted_at_selected_rate(self, state):
        state.currency = "EUR"
        workbook = load(generate_company_excel(state))
        sheet = workbook["Huddle"]
        assert sheet["G4"].value == "Unit Price (EUR)"
        assert sheet["G5"].value == pytest.approx(1999.99 * 0.93)
        assert sheet["G5"].number_format == '"€"#,##0.00'

        summary = workbook["Proposal Summary"]
        total_row = find_row(summary, 1, "GRAND TOTAL")
        assert summary.cell(row=total_row, column=4).value == pytest.approx(state.grand_total * 0.93)

    def test_image_link(self, state):
        state.rooms[1].boq[0].image_url = "https://example.com/bar.png"
        state.rooms[0].boq[0].image_url = "not a url"
        workbook = load(generate_company_excel(state))
        linked = workbook["Huddle"]["J5"]
        assert linked.value == "View Image"
        assert linked.hyperlink.target == "https://example.com/bar.png"
        assert workbook["Boardroom"]["J5"].value is None

    def test_colliding_room_names(self, state):
        state.rooms[0].name = "Room/A"
        state.rooms[1].name = "Room\\A"
        workbook = load(generate_company_excel(state))
        assert workbook.sheetnames[-2:] == ["RoomA", "RoomA (2)"]

    def test_version_sheet(self, state):
        sheet = load(generate_company_excel(state))["Version Control"]
        assert sheet["A1"].value == "HQ Refresh"
        assert sheet["A4"].value == "Date of First Draft"
        assert sheet["B4"].value == "18-Oct-2026"
        assert sheet["E5"].value == "Acme Corp"

    def test_export_does_not_mutate_state(self, state):
        state.currency = "GBP"
        before = copy.deepcopy(state.to_dict())
        generate_company_excel(state)
        assert state.to_dict() == before

    def test_missing_project_name(self, state):
        state.client.project_name = "  "
        with pytest.raises(EmptyStateError):
            generate_company_excel(state)

    def test_no_items(self, state):
        state.rooms = [Room(id="room-A", name="Empty")]
        with pytest.raises(EmptyStateError):
            generate_company_excel(state)

    def test_room_called_sheet_keeps_its_name(self, state):
        state.rooms = [Room(id="r", name="Sheet", boq=[BoqItem(item_name="Mount", unit_price=80.0)])]
        assert load(generate_company_excel(state)).sheetnames[-1] == "Sheet"
