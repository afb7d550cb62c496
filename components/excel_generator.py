# components/excel_generator.py
# Multi-sheet BOQ workbook: Version Control, Scope of Work, Terms & Conditions, Proposal Summary, one sheet per room

import logging
import re
from datetime import datetime
from io import BytesIO
from typing import Iterable, List, Optional

import openpyxl
from openpyxl.cell import MergedCell
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from components.boq_models import ClientDetails, ProjectState, Room
from components.exceptions import EmptyStateError
from components.scope_terms import (
    EXCLUSIONS, PROJECT_PHASES, SCOPE_INTRO, SCOPE_ITEMS, TERMS_AND_CONDITIONS,
)
from components.utils import CURRENCIES, convert_currency, format_currency

logger = logging.getLogger(__name__)

MAX_SHEET_NAME_LENGTH = 31
_ILLEGAL_SHEET_CHARS = re.compile(r'[\\/*?:\[\]]')
_SHEET_NAME_EDGES = re.compile(r"^[\s']+|[\s']+$")
_ILLEGAL_FILENAME_CHARS = re.compile(r'[\\/*?:"<>|]')

VERSION_SHEET = "Version Control"
SCOPE_SHEET = "Scope of Work"
TERMS_SHEET = "Terms & Conditions"
SUMMARY_SHEET = "Proposal Summary"
FIXED_SHEETS = (VERSION_SHEET, SCOPE_SHEET, TERMS_SHEET, SUMMARY_SHEET)

ROOM_COLUMNS = ["Category", "Brand", "Model Number", "Item Name", "Description", "Qty",
                "Unit Price", "Total Price", "Notes", "Reference Image"]
ROOM_COLUMN_WIDTHS = [18, 16, 22, 30, 50, 6, 16, 16, 35, 18]
MONEY_COLUMNS = (7, 8)


# ==================== STYLE DEFINITIONS ====================
def currency_number_format(currency: str) -> str:
    symbol = CURRENCIES.get(currency, (currency, f"{currency} "))[1]
    return f'"{symbol}"#,##0.00'


def _define_styles(currency: str):
    """Defines all necessary styles for the report."""
    thin_border_side = Side(style='thin')
    thin_border = Border(
        left=thin_border_side,
        right=thin_border_side,
        top=thin_border_side,
        bottom=thin_border_side
    )

    return {
        "header_green_fill": PatternFill(start_color="A9D08E", end_color="A9D08E", fill_type="solid"),
        "header_light_green_fill": PatternFill(start_color="E2EFDA", end_color="E2EFDA", fill_type="solid"),
        "table_header_blue_fill": PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid"),
        "title_fill": PatternFill(start_color="2563EB", end_color="2563EB", fill_type="solid"),
        "total_fill": PatternFill(start_color="FFEB9C", end_color="FFEB9C", fill_type="solid"),
        "black_bold_font": Font(color="000000", bold=True),
        "white_bold_font": Font(bold=True, color="FFFFFF"),
        "bold_font": Font(bold=True),
        "thin_border": thin_border,
        "currency_format": currency_number_format(currency),
    }


# ==================== NAMING ====================
def _trim_sheet_name(text: str) -> str:
    """Excel rejects names that start or end with an apostrophe."""
    return _SHEET_NAME_EDGES.sub('', text)


def safe_sheet_name(name: str, taken: Iterable[str] = ()) -> str:
    """
    Make a legal, unique worksheet name: strip characters Excel rejects, cap at
    31 characters, and add " (2)", " (3)"... when the result is already taken.
    Uniqueness is case-insensitive, as in Excel.
    """
    base = _trim_sheet_name(_ILLEGAL_SHEET_CHARS.sub('', name or '')) or "Room"
    taken_lower = {t.lower() for t in taken}

    candidate = _trim_sheet_name(base[:MAX_SHEET_NAME_LENGTH])
    counter = 2
    while candidate.lower() in taken_lower:
        suffix = f" ({counter})"
        candidate = _trim_sheet_name(base[:MAX_SHEET_NAME_LENGTH - len(suffix)]) + suffix
        counter += 1
    return candidate


def export_filename(client_details: ClientDetails, room_name: Optional[str] = None) -> str:
    project = _ILLEGAL_FILENAME_CHARS.sub('', client_details.project_name).strip() or "Project"
    if room_name:
        room = _ILLEGAL_FILENAME_CHARS.sub('', room_name).strip() or "Room"
        return f"{project} - {room} BOQ.xlsx"
    return f"{project} - BOQ.xlsx"


def _display_date(iso_date: str) -> str:
    try:
        return datetime.strptime(iso_date, "%Y-%m-%d").strftime("%d-%b-%Y")
    except (TypeError, ValueError):
        return iso_date or ""


def _title_row(sheet, row, text, last_col, styles):
    sheet.merge_cells(f'A{row}:{last_col}{row}')
    cell = sheet[f'A{row}']
    cell.value = text
    cell.font = Font(size=14, bold=True, color="FFFFFF")
    cell.fill = styles['title_fill']
    cell.alignment = Alignment(horizontal='center', vertical='center')
    sheet.row_dimensions[row].height = 25


# ==================== VERSION CONTROL SHEET ====================
def _add_version_control_sheet(workbook, state: ProjectState, styles):
    """Creates the Version Control & Contact Details sheet."""
    client = state.client
    sheet = workbook.create_sheet(title=VERSION_SHEET)
    sheet.sheet_view.showGridLines = False

    for col, width in {'A': 25, 'B': 35, 'C': 5, 'D': 30, 'E': 40}.items():
        sheet.column_dimensions[col].width = width

    _title_row(sheet, 1, client.project_name, 'E', styles)

    def key_value_table(first_col, second_col, header, rows):
        sheet.merge_cells(f'{first_col}3:{second_col}3')
        head = sheet[f'{first_col}3']
        head.value = header
        head.fill = styles['header_green_fill']
        head.font = styles['black_bold_font']
        head.alignment = Alignment(horizontal='center', vertical='center')
        head.border = styles['thin_border']
        sheet[f'{second_col}3'].border = styles['thin_border']

        for i, (label, value) in enumerate(rows):
            row = i + 4
            label_cell, value_cell = sheet[f'{first_col}{row}'], sheet[f'{second_col}{row}']
            label_cell.value = label
            label_cell.fill = styles['header_light_green_fill']
            label_cell.alignment = Alignment(vertical='center')
            value_cell.value = value
            value_cell.alignment = Alignment(vertical='top', wrap_text=True)
            label_cell.border = value_cell.border = styles['thin_border']

    key_value_table('A', 'B', "Version", [
        ("Date of First Draft", _display_date(client.date)),
        ("Date of Final Draft", ""),
        ("Version No.", "1.0"),
        ("Published Date", datetime.now().strftime("%d-%b-%Y")),
        ("Prepared By", client.prepared_by),
        ("Currency", CURRENCIES.get(state.currency, (state.currency,))[0]),
    ])

    budget = format_currency(client.budget, "USD") if client.budget else ""
    key_value_table('D', 'E', "Contact Details", [
        ("Project Name", client.project_name),
        ("Client Name", client.client_name),
        ("Design Engineer", client.design_engineer),
        ("Account Manager", client.account_manager),
        ("Key Client Personnel", client.key_client_personnel),
        ("Location", client.location),
        ("Budget (USD)", budget),
        ("Key Comments for this version", client.key_comments),
    ])
    sheet.row_dimensions[11].height = 40
    return sheet


# ==================== SCOPE OF WORK SHEET ====================
def _add_scope_of_work_sheet(workbook, styles):
    """Creates the Scope of Work sheet with all static content."""
    sheet = workbook.create_sheet(title=SCOPE_SHEET)
    sheet.sheet_view.showGridLines = False
    sheet.column_dimensions['A'].width, sheet.column_dimensions['B'].width = 8, 90

    _title_row(sheet, 1, "Scope of Work", 'B', styles)
    row_cursor = 3

    sheet.merge_cells(f'A{row_cursor}:B{row_cursor}')
    intro_cell = sheet[f'A{row_cursor}']
    intro_cell.value = SCOPE_INTRO
    intro_cell.alignment = Alignment(wrap_text=True, vertical='top')
    sheet.row_dimensions[row_cursor].height = 45
    row_cursor += 2

    def section_header(text):
        nonlocal row_cursor
        sheet.merge_cells(f'A{row_cursor}:B{row_cursor}')
        cell = sheet[f'A{row_cursor}']
        cell.value, cell.fill, cell.font = text, styles['table_header_blue_fill'], styles['white_bold_font']
        cell.border = styles['thin_border']
        row_cursor += 1

    def numbered(items):
        nonlocal row_cursor
        for idx, item in enumerate(items, 1):
            num, text = sheet[f'A{row_cursor}'], sheet[f'B{row_cursor}']
            num.value, num.fill = idx, styles['header_light_green_fill']
            num.alignment = Alignment(horizontal='center', vertical='center')
            text.value, text.alignment = item, Alignment(vertical='center', wrap_text=True)
            num.border = text.border = styles['thin_border']
            row_cursor += 1
        row_cursor += 1

    section_header("Project Phases")
    for label, desc in PROJECT_PHASES:
        sheet[f'A{row_cursor}'].value, sheet[f'A{row_cursor}'].font = label, styles['bold_font']
        sheet[f'B{row_cursor}'].value = desc
        sheet[f'A{row_cursor}'].border = sheet[f'B{row_cursor}'].border = styles['thin_border']
        row_cursor += 1
    row_cursor += 1

    section_header("Scope of Work")
    numbered(SCOPE_ITEMS)
    section_header("Exclusions and Dependencies")
    numbered(EXCLUSIONS)
    return sheet


# ==================== TERMS & CONDITIONS SHEET ====================
def _add_terms_and_conditions_sheet(workbook, styles):
    sheet = workbook.create_sheet(title=TERMS_SHEET)
    sheet.sheet_view.showGridLines = False
    sheet.column_dimensions['A'].width = 110

    _title_row(sheet, 1, "Commercial Terms & Conditions", 'A', styles)
    row_cursor = 3
    for title, lines in TERMS_AND_CONDITIONS:
        cell = sheet.cell(row=row_cursor, column=1, value=title)
        cell.fill, cell.font, cell.border = styles['table_header_blue_fill'], styles['white_bold_font'], styles['thin_border']
        row_cursor += 1
        for line in lines:
            cell = sheet.cell(row=row_cursor, column=1, value=line)
            cell.alignment = Alignment(wrap_text=True, vertical='center')
            if not line.startswith('•'):
                cell.font = styles['bold_font'] if line.endswith(':') else Font()
            row_cursor += 1
        row_cursor += 1
    return sheet


# ==================== PROPOSAL SUMMARY SHEET ====================
def _add_proposal_summary_sheet(workbook, state: ProjectState, styles):
    """One row per room with its converted total, then the grand total."""
    sheet = workbook.create_sheet(title=SUMMARY_SHEET)
    sheet.sheet_view.showGridLines = False
    for col, width in {'A': 10, 'B': 45, 'C': 14, 'D': 22}.items():
        sheet.column_dimensions[col].width = width

    _title_row(sheet, 1, "Proposal Summary", 'D', styles)
    header_row = 3
    for col_idx, header in enumerate(['Sr. No', 'Room', 'Line Items', f'Total ({state.currency})'], 1):
        cell = sheet.cell(row=header_row, column=col_idx, value=header)
        cell.fill, cell.font, cell.border = styles['table_header_blue_fill'], styles['white_bold_font'], styles['thin_border']
        cell.alignment = Alignment(horizontal='center', vertical='center')

    row_cursor = header_row + 1
    grand_total = 0.0
    for idx, room in enumerate(state.rooms, 1):
        room_total = convert_currency(room.total, state.currency, state.exchange_rates)
        grand_total += room_total
        for col_idx, value in enumerate([idx, room.name, len(room.boq), room_total], 1):
            cell = sheet.cell(row=row_cursor, column=col_idx, value=value)
            cell.border = styles['thin_border']
            if col_idx == 4:
                cell.number_format = styles['currency_format']
                cell.alignment = Alignment(horizontal='right', vertical='center')
            elif col_idx in (1, 3):
                cell.alignment = Alignment(horizontal='center', vertical='center')
        row_cursor += 1

    sheet.merge_cells(f'A{row_cursor}:C{row_cursor}')
    label = sheet[f'A{row_cursor}']
    label.value, label.font, label.fill = "GRAND TOTAL", Font(bold=True, size=12), styles['total_fill']
    label.alignment = Alignment(horizontal='center', vertical='center')
    total_cell = sheet.cell(row=row_cursor, column=4, value=grand_total)
    total_cell.number_format, total_cell.font, total_cell.fill = styles['currency_format'], Font(bold=True, size=11), styles['total_fill']
    total_cell.alignment = Alignment(horizontal='right', vertical='center')
    for c in range(1, 5):
        sheet.cell(row=row_cursor, column=c).border = styles['thin_border']
    return sheet


# ==================== ROOM BOQ SHEET ====================
def _populate_room_boq_sheet(sheet, room: Room, state: ProjectState, styles):
    """Detailed BOQ table for one room, in the room's item order."""
    last_col = get_column_letter(len(ROOM_COLUMNS))
    _title_row(sheet, 1, f"{room.name} - Bill of Quantities", last_col, styles)

    sheet.merge_cells(f'A2:{last_col}2')
    sheet['A2'].value = f"Requirements: {room.requirements}" if room.requirements else None
    sheet['A2'].alignment = Alignment(wrap_text=True, vertical='top')
    if room.requirements:
        sheet.row_dimensions[2].height = 45

    headers = list(ROOM_COLUMNS)
    headers[6] = f"Unit Price ({state.currency})"
    headers[7] = f"Total Price ({state.currency})"
    sheet.append([])
    sheet.append(headers)
    header_row = sheet.max_row
    for cell in sheet[header_row]:
        cell.fill, cell.font, cell.border = styles["table_header_blue_fill"], styles['white_bold_font'], styles['thin_border']
        cell.alignment = Alignment(horizontal='center', vertical='center', wrap_text=True)

    room_total = 0.0
    for item in room.boq:
        unit_price = convert_currency(item.unit_price, state.currency, state.exchange_rates)
        line_total = unit_price * item.quantity
        room_total += line_total
        sheet.append([item.category, item.brand, item.model_number, item.item_name, item.description,
                      item.quantity, unit_price, line_total, item.notes, None])
        if item.image_url and item.image_url.lower().startswith(('http://', 'https://')):
            link_cell = sheet.cell(row=sheet.max_row, column=len(ROOM_COLUMNS))
            link_cell.value = "View Image"
            link_cell.hyperlink = item.image_url
            link_cell.font = Font(color="0563C1", underline="single")

    sheet.append([None] * 6 + ["Grand Total", room_total])
    total_row = sheet.max_row
    for cell in sheet[total_row]:
        cell.font, cell.fill = Font(bold=True), styles['total_fill']

    for idx, width in enumerate(ROOM_COLUMN_WIDTHS, 1):
        sheet.column_dimensions[get_column_letter(idx)].width = width
    for row in sheet.iter_rows(min_row=header_row + 1, max_row=total_row, max_col=len(ROOM_COLUMNS)):
        for cell in row:
            if isinstance(cell, MergedCell):
                continue
            cell.border = styles['thin_border']
            if cell.column in MONEY_COLUMNS and isinstance(cell.value, (int, float)):
                cell.number_format = styles['currency_format']
                cell.alignment = Alignment(horizontal='right', vertical='top')
            elif cell.column == 6:
                cell.alignment = Alignment(horizontal='center', vertical='top')
            else:
                cell.alignment = Alignment(vertical='top', wrap_text=True)
    sheet.freeze_panes = sheet.cell(row=header_row + 1, column=1)
    return sheet


# ==================== MAIN ENTRY POINT ====================
def validate_export(state: ProjectState):
    if not state.client.project_name or not state.client.project_name.strip():
        raise EmptyStateError("Please enter a project name before exporting.")
    if not any(room.boq for room in state.rooms):
        raise EmptyStateError("There are no BOQ items to export. Generate a BOQ first.")


def generate_company_excel(state: ProjectState) -> bytes:
    """
    Build the complete workbook for the current session and return the .xlsx bytes.
    Prices are converted at the selected rate here; the stored USD values are left alone.
    """
    validate_export(state)
    workbook = openpyxl.Workbook()
    # Default sheet goes first; a room may itself be called "Sheet"
    workbook.remove(workbook.active)
    styles = _define_styles(state.currency)

    _add_version_control_sheet(workbook, state, styles)
    _add_scope_of_work_sheet(workbook, styles)
    _add_terms_and_conditions_sheet(workbook, styles)
    _add_proposal_summary_sheet(workbook, state, styles)

    taken: List[str] = list(FIXED_SHEETS)
    for room in state.rooms:
        if not room.boq:
            continue
        sheet_name = safe_sheet_name(room.name, taken)
        taken.append(sheet_name)
        _populate_room_boq_sheet(workbook.create_sheet(title=sheet_name), room, state, styles)

    workbook.active = workbook[VERSION_SHEET]
    excel_buffer = BytesIO()
    workbook.save(excel_buffer)
    excel_buffer.seek(0)
    logger.info(f"Exported workbook with {len(workbook.sheetnames)} sheets ({len(taken) - len(FIXED_SHEETS)} room sheets)")
    return excel_buffer.getvalue()
