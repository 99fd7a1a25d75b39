"""Import template workbooks: sample rows, column guide, and lookup sheets."""
from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from fleetdesk.schemas.imports import ReferenceEntry
from fleetdesk.services.import_profiles import ImportProfile

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

HEADER_FONT = Font(bold=True)
HEADER_FILL = PatternFill(start_color="DDEBF7", end_color="DDEBF7", fill_type="solid")


def _style_header(sheet, widths: list[int]) -> None:
    for cell in sheet[1]:
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
    for idx, width in enumerate(widths, start=1):
        sheet.column_dimensions[get_column_letter(idx)].width = width
    sheet.freeze_panes = "A2"


def build_template(
    profile: ImportProfile,
    sheet_title: str,
    reference_sheets: list[tuple[str, list[ReferenceEntry]]],
) -> bytes:
    """Render the import template for ``profile`` as XLSX bytes.

    Sheet 1 holds the header row plus sample rows and is the sheet the
    importer reads. The remaining sheets are guidance only.
    """
    wb = Workbook()
    columns = profile.template_columns()

    template = wb.active
    template.title = sheet_title
    template.append([name for name, _, _ in columns])
    for sample in profile.samples:
        template.append([sample.get(name) for name, _, _ in columns])
    _style_header(template, [max(14, len(name) + 4) for name, _, _ in columns])

    guide = wb.create_sheet("Column Descriptions")
    guide.append(["field", "description", "example"])
    for name, description, example in columns:
        guide.append([name, description, example])
    _style_header(guide, [20, 60, 30])

    for title, entries in reference_sheets:
        sheet = wb.create_sheet(title)
        sheet.append(["id", "name"])
        for entry in entries:
            sheet.append([entry.id, entry.name])
        _style_header(sheet, [40, 40])

    output = BytesIO()
    wb.save(output)
    return output.getvalue()
