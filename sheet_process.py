import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, Field

from utils.errors import UpstreamError

logger = logging.getLogger(__name__)

# Output field names expected by dashboard consumers
SUBHEADING_KEY = "Subheading"
COMPLIANT_KEY = "Compliant"
TOTAL_KEY = "Total"
MISSING_KEY = "Mising"
PERCENT_COMPLIANT_KEY = "%Compliant"
STATUS_KEY_PREFIX = "status_"

# Shown by the sheet in cells that have no data
PLACEHOLDER = "-"


class ColorName(str, Enum):
    """Colour classes recognised in cell backgrounds."""
    RED = "Red"
    GREEN = "Green"
    GRAY = "Gray"


@dataclass(frozen=True)
class Cell:
    """
    A single grid cell.

    Attributes:
        formatted_value: Text as displayed in the sheet, None when the cell is blank
        background_color: Mapping with optional red/green/blue floats in [0, 1]
    """
    formatted_value: Optional[str] = None
    background_color: Optional[Dict[str, float]] = None


RawGrid = List[List[Cell]]


class HeaderNames(BaseModel):
    """
    Header names of the columns read from the sheet.

    Attributes:
        name: Column whose non-empty value opens a new entity
        subheading: Column holding subgroup names attached to the open entity
        compliant: Numeric column, null-coerced
        total: Text column copied verbatim
        missing: Text column copied verbatim
        percent_compliant: Text column copied verbatim
        status_columns: Mapping of output suffix to header name
    """
    name: str = "Service"
    subheading: str = "Subheading"
    compliant: str = "Compliant"
    total: str = "Total"
    missing: str = "Mising"
    percent_compliant: str = "% Compliant"
    status_columns: Dict[str, str] = Field(
        default_factory=lambda: {"C": "Status C", "E": "Status E"}
    )


def rgb_to_color_name(rgb_color: Optional[Dict[str, float]]) -> ColorName:
    """
    Classify an RGB colour into one of the fixed colour names.

    Thresholds match the standard Google Sheets palette: pure red is
    (1, 0, 0) and pure green is (0, 1, 0). Anything else, white and
    yellow included, is Gray.

    Args:
        rgb_color: Mapping with optional red, green and blue floats

    Returns:
        ColorName: The classified colour
    """
    if not rgb_color:
        return ColorName.GRAY

    red = rgb_color.get("red") or 0
    green = rgb_color.get("green") or 0
    blue = rgb_color.get("blue") or 0

    if red > 0.8 and green < 0.2 and blue < 0.2:
        return ColorName.RED
    if green > 0.5 and red < 0.5:
        return ColorName.GREEN
    return ColorName.GRAY


def parse_compliant(value: Optional[str]) -> Optional[Union[int, float]]:
    """
    Parse the compliant column into a number.

    Blank cells, the "-" placeholder, non-numeric text, non-finite values
    and zero all yield None. Unsigned 0x/0o/0b literals are read as
    integers, as JavaScript's Number() does.

    Args:
        value: Formatted cell text

    Returns:
        int for integral values, float otherwise, or None when there is no data
    """
    if value is None:
        return None
    text = value.strip()
    if not text or "_" in text:
        return None
    try:
        if text[:2].lower() in ("0x", "0o", "0b"):
            number = int(text, 0)
            return number or None
        number = float(text)
    except ValueError:
        return None
    if not math.isfinite(number) or number == 0:
        return None
    return int(number) if number.is_integer() else number


def build_header_index(headers: List[Cell]) -> Dict[str, int]:
    """
    Map trimmed header names to their column position.

    Blank headers are skipped. A repeated trimmed name maps to its last column.
    """
    header_index: Dict[str, int] = {}
    for position, cell in enumerate(headers):
        if cell.formatted_value:
            header_index[cell.formatted_value.strip()] = position
    return header_index


def _grouping_value(text: str) -> str:
    """Trimmed name or subheading text, with the placeholder treated as blank."""
    text = text.strip()
    return "" if text == PLACEHOLDER else text


def _cell_data(row: List[Cell], header_index: Dict[str, int], header_name: str) -> Tuple[str, str]:
    position = header_index.get(header_name)
    if position is None or position >= len(row) or row[position] is None:
        return "", ColorName.GRAY.value
    cell = row[position]
    return cell.formatted_value or "", rgb_to_color_name(cell.background_color).value


def transform_grid(
    rows: RawGrid,
    sheet_name: str,
    header_names: Optional[HeaderNames] = None,
) -> Dict[str, Dict[str, Dict[str, Any]]]:
    """
    Reshape a grid into a nested mapping of entity name to record.

    A row with a non-empty name cell opens a new entity. A row with a
    non-empty subheading cell attaches a subheading entry to the entity
    opened most recently, so subheading rows that come before the first
    named row are dropped. Name and subheading cells holding only the
    "-" placeholder count as empty. Entities without subheadings get
    ``Subheading = 0``.

    Args:
        rows: Grid rows, row 0 being the header row
        sheet_name: Top-level key wrapping the result
        header_names: Column headers to read, defaults to HeaderNames()

    Returns:
        dict: ``{sheet_name: {entity_name: record}}``
    """
    header_names = header_names or HeaderNames()
    if not rows:
        logger.warning(f"No rows found for sheet '{sheet_name}'")
        return {sheet_name: {}}

    header_index = build_header_index(rows[0])
    data: Dict[str, Dict[str, Any]] = {}
    current_key: Optional[str] = None

    for row in rows[1:]:
        name_text, _ = _cell_data(row, header_index, header_names.name)
        subheading_text, subheading_colour = _cell_data(row, header_index, header_names.subheading)
        name_value = _grouping_value(name_text)
        subheading_value = _grouping_value(subheading_text)

        if name_value:
            current_key = name_value
            compliant_value, _ = _cell_data(row, header_index, header_names.compliant)
            record: Dict[str, Any] = {
                SUBHEADING_KEY: {},
                COMPLIANT_KEY: parse_compliant(compliant_value),
                TOTAL_KEY: _cell_data(row, header_index, header_names.total)[0],
                MISSING_KEY: _cell_data(row, header_index, header_names.missing)[0],
                PERCENT_COMPLIANT_KEY: _cell_data(row, header_index, header_names.percent_compliant)[0],
            }
            for suffix, status_header in header_names.status_columns.items():
                status_value, status_colour = _cell_data(row, header_index, status_header)
                if status_value:
                    record[f"{STATUS_KEY_PREFIX}{suffix}"] = {
                        "name": status_value,
                        "colour": status_colour,
                    }
            data[current_key] = record

        if current_key is not None and subheading_value:
            data[current_key][SUBHEADING_KEY][subheading_value] = {
                "colour": subheading_colour
            }

    for record in data.values():
        if not record[SUBHEADING_KEY]:
            record[SUBHEADING_KEY] = 0

    logger.info(f"Transformed {len(rows) - 1} rows into {len(data)} entities for sheet '{sheet_name}'")
    return {sheet_name: data}


def _unexpected(detail: str) -> UpstreamError:
    return UpstreamError("Unexpected response from spreadsheet provider", detail)


def _require_object(payload: Any, parser_name: str) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise _unexpected(f"{parser_name} expected a JSON object, got {type(payload).__name__}")
    return payload


def _optional(value: Any, expected_type: type, where: str) -> Any:
    """Return ``value``, or None when absent. Raise UpstreamError when it has the wrong type."""
    if value is None:
        return None
    if not isinstance(value, expected_type):
        raise _unexpected(f"{where} is {type(value).__name__}, expected {expected_type.__name__}")
    return value


def _cell_text(value: Any, where: str) -> Optional[str]:
    """Cell text as a string; scalar JSON values are converted with str()."""
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        raise _unexpected(f"{where} is {type(value).__name__}, expected text")
    return str(value)


def _background(value: Any, where: str) -> Optional[Dict[str, float]]:
    color = _optional(value, dict, where)
    if color is None:
        return None
    for channel in ("red", "green", "blue"):
        level = color.get(channel)
        if level is not None and (isinstance(level, bool) or not isinstance(level, (int, float))):
            raise _unexpected(f"{where}.{channel} is {type(level).__name__}, expected a number")
    return color


class GridFormatParser:
    """
    Parses ``spreadsheets.get`` responses requested with ``includeGridData=true``.

    Every cell carries its formatted text and effective background colour.
    """
    name = "grid"

    @staticmethod
    def request(sheet_id: str, api_key: str, sheet_name: str) -> Tuple[str, Dict[str, str]]:
        url = f"https://sheets.googleapis.com/v4/spreadsheets/{sheet_id}"
        params = {"key": api_key, "ranges": sheet_name, "includeGridData": "true"}
        return url, params

    @staticmethod
    def parse(payload: Any, sheet_name: str) -> RawGrid:
        """
        Extract the rows of ``sheet_name`` from a grid-data response.

        Args:
            payload: Decoded JSON response
            sheet_name: Title of the tab to read

        Returns:
            RawGrid: Rows of cells, empty when the tab or its row data is missing

        Raises:
            UpstreamError: If any level of the payload has the wrong JSON type
        """
        payload = _require_object(payload, "GridFormatParser")
        sheets = _optional(payload.get("sheets"), list, "'sheets'")
        if sheets is None:
            raise _unexpected("Grid response has no 'sheets' list")

        sheet = None
        for position, candidate in enumerate(sheets):
            candidate = _optional(candidate, dict, f"sheets[{position}]") or {}
            properties = _optional(candidate.get("properties"), dict, f"sheets[{position}].properties") or {}
            if properties.get("title") == sheet_name:
                sheet = candidate
                break

        data = _optional(sheet.get("data"), list, "'data'") if sheet else None
        grid_data = _optional(data[0], dict, "'data[0]'") if data else None
        row_data = _optional(grid_data.get("rowData"), list, "'rowData'") if grid_data else None
        if not row_data:
            logger.warning(f"Sheet '{sheet_name}' missing or has no row data in grid response")
            return []

        rows: RawGrid = []
        for row_number, row in enumerate(row_data):
            row = _optional(row, dict, f"rowData[{row_number}]") or {}
            values = _optional(row.get("values"), list, f"rowData[{row_number}].values") or []
            cells = []
            for column, cell in enumerate(values):
                where = f"rowData[{row_number}].values[{column}]"
                cell = _optional(cell, dict, where) or {}
                effective_format = _optional(cell.get("effectiveFormat"), dict, f"{where}.effectiveFormat") or {}
                cells.append(Cell(
                    formatted_value=_cell_text(cell.get("formattedValue"), f"{where}.formattedValue"),
                    background_color=_background(
                        effective_format.get("backgroundColor"), f"{where}.effectiveFormat.backgroundColor"
                    ),
                ))
            rows.append(cells)
        return rows


class FlatValuesParser:
    """
    Parses ``spreadsheets.values.get`` responses, a plain matrix of values
    without formatting. Every cell classifies as Gray.
    """
    name = "values"

    @staticmethod
    def request(sheet_id: str, api_key: str, sheet_name: str) -> Tuple[str, Dict[str, str]]:
        url = f"https://sheets.googleapis.com/v4/spreadsheets/{sheet_id}/values/{sheet_name}"
        return url, {"key": api_key}

    @staticmethod
    def parse(payload: Any, sheet_name: str) -> RawGrid:
        payload = _require_object(payload, "FlatValuesParser")
        values = _optional(payload.get("values"), list, "'values'")
        if values is None:
            # Google omits "values" entirely for an empty range
            logger.warning(f"No values returned for sheet '{sheet_name}'")
            return []

        rows: RawGrid = []
        for row_number, row in enumerate(values):
            row = _optional(row, list, f"values[{row_number}]") or []
            rows.append([
                Cell(formatted_value=_cell_text(value, f"values[{row_number}][{column}]"))
                for column, value in enumerate(row)
            ])
        return rows


PARSERS = {
    GridFormatParser.name: GridFormatParser,
    FlatValuesParser.name: FlatValuesParser,
}


def get_parser(sheet_format: str):
    """
    Look up the parser for a configured response format.

    Raises:
        ValueError: If the format is unknown
    """
    try:
        return PARSERS[sheet_format]
    except KeyError:
        raise ValueError(f"Unknown sheet format: {sheet_format}") from None
