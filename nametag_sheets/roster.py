"""
Roster parsing and validation.
"""

# Standard Library
import csv
import dataclasses
import io
import pathlib
import zipfile

# PIP3 modules
import openpyxl
import openpyxl.utils.exceptions

# local repo modules
import nametag_sheets as nts
import nametag_sheets.config


STUDENT_MARKER = nts.config.STUDENT_MARKER

FIELD_NAME = "name"
FIELD_GROUP = "group"
FIELD_DETAIL = "detail"
FIELD_STUDENT = "student"

# normalized header -> field
HEADER_ALIASES = {
	"성명": FIELD_NAME,
	"이름": FIELD_NAME,
	"name": FIELD_NAME,
	"fullname": FIELD_NAME,
	"교회": FIELD_GROUP,
	"group": FIELD_GROUP,
	"church": FIELD_GROUP,
	"나이학년직책": FIELD_DETAIL,
	"detail": FIELD_DETAIL,
	"details": FIELD_DETAIL,
	"role": FIELD_DETAIL,
	"학생여부": FIELD_STUDENT,
	"student": FIELD_STUDENT,
	"isstudent": FIELD_STUDENT,
}

FIELD_LABELS = {
	FIELD_NAME: "name",
	FIELD_DETAIL: "age/grade/role",
	FIELD_STUDENT: "student marker",
}


class InputValidationError(ValueError):
	"""
	Raised when one or more roster rows are invalid.
	"""

	def __init__(self, errors: list[str]):
		self.errors = list(errors)
		message = "Roster has errors:\n" + "\n".join(self.errors)
		super().__init__(message)


@dataclasses.dataclass(frozen=True)
class PersonRecord:
	name: str
	group: str
	detail: str
	is_student: bool

	@property
	def has_group(self) -> bool:
		return bool(self.group)


@dataclasses.dataclass
class RosterRow:
	row_number: int
	values: dict[str, str]


#============================================
def normalize_header(header: str) -> str:
	"""
	Normalize a header for forgiving matches ("학생 여부" -> "학생여부").

	Args:
		header: Raw header text.

	Returns:
		Lowercase header with non-alphanumerics removed.
	"""
	return "".join(char for char in str(header).strip().lower() if char.isalnum())


#============================================
def map_headers(headers: list[str]) -> dict[int, str]:
	"""
	Map column indexes to roster fields.

	Args:
		headers: Header cells in column order.

	Returns:
		Dict of column index to field name for recognized headers.
	"""
	mapping: dict[int, str] = {}
	for index, header in enumerate(headers):
		field = HEADER_ALIASES.get(normalize_header(header or ""))
		if field is not None and field not in mapping.values():
			mapping[index] = field
	return mapping


#============================================
def cell_text(value) -> str:
	"""
	Convert a cell value to trimmed text.
	"""
	if value is None:
		return ""
	if isinstance(value, bool):
		return "T" if value else ""
	if isinstance(value, float) and value.is_integer():
		return str(int(value))
	return str(value).strip()


#============================================
def validate_rows(rows: list[RosterRow]) -> list[str]:
	"""
	Check required fields for every row.

	Args:
		rows: Parsed roster rows.

	Returns:
		One message per invalid row, empty when the roster is valid.
	"""
	errors: list[str] = []
	for row in rows:
		for field in (FIELD_NAME, FIELD_DETAIL, FIELD_STUDENT):
			if not row.values.get(field, "").strip():
				errors.append(f"Row {row.row_number}: {FIELD_LABELS[field]} is empty.")
				break
	return errors


#============================================
def build_records(rows: list[RosterRow]) -> list[PersonRecord]:
	"""
	Validate rows and convert them to person records.

	Args:
		rows: Parsed roster rows.

	Returns:
		List of PersonRecord entries in roster order.

	Raises:
		InputValidationError: If any row is invalid.
	"""
	errors = validate_rows(rows)
	if errors:
		raise InputValidationError(errors)
	records = []
	for row in rows:
		records.append(
			PersonRecord(
				name=row.values[FIELD_NAME].strip(),
				group=row.values.get(FIELD_GROUP, "").strip(),
				detail=row.values[FIELD_DETAIL].strip(),
				is_student=row.values[FIELD_STUDENT].strip() == STUDENT_MARKER,
			)
		)
	return records


#============================================
def rows_from_table(table: list[tuple[int, list[str]]]) -> list[RosterRow]:
	"""
	Turn a header row plus data rows into roster rows.

	Args:
		table: List of (row_number, cells); the first entry is the header.

	Returns:
		RosterRow entries, blank rows skipped.
	"""
	if not table:
		return []
	_header_number, headers = table[0]
	mapping = map_headers(headers)
	missing = {FIELD_NAME, FIELD_DETAIL, FIELD_STUDENT} - set(mapping.values())
	if missing:
		labels = ", ".join(FIELD_LABELS[field] for field in sorted(missing))
		raise InputValidationError([f"Missing roster columns: {labels}"])
	rows: list[RosterRow] = []
	for row_number, cells in table[1:]:
		if not any(cell_text(cell) for cell in cells):
			continue
		values = {}
		for index, field in mapping.items():
			values[field] = cell_text(cells[index]) if index < len(cells) else ""
		rows.append(RosterRow(row_number=row_number, values=values))
	return rows


#============================================
def read_xlsx_table(data: bytes) -> list[tuple[int, list]]:
	"""
	Read the first worksheet of an xlsx workbook.

	Args:
		data: Workbook bytes.

	Returns:
		(row_number, cells) per sheet row with 1-based spreadsheet row numbers.
	"""
	try:
		workbook = openpyxl.load_workbook(io.BytesIO(data), read_only=True, data_only=True)
	except (zipfile.BadZipFile, openpyxl.utils.exceptions.InvalidFileException, KeyError, OSError) as error:
		raise InputValidationError([f"Roster is not a valid xlsx file: {error}"]) from error
	try:
		if not workbook.worksheets:
			raise InputValidationError(["Workbook has no worksheets"])
		sheet = workbook.worksheets[0]
		table: list[tuple[int, list]] = []
		# read-only sheets yield gap rows as empty tuples, so the count stays aligned
		for row_number, cells in enumerate(sheet.iter_rows(min_row=1, values_only=True), start=1):
			table.append((row_number, list(cells)))
	finally:
		workbook.close()
	return table


#============================================
def read_csv_table(data: bytes) -> list[tuple[int, list[str]]]:
	"""
	Read a CSV roster with its line numbers.
	"""
	text = data.decode("utf-8-sig")
	reader = csv.reader(io.StringIO(text, newline=""))
	table: list[tuple[int, list[str]]] = []
	for cells in reader:
		table.append((reader.line_num, cells))
	return table


#============================================
def parse_roster_bytes(data: bytes, filename: str) -> list[PersonRecord]:
	"""
	Parse and validate roster bytes.

	Args:
		data: File content.
		filename: Original filename, used to pick the format.

	Returns:
		Validated PersonRecord list.
	"""
	suffix = pathlib.PurePath(filename).suffix.lower()
	if suffix == ".csv":
		table = read_csv_table(data)
	elif suffix in (".xlsx", ".xlsm"):
		table = read_xlsx_table(data)
	else:
		raise InputValidationError([f"Unsupported roster format: {filename}"])
	return build_records(rows_from_table(table))


#============================================
def load_roster(path: pathlib.Path) -> list[PersonRecord]:
	"""
	Load and validate a roster file.
	"""
	path = pathlib.Path(path)
	return parse_roster_bytes(path.read_bytes(), path.name)


#============================================
def records_from_dicts(items: list[dict], first_row: int = 2) -> list[PersonRecord]:
	"""
	Validate request payload records.

	Accepts both field keys (name, group, detail, isStudent) and roster column
	headers. A boolean isStudent is taken as-is.

	Args:
		items: Record dictionaries.
		first_row: Row number reported for the first item.

	Returns:
		Validated PersonRecord list.
	"""
	rows: list[RosterRow] = []
	for offset, item in enumerate(items):
		values: dict[str, str] = {}
		for key, value in item.items():
			field = HEADER_ALIASES.get(normalize_header(key))
			if field is None or field in values:
				continue
			values[field] = cell_text(value)
		if isinstance(item.get("isStudent"), bool) and not item["isStudent"]:
			values[FIELD_STUDENT] = "F"
		rows.append(RosterRow(row_number=first_row + offset, values=values))
	return build_records(rows)


#============================================
def record_to_dict(record: PersonRecord) -> dict:
	"""
	Serialize a record for the HTTP payload.
	"""
	return {
		"name": record.name,
		"group": record.group,
		"detail": record.detail,
		"isStudent": record.is_student,
	}
