"""
Shared configuration and constants.
"""

import dataclasses
import math
import pathlib


PIXELS_PER_INCH = 300
MM_PER_INCH = 25.4

PAGE_WIDTH_MM = 210.0
PAGE_HEIGHT_MM = 297.0
PAGE_MARGIN_MM = 10.0
TAG_SPACING_MM = 2.0
BORDER_MM = 1.0

DEFAULT_STUDENT_WIDTH_MM = 85.0
DEFAULT_NON_STUDENT_WIDTH_MM = 100.0

STUDENT_SPARE_COUNT = 10
NON_STUDENT_SPARE_COUNT = 0
STUDENT_MARKER = "T"

PACK_STEP = 10

PAGE_BACKGROUND = "#ffffff"
GRID_COLOR = "#e0e0e0"
GRID_LINE_WIDTH = 1
CUT_LINE_COLOR = "#888888"
BORDER_COLOR = "#000000"
TEXT_COLOR = "#000000"
LINE_WIDTH = 1

PROGRESS_BAR_WIDTH = 20
PROGRESS_UPDATE_EVERY = 5
ZIP_COMPRESS_LEVEL = 6
ARCHIVE_NAME = "nametags.zip"

CATEGORY_STUDENT = "student"
CATEGORY_NON_STUDENT = "non-student"
CATEGORIES = (CATEGORY_STUDENT, CATEGORY_NON_STUDENT)

DEFAULT_FONT_PATH = pathlib.Path("fonts") / "NotoSansKR-Regular.ttf"
# font files tried in order after the bundled font
FONT_FAMILIES = (
	"NotoSansKR-Regular.ttf",
	"malgun.ttf",
	"AppleSDGothicNeo.ttc",
	"NotoSansCJK-Regular.ttc",
	"NotoSansCJKkr-Regular.otf",
	"dotum.ttc",
	"gulim.ttc",
	"batang.ttc",
	"NanumGothic.ttf",
	"DejaVuSans.ttf",
	"Arial.ttf",
)

# font sizes in pixels, keyed by small tag flag
NAME_FONT_SIZE = {True: 100, False: 180}
GROUP_FONT_SIZE = {True: 44, False: 64}
DETAIL_FONT_SIZE = {True: 60, False: 120}

# group x as a fraction of tag width
GROUP_LEFT_FRACTION = {True: 0.10, False: 0.15}

# y offsets in pixels relative to the tag centre
GROUP_OFFSET_Y = {True: -60, False: -160}
NAME_OFFSET_Y = {True: 20, False: 40}
DETAIL_OFFSET_Y = {True: 120, False: 200}
NAME_OFFSET_Y_NO_GROUP = {True: -20, False: 10}
DETAIL_OFFSET_Y_NO_GROUP = {True: 80, False: 170}


#============================================
def mm_to_pixels(value: float) -> int:
	"""
	Convert millimetres to pixels at the print resolution.

	Args:
		value: Length in millimetres.

	Returns:
		Length in whole pixels.
	"""
	return int(round(value * PIXELS_PER_INCH / MM_PER_INCH))


#============================================
def check_width_mm(value) -> float:
	"""
	Validate a tag width given in millimetres.

	Args:
		value: Width as a number or numeric string.

	Returns:
		The width as a float.

	Raises:
		ValueError: If the width is not finite or is under one pixel.
	"""
	width = float(value)
	if not math.isfinite(width) or mm_to_pixels(width) < 1:
		raise ValueError(f"Tag width must be at least one pixel wide, got {value!r} mm")
	return width


@dataclasses.dataclass(frozen=True)
class FontConfig:
	font_path: pathlib.Path | None
	bundled_available: bool
	families: tuple[str, ...]


@dataclasses.dataclass
class SheetConfig:
	student_width_mm: float
	non_student_width_mm: float
	page_width: int
	page_height: int
	margin: int
	spacing: int
	border: int
	student_spares: int
	non_student_spares: int

	@property
	def available_width(self) -> int:
		return self.page_width - 2 * self.margin

	@property
	def available_height(self) -> int:
		return self.page_height - 2 * self.margin

	def width_mm_for(self, category: str) -> float:
		if category == CATEGORY_STUDENT:
			return self.student_width_mm
		return self.non_student_width_mm

	def spares_for(self, category: str) -> int:
		if category == CATEGORY_STUDENT:
			return self.student_spares
		return self.non_student_spares


@dataclasses.dataclass
class GenerationResult:
	arranged: bool
	pages: int = 0
	files: int = 0
	totals: dict[str, int] = dataclasses.field(default_factory=dict)
	placed: dict[str, int] = dataclasses.field(default_factory=dict)
	pages_by_category: dict[str, int] = dataclasses.field(default_factory=dict)
	tag_sizes: dict[str, tuple[int, int]] = dataclasses.field(default_factory=dict)
	skipped: list[str] = dataclasses.field(default_factory=list)


#============================================
def build_sheet_config(
	student_width_mm: float = DEFAULT_STUDENT_WIDTH_MM,
	non_student_width_mm: float = DEFAULT_NON_STUDENT_WIDTH_MM,
) -> SheetConfig:
	"""
	Build an A4 sheet configuration from tag widths.

	Args:
		student_width_mm: Student tag width in millimetres.
		non_student_width_mm: Non-student tag width in millimetres.

	Returns:
		SheetConfig with all lengths in pixels.
	"""
	return SheetConfig(
		student_width_mm=float(student_width_mm),
		non_student_width_mm=float(non_student_width_mm),
		page_width=mm_to_pixels(PAGE_WIDTH_MM),
		page_height=mm_to_pixels(PAGE_HEIGHT_MM),
		margin=mm_to_pixels(PAGE_MARGIN_MM),
		spacing=mm_to_pixels(TAG_SPACING_MM),
		border=mm_to_pixels(BORDER_MM),
		student_spares=STUDENT_SPARE_COUNT,
		non_student_spares=NON_STUDENT_SPARE_COUNT,
	)


#============================================
def build_font_config(
	font_path: str | pathlib.Path | None = None,
	families: tuple[str, ...] = FONT_FAMILIES,
) -> FontConfig:
	"""
	Resolve the bundled font once at startup.

	Args:
		font_path: Optional bundled font file; defaults to fonts/NotoSansKR-Regular.ttf.
		families: Font files to try when the bundled font is missing.

	Returns:
		FontConfig for the renderer.
	"""
	path = pathlib.Path(font_path) if font_path is not None else DEFAULT_FONT_PATH
	available = path.is_file()
	return FontConfig(
		font_path=path if available else None,
		bundled_available=available,
		families=tuple(families),
	)
