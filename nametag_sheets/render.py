"""
Tag rendering and page composition.
"""

# Standard Library
import dataclasses
import functools
import io
import random

# PIP3 modules
import PIL.Image
import PIL.ImageDraw
import PIL.ImageFont

# local repo modules
import nametag_sheets as nts
import nametag_sheets.config
import nametag_sheets.packer
import nametag_sheets.roster
import nametag_sheets.templates


FontConfig = nts.config.FontConfig
SheetConfig = nts.config.SheetConfig
Placement = nts.packer.Placement
PersonRecord = nts.roster.PersonRecord
TemplateImage = nts.templates.TemplateImage
decode_image = nts.templates.decode_image

NAME_FONT_SIZE = nts.config.NAME_FONT_SIZE
GROUP_FONT_SIZE = nts.config.GROUP_FONT_SIZE
DETAIL_FONT_SIZE = nts.config.DETAIL_FONT_SIZE
GROUP_LEFT_FRACTION = nts.config.GROUP_LEFT_FRACTION
GROUP_OFFSET_Y = nts.config.GROUP_OFFSET_Y
NAME_OFFSET_Y = nts.config.NAME_OFFSET_Y
DETAIL_OFFSET_Y = nts.config.DETAIL_OFFSET_Y
NAME_OFFSET_Y_NO_GROUP = nts.config.NAME_OFFSET_Y_NO_GROUP
DETAIL_OFFSET_Y_NO_GROUP = nts.config.DETAIL_OFFSET_Y_NO_GROUP
PAGE_BACKGROUND = nts.config.PAGE_BACKGROUND
GRID_COLOR = nts.config.GRID_COLOR
GRID_LINE_WIDTH = nts.config.GRID_LINE_WIDTH
CUT_LINE_COLOR = nts.config.CUT_LINE_COLOR
BORDER_COLOR = nts.config.BORDER_COLOR
TEXT_COLOR = nts.config.TEXT_COLOR
LINE_WIDTH = nts.config.LINE_WIDTH
PROGRESS_BAR_WIDTH = nts.config.PROGRESS_BAR_WIDTH


@dataclasses.dataclass(frozen=True)
class TextLine:
	field: str
	text: str
	x: float
	y: float
	font_size: int
	align: str
	bold: bool


#============================================
def print_progress(prefix: str, current: int, total: int) -> None:
	"""
	Print a simple progress bar.

	Args:
		prefix: Label text.
		current: Current count.
		total: Total count.
	"""
	if total <= 0:
		return
	percent = int(round((current / total) * 100.0))
	filled = int(round(PROGRESS_BAR_WIDTH * percent / 100.0))
	bar = "#" * filled + "-" * (PROGRESS_BAR_WIDTH - filled)
	print(f"{prefix} [{bar}] {current}/{total} ({percent}%)", end="\r")


#============================================
def font_candidates(font_config: FontConfig) -> tuple[str, ...]:
	"""
	List font files in lookup order, bundled font first.
	"""
	candidates: list[str] = []
	if font_config.bundled_available and font_config.font_path is not None:
		candidates.append(str(font_config.font_path))
	candidates.extend(font_config.families)
	return tuple(candidates)


#============================================
@functools.lru_cache(maxsize=64)
def _load_font(candidates: tuple[str, ...], size: int):
	for candidate in candidates:
		try:
			return PIL.ImageFont.truetype(candidate, size)
		except OSError:
			continue
	try:
		return PIL.ImageFont.load_default(size=size)
	except TypeError:
		# Pillow before 10.1 has no sized default font
		return PIL.ImageFont.load_default()


#============================================
def load_font(font_config: FontConfig, size: int):
	"""
	Load the first available font at a pixel size.

	Falls back to the Pillow default font so rendering never fails for a
	missing font.

	Args:
		font_config: Font lookup configuration.
		size: Font size in pixels.

	Returns:
		A Pillow font object.
	"""
	return _load_font(font_candidates(font_config), int(size))


#============================================
def compute_text_layout(
	person: PersonRecord,
	width: int,
	height: int,
	small: bool,
) -> list[TextLine]:
	"""
	Compute text positions for one tag.

	With a group the group line is drawn left-aligned above the centred name
	and detail. Without a group only name and detail are drawn, at their own
	offsets.

	Args:
		person: Person record.
		width: Tag image width.
		height: Tag image height.
		small: True for student (small) tags.

	Returns:
		Text lines in drawing order; each y is the line's vertical centre.
	"""
	center_x = width / 2.0
	center_y = height / 2.0
	lines: list[TextLine] = []
	if person.has_group:
		lines.append(
			TextLine(
				field="group",
				text=person.group,
				x=width * GROUP_LEFT_FRACTION[small],
				y=center_y + GROUP_OFFSET_Y[small],
				font_size=GROUP_FONT_SIZE[small],
				align="left",
				bold=False,
			)
		)
		name_y = center_y + NAME_OFFSET_Y[small]
		detail_y = center_y + DETAIL_OFFSET_Y[small]
	else:
		name_y = center_y + NAME_OFFSET_Y_NO_GROUP[small]
		detail_y = center_y + DETAIL_OFFSET_Y_NO_GROUP[small]
	lines.append(
		TextLine(
			field="name",
			text=person.name,
			x=center_x,
			y=name_y,
			font_size=NAME_FONT_SIZE[small],
			align="center",
			bold=True,
		)
	)
	lines.append(
		TextLine(
			field="detail",
			text=person.detail,
			x=center_x,
			y=detail_y,
			font_size=DETAIL_FONT_SIZE[small],
			align="center",
			bold=False,
		)
	)
	return lines


#============================================
def draw_text_line(
	draw: PIL.ImageDraw.ImageDraw,
	line: TextLine,
	font_config: FontConfig,
) -> None:
	"""
	Draw one text line, vertically centred on line.y.

	Args:
		draw: Pillow draw context.
		line: Text line to draw.
		font_config: Font lookup configuration.
	"""
	font = load_font(font_config, line.font_size)
	stroke_width = max(1, line.font_size // 40) if line.bold else 0
	left, top, right, bottom = draw.textbbox(
		(0, 0),
		line.text,
		font=font,
		stroke_width=stroke_width,
	)
	if line.align == "center":
		x = line.x - (left + right) / 2.0
	else:
		x = line.x - left
	y = line.y - (top + bottom) / 2.0
	draw.text(
		(x, y),
		line.text,
		font=font,
		fill=TEXT_COLOR,
		stroke_width=stroke_width,
		stroke_fill=TEXT_COLOR,
	)


#============================================
def draw_tag(
	person: PersonRecord,
	background: PIL.Image.Image,
	small: bool,
	font_config: FontConfig,
) -> PIL.Image.Image:
	"""
	Draw a person's text over a copy of a background image.

	Args:
		person: Person record.
		background: Decoded background image.
		small: True for student (small) tags.
		font_config: Font lookup configuration.

	Returns:
		New RGBA image the size of the background.
	"""
	image = background.convert("RGBA")
	draw = PIL.ImageDraw.Draw(image)
	for line in compute_text_layout(person, image.width, image.height, small):
		draw_text_line(draw, line, font_config)
	return image


#============================================
def encode_png(image: PIL.Image.Image) -> bytes:
	"""
	Encode an image as PNG bytes.
	"""
	buffer = io.BytesIO()
	image.save(buffer, format="PNG")
	return buffer.getvalue()


#============================================
def render_tag(
	person: PersonRecord,
	background_data: bytes,
	small: bool,
	font_config: FontConfig,
) -> bytes:
	"""
	Render one tag to PNG bytes.

	Args:
		person: Person record.
		background_data: Encoded background image.
		small: True for student (small) tags.
		font_config: Font lookup configuration.

	Returns:
		PNG bytes the size of the background.

	Raises:
		ImageDecodeError: If the background cannot be decoded.
	"""
	background = decode_image(background_data)
	return encode_png(draw_tag(person, background, small, font_config))


#============================================
def draw_reference_grid(
	draw: PIL.ImageDraw.ImageDraw,
	tag_width: int,
	tag_height: int,
	sheet: SheetConfig,
) -> None:
	"""
	Draw the light alignment grid at the unrotated tag pitch.
	"""
	pitch_x = tag_width + sheet.spacing
	pitch_y = tag_height + sheet.spacing
	if pitch_x <= 0 or pitch_y <= 0:
		return
	columns = sheet.available_width // pitch_x
	rows = sheet.available_height // pitch_y
	right = sheet.page_width - sheet.margin
	bottom = sheet.page_height - sheet.margin
	for row in range(rows + 1):
		y = sheet.margin + row * pitch_y
		draw.line([(sheet.margin, y), (right, y)], fill=GRID_COLOR, width=GRID_LINE_WIDTH)
	for col in range(columns + 1):
		x = sheet.margin + col * pitch_x
		draw.line([(x, sheet.margin), (x, bottom)], fill=GRID_COLOR, width=GRID_LINE_WIDTH)


#============================================
def interior_box(placement: Placement, sheet: SheetConfig) -> tuple[int, int, int, int]:
	"""
	Compute the area inside the border as (x, y, width, height) on the page.
	"""
	x = sheet.margin + placement.x + sheet.border
	y = sheet.margin + placement.y + sheet.border
	width = max(1, placement.width - 2 * sheet.border)
	height = max(1, placement.height - 2 * sheet.border)
	return (x, y, width, height)


#============================================
def paste_tag(
	page: PIL.Image.Image,
	tag_image: PIL.Image.Image,
	placement: Placement,
	sheet: SheetConfig,
) -> None:
	"""
	Scale a tag into the placement interior, rotating it clockwise when needed.

	Args:
		page: Page canvas.
		tag_image: Tag image in its natural orientation.
		placement: Target placement.
		sheet: Sheet geometry.
	"""
	x, y, width, height = interior_box(placement, sheet)
	if placement.rotated:
		scaled = tag_image.resize((height, width), PIL.Image.Resampling.LANCZOS)
		scaled = scaled.transpose(PIL.Image.Transpose.ROTATE_270)
	else:
		scaled = tag_image.resize((width, height), PIL.Image.Resampling.LANCZOS)
	if scaled.mode == "RGBA":
		page.paste(scaled, (x, y), scaled)
	else:
		page.paste(scaled, (x, y))


#============================================
def draw_cut_lines(
	draw: PIL.ImageDraw.ImageDraw,
	placement: Placement,
	sheet: SheetConfig,
) -> None:
	"""
	Draw the outer cut rectangle and the inner border for one placement.
	"""
	x0 = sheet.margin + placement.x
	y0 = sheet.margin + placement.y
	x1 = x0 + placement.width - 1
	y1 = y0 + placement.height - 1
	if x1 < x0 or y1 < y0:
		return
	draw.rectangle([x0, y0, x1, y1], outline=CUT_LINE_COLOR, width=LINE_WIDTH)
	inset = sheet.border
	if x1 - inset > x0 + inset and y1 - inset > y0 + inset:
		draw.rectangle(
			[x0 + inset, y0 + inset, x1 - inset, y1 - inset],
			outline=BORDER_COLOR,
			width=LINE_WIDTH,
		)


#============================================
def compose_page(
	placements: list[Placement],
	people: list[PersonRecord | None],
	pool: list[TemplateImage],
	small: bool,
	tag_width: int,
	tag_height: int,
	sheet: SheetConfig,
	font_config: FontConfig,
	rng: random.Random,
	decoded: dict[TemplateImage, PIL.Image.Image] | None = None,
) -> PIL.Image.Image:
	"""
	Compose one print page.

	Args:
		placements: Packed placements for this page.
		people: One entry per placement; None marks a blank spare.
		pool: Category template pool.
		small: True for student (small) tags.
		tag_width: Unrotated tag width, used for the reference grid.
		tag_height: Unrotated tag height.
		sheet: Sheet geometry.
		font_config: Font lookup configuration.
		rng: Random source for template choice.
		decoded: Optional cache of decoded templates.

	Returns:
		RGB page image.
	"""
	if decoded is None:
		decoded = {}
	page = PIL.Image.new("RGB", (sheet.page_width, sheet.page_height), PAGE_BACKGROUND)
	draw = PIL.ImageDraw.Draw(page)
	draw_reference_grid(draw, tag_width, tag_height, sheet)
	for placement, person in zip(placements, people):
		template = nts.templates.choose_template(pool, rng)
		background = decoded.get(template)
		if background is None:
			background = decode_image(template.data)
			decoded[template] = background
		if person is None:
			tag_image = background
		else:
			tag_image = draw_tag(person, background, small, font_config)
		paste_tag(page, tag_image, placement, sheet)
		draw_cut_lines(draw, placement, sheet)
	return page
