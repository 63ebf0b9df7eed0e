import io

import PIL.Image
import PIL.ImageDraw

import conftest
import nametag_sheets.config
import nametag_sheets.packer
import nametag_sheets.render
import nametag_sheets.roster
import nametag_sheets.templates


Placement = nametag_sheets.packer.Placement
TemplateImage = nametag_sheets.templates.TemplateImage
CATEGORY_STUDENT = nametag_sheets.config.CATEGORY_STUDENT

RED = (220, 20, 20)
BLUE = (20, 20, 220)


#============================================
def split_template() -> TemplateImage:
	"""
	Template with a red left half and a blue right half.
	"""
	image = PIL.Image.new("RGB", (400, 200), BLUE)
	image.paste(RED, (0, 0, 200, 200))
	buffer = io.BytesIO()
	image.save(buffer, format="PNG")
	return TemplateImage(name="split.png", data=buffer.getvalue(), category=CATEGORY_STUDENT)


#============================================
def is_close(pixel: tuple[int, ...], color: tuple[int, int, int], tolerance: int = 30) -> bool:
	"""
	Compare an RGB pixel with a tolerance.
	"""
	return all(abs(pixel[index] - color[index]) <= tolerance for index in range(3))


#============================================
def test_page_size_background_and_lines(sheet, font_config) -> None:
	"""
	Pages are A4, white outside tags, with cut and border lines drawn.
	"""
	template = TemplateImage(name="plain.png", data=conftest.make_png(400, 200, RED), category=CATEGORY_STUDENT)
	placement = Placement(0, 0, 400, 200, False)
	rng = nametag_sheets.templates.make_random_source(1)
	page = nametag_sheets.render.compose_page(
		[placement], [None], [template], True, 400, 200, sheet, font_config, rng,
	)
	assert page.size == (2480, 3508)
	assert page.getpixel((5, 5)) == (255, 255, 255)
	x0 = sheet.margin
	y0 = sheet.margin
	assert page.getpixel((x0, y0 + 50)) == (136, 136, 136)
	assert page.getpixel((x0 + sheet.border, y0 + 50)) == (0, 0, 0)
	assert is_close(page.getpixel((x0 + 200, y0 + 100)), RED)


#============================================
def test_reference_grid_is_drawn(sheet, font_config) -> None:
	"""
	Grid lines sit at the tag pitch from the margin origin.
	"""
	template = TemplateImage(name="plain.png", data=conftest.make_png(400, 200), category=CATEGORY_STUDENT)
	rng = nametag_sheets.templates.make_random_source(1)
	page = nametag_sheets.render.compose_page([], [], [template], True, 400, 200, sheet, font_config, rng)
	pitch_x = 400 + sheet.spacing
	assert page.getpixel((sheet.margin + pitch_x, sheet.margin + 5)) == (224, 224, 224)
	assert page.getpixel((sheet.margin + pitch_x + 3, sheet.margin + 5)) == (255, 255, 255)


#============================================
def test_rotated_tag_turns_clockwise(sheet, font_config) -> None:
	"""
	A rotated placement shows the tag's left edge at the top.
	"""
	placement = Placement(0, 0, 200, 400, True)
	rng = nametag_sheets.templates.make_random_source(1)
	page = nametag_sheets.render.compose_page(
		[placement], [None], [split_template()], True, 400, 200, sheet, font_config, rng,
	)
	center_x = sheet.margin + 100
	assert is_close(page.getpixel((center_x, sheet.margin + 100)), RED)
	assert is_close(page.getpixel((center_x, sheet.margin + 300)), BLUE)


#============================================
def test_unrotated_tag_keeps_orientation(sheet, font_config) -> None:
	"""
	An unrotated placement keeps red on the left.
	"""
	placement = Placement(0, 0, 400, 200, False)
	rng = nametag_sheets.templates.make_random_source(1)
	page = nametag_sheets.render.compose_page(
		[placement], [None], [split_template()], True, 400, 200, sheet, font_config, rng,
	)
	center_y = sheet.margin + 100
	assert is_close(page.getpixel((sheet.margin + 100, center_y)), RED)
	assert is_close(page.getpixel((sheet.margin + 300, center_y)), BLUE)


#============================================
def test_seeded_template_choice_is_repeatable(sheet, font_config) -> None:
	"""
	The same seed picks the same backgrounds.
	"""
	pool = [
		TemplateImage(name="red.png", data=conftest.make_png(400, 200, RED), category=CATEGORY_STUDENT),
		TemplateImage(name="blue.png", data=conftest.make_png(400, 200, BLUE), category=CATEGORY_STUDENT),
	]
	placements = nametag_sheets.packer.pack_tags(400, 200, sheet.available_width, sheet.available_height, 8, sheet.spacing)
	people = [None] * len(placements)
	pages = []
	for _attempt in range(2):
		rng = nametag_sheets.templates.make_random_source(42)
		page = nametag_sheets.render.compose_page(
			placements, people, pool, True, 400, 200, sheet, font_config, rng,
		)
		pages.append(nametag_sheets.render.encode_png(page))
	assert pages[0] == pages[1]


#============================================
def test_cut_lines_skip_empty_placement(sheet) -> None:
	"""
	A zero-width placement draws nothing instead of failing.
	"""
	page = PIL.Image.new("RGB", (sheet.page_width, sheet.page_height), "white")
	draw = PIL.ImageDraw.Draw(page)
	nametag_sheets.render.draw_cut_lines(draw, Placement(0, 0, 0, 500, False), sheet)
	assert page.getpixel((sheet.margin, sheet.margin)) == (255, 255, 255)
