import io

import PIL.Image

import conftest
import nametag_sheets.batch
import nametag_sheets.config
import nametag_sheets.roster
import nametag_sheets.templates


PersonRecord = nametag_sheets.roster.PersonRecord
TemplateImage = nametag_sheets.templates.TemplateImage
GenerationResult = nametag_sheets.config.GenerationResult
CATEGORY_STUDENT = nametag_sheets.config.CATEGORY_STUDENT
CATEGORY_NON_STUDENT = nametag_sheets.config.CATEGORY_NON_STUDENT


#============================================
def sample_roster() -> list[PersonRecord]:
	"""
	Three students and two non-students.
	"""
	return [
		PersonRecord("김민수", "은혜교회", "중2", True),
		PersonRecord("Lee", "", "Staff", False),
		PersonRecord("Park", "Hope", "Grade 4", True),
		PersonRecord("Choi", "", "Grade 6", True),
		PersonRecord("Jung", "Grace", "Pastor", False),
	]


#============================================
def small_pool() -> list[TemplateImage]:
	"""
	One student template with a 2:1 aspect ratio.
	"""
	return [TemplateImage("small.png", conftest.make_png(600, 300, (250, 230, 200)), CATEGORY_STUDENT)]


#============================================
def big_pool() -> list[TemplateImage]:
	"""
	One non-student template with a 8:5 aspect ratio.
	"""
	return [TemplateImage("big.png", conftest.make_png(800, 500, (200, 230, 250)), CATEGORY_NON_STUDENT)]


#============================================
def test_category_totals(sheet) -> None:
	"""
	Students get ten spares, non-students none.
	"""
	groups = nametag_sheets.batch.split_categories(sample_roster())
	assert len(groups[CATEGORY_STUDENT]) == 3
	assert len(groups[CATEGORY_NON_STUDENT]) == 2
	assert nametag_sheets.batch.category_total(3, CATEGORY_STUDENT, sheet) == 13
	assert nametag_sheets.batch.category_total(2, CATEGORY_NON_STUDENT, sheet) == 2
	assert [person.name for person in groups[CATEGORY_STUDENT]] == ["김민수", "Park", "Choi"]


#============================================
def test_tag_size_from_first_template() -> None:
	"""
	Tag height follows the first template's aspect ratio.
	"""
	width, height = nametag_sheets.batch.compute_tag_size(small_pool()[0], 85.0)
	assert width == nametag_sheets.config.mm_to_pixels(85.0)
	assert height == round(width * 300 / 600)


#============================================
def test_arranged_end_to_end(sheet, font_config) -> None:
	"""
	Every tag, spares included, lands on a page for both categories.
	"""
	result = GenerationResult(arranged=True)
	rng = nametag_sheets.templates.make_random_source(7)
	entries = list(
		nametag_sheets.batch.iter_arranged_pages(
			sample_roster(),
			big_pool(),
			small_pool(),
			sheet,
			font_config,
			rng,
			result=result,
		)
	)
	names = [name for name, _data in entries]
	assert names == [f"A4_Page_{index}.png" for index in range(1, len(entries) + 1)]
	assert result.pages == len(entries)
	assert result.pages_by_category[CATEGORY_STUDENT] >= 1
	assert result.pages_by_category[CATEGORY_NON_STUDENT] >= 1
	assert result.totals == {CATEGORY_STUDENT: 13, CATEGORY_NON_STUDENT: 2}
	assert result.placed == result.totals
	assert result.skipped == []
	image = PIL.Image.open(io.BytesIO(entries[0][1]))
	assert image.format == "PNG"
	assert image.size == (2480, 3508)


#============================================
def test_arranged_skips_category_without_templates(sheet, font_config) -> None:
	"""
	A category without templates is skipped and the other still renders.
	"""
	result = GenerationResult(arranged=True)
	rng = nametag_sheets.templates.make_random_source(1)
	entries = list(
		nametag_sheets.batch.iter_arranged_pages(
			sample_roster(),
			big_pool(),
			[],
			sheet,
			font_config,
			rng,
			result=result,
		)
	)
	assert len(entries) == result.pages_by_category[CATEGORY_NON_STUDENT]
	assert CATEGORY_STUDENT not in result.totals
	assert sorted(result.skipped) == sorted(["김민수", "Park", "Choi"])


#============================================
def test_individual_files(font_config) -> None:
	"""
	Individual mode names files by name, group and size.
	"""
	rng = nametag_sheets.templates.make_random_source(2)
	entries = dict(
		nametag_sheets.batch.iter_individual_tags(
			sample_roster(),
			big_pool(),
			small_pool(),
			font_config,
			rng,
		)
	)
	assert set(entries) == {
		"김민수_은혜교회_small.png",
		"Lee_big.png",
		"Park_Hope_small.png",
		"Choi_small.png",
		"Jung_Grace_big.png",
	}
	image = PIL.Image.open(io.BytesIO(entries["Lee_big.png"]))
	assert image.size == (800, 500)


#============================================
def test_individual_missing_template_is_skipped(font_config) -> None:
	"""
	A student with no small templates is omitted without failing the batch.
	"""
	result = GenerationResult(arranged=False)
	rng = nametag_sheets.templates.make_random_source(2)
	entries = list(
		nametag_sheets.batch.iter_individual_tags(
			[PersonRecord("Kim", "", "Grade 3", True)],
			big_pool(),
			[],
			font_config,
			rng,
			result=result,
		)
	)
	assert entries == []
	assert result.skipped == ["Kim"]
	assert result.files == 0


#============================================
def test_filenames_are_safe_and_unique() -> None:
	"""
	Path separators are replaced and duplicates get a suffix.
	"""
	person = PersonRecord("A/B", "C\\D", "x", False)
	assert nametag_sheets.batch.tag_filename(person) == "A_B_C_D_big.png"
	used: set[str] = set()
	assert nametag_sheets.batch.unique_name("Kim_small.png", used) == "Kim_small.png"
	assert nametag_sheets.batch.unique_name("Kim_small.png", used) == "Kim_small_2.png"
	assert nametag_sheets.batch.unique_name("Kim_small.png", used) == "Kim_small_3.png"


#============================================
def test_oversized_tags_get_one_page_each(font_config) -> None:
	"""
	Tags wider than the page are forced onto a page of their own.
	"""
	wide_sheet = nametag_sheets.config.build_sheet_config(300.0, 100.0)
	people = [PersonRecord("Kim", "", "Grade 3", True)]
	result = GenerationResult(arranged=True)
	rng = nametag_sheets.templates.make_random_source(4)
	entries = list(
		nametag_sheets.batch.iter_arranged_pages(
			people,
			big_pool(),
			small_pool(),
			wide_sheet,
			font_config,
			rng,
			result=result,
		)
	)
	assert result.pages_by_category[CATEGORY_STUDENT] == len(people) + 10
	assert len(entries) == len(people) + 10
	assert result.placed == result.totals
	assert result.totals == {CATEGORY_STUDENT: 11}
