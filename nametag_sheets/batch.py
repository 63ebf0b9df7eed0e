"""
Batch orchestration: categories, paging and per-person output.
"""

# Standard Library
import random
from typing import Iterator

# local repo modules
import nametag_sheets as nts
import nametag_sheets.config
import nametag_sheets.packer
import nametag_sheets.render
import nametag_sheets.roster
import nametag_sheets.templates


FontConfig = nts.config.FontConfig
SheetConfig = nts.config.SheetConfig
GenerationResult = nts.config.GenerationResult
PersonRecord = nts.roster.PersonRecord
TemplateImage = nts.templates.TemplateImage

CATEGORY_STUDENT = nts.config.CATEGORY_STUDENT
CATEGORY_NON_STUDENT = nts.config.CATEGORY_NON_STUDENT
CATEGORIES = nts.config.CATEGORIES
PROGRESS_UPDATE_EVERY = nts.config.PROGRESS_UPDATE_EVERY


class MissingAssetError(LookupError):
	"""
	Raised when a category has no template image.
	"""


#============================================
def is_small(category: str) -> bool:
	"""
	Student tags use the small layout.
	"""
	return category == CATEGORY_STUDENT


#============================================
def category_of(person: PersonRecord) -> str:
	"""
	Return the category for a person.
	"""
	if person.is_student:
		return CATEGORY_STUDENT
	return CATEGORY_NON_STUDENT


#============================================
def split_categories(records: list[PersonRecord]) -> dict[str, list[PersonRecord]]:
	"""
	Partition records into the two categories, keeping roster order.

	Args:
		records: Person records.

	Returns:
		Dict of category to records, with both categories present.
	"""
	groups: dict[str, list[PersonRecord]] = {category: [] for category in CATEGORIES}
	for person in records:
		groups[category_of(person)].append(person)
	return groups


#============================================
def category_total(count: int, category: str, sheet: SheetConfig) -> int:
	"""
	Number of tags to print for a category, spares included.
	"""
	return count + sheet.spares_for(category)


#============================================
def template_pool(
	category: str,
	big_templates: list[TemplateImage],
	small_templates: list[TemplateImage],
) -> list[TemplateImage]:
	"""
	Select the template pool for a category.
	"""
	if is_small(category):
		return small_templates
	return big_templates


#============================================
def require_pool(pool: list[TemplateImage], category: str) -> list[TemplateImage]:
	"""
	Return the pool or raise when it is empty.

	Raises:
		MissingAssetError: If no template exists for the category.
	"""
	if not pool:
		raise MissingAssetError(f"No template images for category {category}")
	return pool


#============================================
def compute_tag_size(template: TemplateImage, width_mm: float) -> tuple[int, int]:
	"""
	Compute tag pixel size from a width and the template aspect ratio.

	Args:
		template: First template of the category.
		width_mm: Tag width in millimetres.

	Returns:
		(width_px, height_px).
	"""
	template_width, template_height = nts.templates.image_size(template)
	width_px = nts.config.mm_to_pixels(width_mm)
	height_px = int(round(width_px * template_height / template_width))
	return (width_px, height_px)


#============================================
def iter_category_pages(
	people: list[PersonRecord],
	pool: list[TemplateImage],
	category: str,
	sheet: SheetConfig,
	font_config: FontConfig,
	rng: random.Random,
	result: GenerationResult,
	verbose: bool = False,
) -> Iterator[bytes]:
	"""
	Render the pages of one category.

	The packer runs once per page for the remaining count, so the page count
	equals the number of packer calls needed to place every tag.

	Args:
		people: Records of this category.
		pool: Template pool, non-empty.
		category: Category name.
		sheet: Sheet configuration.
		font_config: Font lookup configuration.
		rng: Random source for template choice.
		result: Result to update with counts.
		verbose: Print progress.

	Yields:
		PNG bytes per page.
	"""
	small = is_small(category)
	tag_width, tag_height = compute_tag_size(pool[0], sheet.width_mm_for(category))
	total = category_total(len(people), category, sheet)
	result.totals[category] = total
	result.tag_sizes[category] = (tag_width, tag_height)
	result.placed.setdefault(category, 0)
	result.pages_by_category.setdefault(category, 0)
	slots: list[PersonRecord | None] = list(people) + [None] * (total - len(people))
	decoded: dict = {}
	processed = 0
	while processed < total:
		placements = nts.packer.pack_page(
			tag_width,
			tag_height,
			sheet.available_width,
			sheet.available_height,
			total - processed,
			sheet.spacing,
		)
		page = nts.render.compose_page(
			placements,
			slots[processed:processed + len(placements)],
			pool,
			small,
			tag_width,
			tag_height,
			sheet,
			font_config,
			rng,
			decoded,
		)
		processed += len(placements)
		result.placed[category] += len(placements)
		result.pages_by_category[category] += 1
		if verbose:
			nts.render.print_progress(f"Pages ({category})", processed, total)
		yield nts.render.encode_png(page)
	if verbose and total > 0:
		print()


#============================================
def iter_arranged_pages(
	records: list[PersonRecord],
	big_templates: list[TemplateImage],
	small_templates: list[TemplateImage],
	sheet: SheetConfig,
	font_config: FontConfig,
	rng: random.Random,
	result: GenerationResult | None = None,
	verbose: bool = False,
) -> Iterator[tuple[str, bytes]]:
	"""
	Render A4 print sheets, students first.

	A category without records produces no pages. A category with records but
	no template is skipped with a warning.

	Args:
		records: All person records.
		big_templates: Non-student template pool.
		small_templates: Student template pool.
		sheet: Sheet configuration.
		font_config: Font lookup configuration.
		rng: Random source for template choice.
		result: Optional result to fill in.
		verbose: Print progress and warnings.

	Yields:
		(A4_Page_<n>.png, png_bytes) pairs.
	"""
	if result is None:
		result = GenerationResult(arranged=True)
	groups = split_categories(records)
	page_number = 0
	for category in CATEGORIES:
		people = groups[category]
		if not people:
			continue
		try:
			pool = require_pool(template_pool(category, big_templates, small_templates), category)
		except MissingAssetError as error:
			result.skipped.extend(person.name for person in people)
			if verbose:
				print(f"Skipping {len(people)} {category} tags: {error}")
			continue
		for page_data in iter_category_pages(
			people,
			pool,
			category,
			sheet,
			font_config,
			rng,
			result,
			verbose=verbose,
		):
			page_number += 1
			result.pages = page_number
			yield (f"A4_Page_{page_number}.png", page_data)


#============================================
def tag_filename(person: PersonRecord) -> str:
	"""
	Build the archive name for an individual tag.

	Args:
		person: Person record.

	Returns:
		<name>[_<group>]_<small|big>.png with path separators replaced.
	"""
	group_part = f"_{person.group}" if person.has_group else ""
	size_part = "small" if person.is_student else "big"
	name = f"{person.name}{group_part}_{size_part}"
	for separator in ("/", "\\"):
		name = name.replace(separator, "_")
	return f"{name}.png"


#============================================
def unique_name(name: str, used: set[str]) -> str:
	"""
	Suffix a filename until it is unused, then record it.
	"""
	candidate = name
	stem, dot, suffix = name.rpartition(".")
	counter = 2
	while candidate in used:
		candidate = f"{stem}_{counter}{dot}{suffix}"
		counter += 1
	used.add(candidate)
	return candidate


#============================================
def iter_individual_tags(
	records: list[PersonRecord],
	big_templates: list[TemplateImage],
	small_templates: list[TemplateImage],
	font_config: FontConfig,
	rng: random.Random,
	result: GenerationResult | None = None,
	verbose: bool = False,
) -> Iterator[tuple[str, bytes]]:
	"""
	Render one tag image per person.

	A person whose category has no template is skipped and the batch
	continues.

	Args:
		records: All person records.
		big_templates: Non-student template pool.
		small_templates: Student template pool.
		font_config: Font lookup configuration.
		rng: Random source for template choice.
		result: Optional result to fill in.
		verbose: Print progress and warnings.

	Yields:
		(filename, png_bytes) pairs.
	"""
	if result is None:
		result = GenerationResult(arranged=False)
	used: set[str] = set()
	total = len(records)
	for index, person in enumerate(records, start=1):
		category = category_of(person)
		result.totals[category] = result.totals.get(category, 0) + 1
		try:
			pool = require_pool(template_pool(category, big_templates, small_templates), category)
		except MissingAssetError as error:
			result.skipped.append(person.name)
			if verbose:
				print(f"Skipping {person.name}: {error}")
			continue
		template = nts.templates.choose_template(pool, rng)
		data = nts.render.render_tag(person, template.data, is_small(category), font_config)
		result.files += 1
		result.placed[category] = result.placed.get(category, 0) + 1
		if verbose and (index % PROGRESS_UPDATE_EVERY == 0 or index == total):
			nts.render.print_progress("Tags", index, total)
		yield (unique_name(tag_filename(person), used), data)
	if verbose and total > 0:
		print()


#============================================
def iter_outputs(
	records: list[PersonRecord],
	big_templates: list[TemplateImage],
	small_templates: list[TemplateImage],
	arranged: bool,
	sheet: SheetConfig,
	font_config: FontConfig,
	rng: random.Random,
	result: GenerationResult | None = None,
	verbose: bool = False,
) -> Iterator[tuple[str, bytes]]:
	"""
	Dispatch to arranged pages or individual tags.
	"""
	if arranged:
		return iter_arranged_pages(
			records,
			big_templates,
			small_templates,
			sheet,
			font_config,
			rng,
			result=result,
			verbose=verbose,
		)
	return iter_individual_tags(
		records,
		big_templates,
		small_templates,
		font_config,
		rng,
		result=result,
		verbose=verbose,
	)
