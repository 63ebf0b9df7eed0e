"""
Greedy scanline packing of equal-sized tags with 90 degree rotation.
"""

# Standard Library
import dataclasses

# local repo modules
import nametag_sheets as nts
import nametag_sheets.config


PACK_STEP = nts.config.PACK_STEP


@dataclasses.dataclass(frozen=True)
class Placement:
	x: int
	y: int
	width: int
	height: int
	rotated: bool

	def padded_box(self, spacing: int) -> tuple[int, int, int, int]:
		"""
		Footprint plus spacing on the right and bottom edges as (x0, y0, x1, y1).
		"""
		return (self.x, self.y, self.x + self.width + spacing, self.y + self.height + spacing)


#============================================
def boxes_intersect(
	box_a: tuple[int, int, int, int],
	box_b: tuple[int, int, int, int],
) -> bool:
	"""
	Check whether two boxes overlap.

	Args:
		box_a: First box as (x0, y0, x1, y1).
		box_b: Second box.

	Returns:
		True if the interiors overlap; touching edges do not count.
	"""
	left = max(box_a[0], box_b[0])
	right = min(box_a[2], box_b[2])
	top = max(box_a[1], box_b[1])
	bottom = min(box_a[3], box_b[3])
	return right > left and bottom > top


#============================================
def find_blocker(
	box: tuple[int, int, int, int],
	used: list[tuple[int, int, int, int]],
) -> tuple[int, int, int, int] | None:
	"""
	Return the first used box that intersects the candidate, if any.
	"""
	for area in used:
		if boxes_intersect(box, area):
			return area
	return None


#============================================
def find_position(
	width: int,
	height: int,
	available_width: int,
	available_height: int,
	spacing: int,
	used: list[tuple[int, int, int, int]],
) -> tuple[int, int] | None:
	"""
	Scan row-major for the first free top-left position of one orientation.

	Candidates sit on a grid of min(PACK_STEP, extent) per axis. When a
	candidate is blocked, every grid x left of the blocker's right edge is
	blocked by the same box, so the scan jumps past it.

	Args:
		width: Orientation width.
		height: Orientation height.
		available_width: Packing area width.
		available_height: Packing area height.
		spacing: Padding added to the right and bottom edges.
		used: Padded boxes already placed.

	Returns:
		(x, y) or None when the orientation does not fit anywhere.
	"""
	if width <= 0 or height <= 0:
		return None
	step_x = min(PACK_STEP, width)
	step_y = min(PACK_STEP, height)
	y = 0
	while y <= available_height - height:
		x = 0
		while x <= available_width - width:
			box = (x, y, x + width + spacing, y + height + spacing)
			blocker = find_blocker(box, used)
			if blocker is None:
				return (x, y)
			# next grid x at or past the blocker's right edge
			skip = blocker[2] - x
			x += max(step_x, -(-skip // step_x) * step_x)
		y += step_y
	return None


#============================================
def pack_tags(
	tag_width: int,
	tag_height: int,
	available_width: int,
	available_height: int,
	count: int,
	spacing: int,
) -> list[Placement]:
	"""
	Place up to count tags onto one page, greedily and without backtracking.

	Each tag tries the unrotated orientation first, then the rotated one.
	Packing stops at the first tag that fits in neither.

	Args:
		tag_width: Tag width in pixels.
		tag_height: Tag height in pixels.
		available_width: Page width inside the margins.
		available_height: Page height inside the margins.
		count: Number of tags still to place.
		spacing: Minimum gap between tags.

	Returns:
		Placements in placement order, relative to the margin origin.
	"""
	placements: list[Placement] = []
	used: list[tuple[int, int, int, int]] = []
	orientations = (
		(tag_width, tag_height, False),
		(tag_height, tag_width, True),
	)
	for _index in range(count):
		placement = None
		for width, height, rotated in orientations:
			position = find_position(
				width,
				height,
				available_width,
				available_height,
				spacing,
				used,
			)
			if position is not None:
				placement = Placement(position[0], position[1], width, height, rotated)
				break
		if placement is None:
			break
		placements.append(placement)
		used.append(placement.padded_box(spacing))
	return placements


#============================================
def fallback_placement(tag_width: int, tag_height: int) -> Placement:
	"""
	Force a single unrotated placement at the origin for oversized tags.
	"""
	return Placement(0, 0, tag_width, tag_height, False)


#============================================
def pack_page(
	tag_width: int,
	tag_height: int,
	available_width: int,
	available_height: int,
	count: int,
	spacing: int,
) -> list[Placement]:
	"""
	Pack one page, never returning an empty list while tags remain.
	"""
	placements = pack_tags(
		tag_width,
		tag_height,
		available_width,
		available_height,
		count,
		spacing,
	)
	if not placements and count > 0:
		placements = [fallback_placement(tag_width, tag_height)]
	return placements
