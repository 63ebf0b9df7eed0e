"""
Output packaging: streamed ZIP archives, PDF sheets and manifests.
"""

# Standard Library
import io
import json
import pathlib
import zipfile
from typing import Iterable, Iterator

# PIP3 modules
import PIL.Image
import pypdf
import reportlab.lib.pagesizes
import reportlab.lib.utils
import reportlab.pdfgen.canvas

# local repo modules
import nametag_sheets as nts
import nametag_sheets.config


GenerationResult = nts.config.GenerationResult
SheetConfig = nts.config.SheetConfig

ZIP_COMPRESS_LEVEL = nts.config.ZIP_COMPRESS_LEVEL


class _ChunkSink:
	"""
	Write-only file object that collects bytes until drained.

	It has no tell() or seek(), so zipfile writes entries with data
	descriptors and never rewinds.
	"""

	def __init__(self):
		self._chunks: list[bytes] = []

	def write(self, data: bytes) -> int:
		self._chunks.append(bytes(data))
		return len(data)

	def flush(self) -> None:
		pass

	def drain(self) -> bytes:
		data = b"".join(self._chunks)
		self._chunks = []
		return data


#============================================
def iter_zip_stream(entries: Iterable[tuple[str, bytes]]) -> Iterator[bytes]:
	"""
	Build a ZIP archive incrementally.

	Each entry is compressed and yielded as soon as it is produced, so only
	the entry in flight is held in memory.

	Args:
		entries: (filename, data) pairs, consumed lazily.

	Yields:
		Archive bytes in order.
	"""
	sink = _ChunkSink()
	with zipfile.ZipFile(
		sink,
		mode="w",
		compression=zipfile.ZIP_DEFLATED,
		compresslevel=ZIP_COMPRESS_LEVEL,
	) as archive:
		for name, data in entries:
			archive.writestr(name, data)
			chunk = sink.drain()
			if chunk:
				yield chunk
	chunk = sink.drain()
	if chunk:
		yield chunk


#============================================
def build_zip_bytes(entries: Iterable[tuple[str, bytes]]) -> bytes:
	"""
	Build a whole ZIP archive in memory.
	"""
	return b"".join(iter_zip_stream(entries))


#============================================
def write_zip(entries: Iterable[tuple[str, bytes]], output_path: pathlib.Path) -> None:
	"""
	Stream a ZIP archive to disk.
	"""
	with output_path.open("wb") as handle:
		for chunk in iter_zip_stream(entries):
			handle.write(chunk)


#============================================
def build_pdf_page(png_data: bytes) -> pypdf.PageObject:
	"""
	Place one A4 page image on a one-page PDF.

	Args:
		png_data: Encoded page image.

	Returns:
		PDF page object.
	"""
	buffer = io.BytesIO()
	page_width, page_height = reportlab.lib.pagesizes.A4
	pdf = reportlab.pdfgen.canvas.Canvas(buffer, pagesize=(page_width, page_height))
	image = PIL.Image.open(io.BytesIO(png_data))
	image.load()
	pdf.drawImage(
		reportlab.lib.utils.ImageReader(image),
		0,
		0,
		width=page_width,
		height=page_height,
	)
	pdf.showPage()
	pdf.save()
	buffer.seek(0)
	reader = pypdf.PdfReader(buffer)
	return reader.pages[0]


#============================================
def write_pages_pdf(pages: Iterable[tuple[str, bytes]], output_path: pathlib.Path) -> int:
	"""
	Write A4 page images into one multi-page PDF.

	Args:
		pages: (filename, png_data) pairs.
		output_path: Output PDF path.

	Returns:
		Number of pages written.
	"""
	writer = pypdf.PdfWriter()
	count = 0
	for _name, data in pages:
		writer.add_page(build_pdf_page(data))
		count += 1
	writer.add_metadata({"/Title": "Name tags", "/Producer": "nametag-sheets"})
	writer.write(str(output_path))
	return count


#============================================
def write_manifest(
	manifest_path: pathlib.Path,
	roster_path: str | None,
	result: GenerationResult,
	sheet: SheetConfig,
) -> None:
	"""
	Write a manifest JSON file.

	Args:
		manifest_path: Output path.
		roster_path: Roster input, if read from disk.
		result: Generation result.
		sheet: Sheet configuration.
	"""
	data = {
		"roster": roster_path,
		"mode": "arranged" if result.arranged else "individual",
		"pages": result.pages,
		"files": result.files,
		"totals": result.totals,
		"placed": result.placed,
		"pages_by_category": result.pages_by_category,
		"tag_sizes_px": {key: list(value) for key, value in result.tag_sizes.items()},
		"skipped": result.skipped,
		"layout": {
			"page_width_px": sheet.page_width,
			"page_height_px": sheet.page_height,
			"margin_px": sheet.margin,
			"spacing_px": sheet.spacing,
			"border_px": sheet.border,
			"student_width_mm": sheet.student_width_mm,
			"non_student_width_mm": sheet.non_student_width_mm,
			"student_spares": sheet.student_spares,
			"non_student_spares": sheet.non_student_spares,
			"pixels_per_inch": nts.config.PIXELS_PER_INCH,
		},
	}
	with manifest_path.open("w", encoding="utf-8") as handle:
		json.dump(data, handle, indent=2, sort_keys=True, ensure_ascii=False)
