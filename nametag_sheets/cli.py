"""
CLI entry points for name tag generation.
"""

# Standard Library
import argparse
import pathlib
import time

# local repo modules
import nametag_sheets as nts
import nametag_sheets.archive
import nametag_sheets.batch
import nametag_sheets.config
import nametag_sheets.roster
import nametag_sheets.templates


GenerationResult = nts.config.GenerationResult
SheetConfig = nts.config.SheetConfig

CATEGORY_STUDENT = nts.config.CATEGORY_STUDENT
CATEGORY_NON_STUDENT = nts.config.CATEGORY_NON_STUDENT
DEFAULT_STUDENT_WIDTH_MM = nts.config.DEFAULT_STUDENT_WIDTH_MM
DEFAULT_NON_STUDENT_WIDTH_MM = nts.config.DEFAULT_NON_STUDENT_WIDTH_MM


#============================================
def build_config(args: argparse.Namespace) -> SheetConfig:
	"""
	Build sheet config from CLI args.

	Args:
		args: Parsed argparse namespace.

	Returns:
		SheetConfig.
	"""
	return nts.config.build_sheet_config(
		student_width_mm=nts.config.check_width_mm(args.student_width_mm),
		non_student_width_mm=nts.config.check_width_mm(args.non_student_width_mm),
	)


#============================================
def width_mm(value: str) -> float:
	"""
	Argparse type for tag widths in millimetres.
	"""
	try:
		return nts.config.check_width_mm(value)
	except ValueError as error:
		raise argparse.ArgumentTypeError(str(error)) from error


#============================================
def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
	"""
	Parse command line arguments.

	Returns:
		Parsed argparse namespace.
	"""
	parser = argparse.ArgumentParser(description="Generate name tags from a roster and background templates.")
	parser.add_argument("roster", help="Roster file (.xlsx or .csv).")

	input_group = parser.add_argument_group("Templates")
	input_group.add_argument("-b", "--big", dest="big_templates", nargs="+", default=[], help="Non-student template images or directories.")
	input_group.add_argument("-s", "--small", dest="small_templates", nargs="+", default=[], help="Student template images or directories.")
	input_group.add_argument("-f", "--font", dest="font_path", default=None, help="Bundled font file.")

	output_group = parser.add_argument_group("Output")
	output_group.add_argument("-o", "--output", dest="output_path", required=True, help="Output ZIP path.")
	output_group.add_argument("-m", "--manifest", dest="manifest_path", default=None, help="Output manifest JSON path.")
	output_group.add_argument("--pdf", dest="pdf_path", default=None, help="Also write arranged pages to a PDF.")

	layout_group = parser.add_argument_group("Layout")
	layout_group.add_argument("-a", "--arranged", dest="arranged", action="store_true", help="Pack tags onto A4 print sheets.")
	layout_group.add_argument("-A", "--individual", dest="arranged", action="store_false", help="Write one image per person.")
	layout_group.add_argument("-w", "--student-width", dest="student_width_mm", type=width_mm, default=DEFAULT_STUDENT_WIDTH_MM, help="Student tag width in mm.")
	layout_group.add_argument("-W", "--non-student-width", dest="non_student_width_mm", type=width_mm, default=DEFAULT_NON_STUDENT_WIDTH_MM, help="Non-student tag width in mm.")
	layout_group.add_argument("--seed", dest="seed", type=int, default=None, help="Seed for template selection.")

	parser.set_defaults(arranged=False)

	args = parser.parse_args(argv)
	return args


#============================================
def print_summary(result: GenerationResult) -> None:
	"""
	Print per-category counts.
	"""
	for category in (CATEGORY_STUDENT, CATEGORY_NON_STUDENT):
		if category not in result.totals:
			continue
		line = f"{category}: total={result.totals[category]} placed={result.placed.get(category, 0)}"
		if category in result.pages_by_category:
			line += f" pages={result.pages_by_category[category]}"
		if category in result.tag_sizes:
			width, height = result.tag_sizes[category]
			line += f" tag={width}x{height}px"
		print(line)
	if result.skipped:
		print(f"Skipped: {len(result.skipped)} ({', '.join(result.skipped)})")


#============================================
def run_pipeline(args: argparse.Namespace) -> GenerationResult:
	"""
	Run roster parsing, rendering and packaging.

	Args:
		args: Parsed argparse namespace.

	Returns:
		GenerationResult.
	"""
	print("Name tag pipeline")
	print(f"Roster: {args.roster}")
	print(f"Output ZIP: {args.output_path}")
	print(f"Mode: {'arranged' if args.arranged else 'individual'}")
	if args.arranged:
		print(f"Tag widths: student={args.student_width_mm}mm non-student={args.non_student_width_mm}mm")
	if args.seed is not None:
		print(f"Seed: {args.seed}")

	start_time = time.perf_counter()
	records = nts.roster.load_roster(pathlib.Path(args.roster))
	print(f"People: {len(records)}")

	big_templates = nts.templates.load_templates(args.big_templates, CATEGORY_NON_STUDENT)
	small_templates = nts.templates.load_templates(args.small_templates, CATEGORY_STUDENT)
	print(f"Templates: big={len(big_templates)} small={len(small_templates)}")
	if not big_templates and not small_templates:
		raise SystemExit("No template images found.")
	nts.templates.verify_templates(big_templates + small_templates)

	font_config = nts.config.build_font_config(args.font_path)
	if font_config.bundled_available:
		print(f"Font: {font_config.font_path}")
	else:
		print("Font: bundled font not found, using system fonts")

	sheet = build_config(args)
	rng = nts.templates.make_random_source(args.seed)
	result = GenerationResult(arranged=args.arranged)
	output_path = pathlib.Path(args.output_path)
	output_path.parent.mkdir(parents=True, exist_ok=True)

	render_start = time.perf_counter()
	entries = nts.batch.iter_outputs(
		records,
		big_templates,
		small_templates,
		args.arranged,
		sheet,
		font_config,
		rng,
		result=result,
		verbose=True,
	)
	pdf_pages: list[tuple[str, bytes]] = []
	if args.pdf_path and args.arranged:
		entries = _collect(entries, pdf_pages)
	nts.archive.write_zip(entries, output_path)
	render_end = time.perf_counter()
	if args.arranged:
		print(f"Pages written: {result.pages}")
	else:
		print(f"Files written: {result.files}")
	print_summary(result)

	if args.pdf_path:
		if args.arranged:
			count = nts.archive.write_pages_pdf(pdf_pages, pathlib.Path(args.pdf_path))
			print(f"PDF written: {args.pdf_path} ({count} pages)")
		else:
			print("PDF output needs --arranged; skipped.")

	manifest_path = args.manifest_path
	if manifest_path is None:
		manifest_path = f"{output_path}.json"
	nts.archive.write_manifest(pathlib.Path(manifest_path), args.roster, result, sheet)
	print(f"Manifest written: {manifest_path}")

	total_time = time.perf_counter() - start_time
	print(
		"Timing: render={:.2f}s total={:.2f}s".format(
			render_end - render_start,
			total_time,
		)
	)
	return result


#============================================
def _collect(entries, sink: list[tuple[str, bytes]]):
	for entry in entries:
		sink.append(entry)
		yield entry


#============================================
def main() -> None:
	"""
	Main entry point.
	"""
	args = parse_args()
	run_pipeline(args)
