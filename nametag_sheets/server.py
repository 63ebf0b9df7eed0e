"""
HTTP endpoint for name tag generation.
"""

# Standard Library
import traceback

# PIP3 modules
from flask import Flask, Response, jsonify, request, stream_with_context

# local repo modules
import nametag_sheets as nts
import nametag_sheets.archive
import nametag_sheets.batch
import nametag_sheets.config
import nametag_sheets.roster
import nametag_sheets.templates


ARCHIVE_NAME = nts.config.ARCHIVE_NAME
CATEGORY_STUDENT = nts.config.CATEGORY_STUDENT
CATEGORY_NON_STUDENT = nts.config.CATEGORY_NON_STUDENT

# request bodies carry base64 templates
MAX_CONTENT_LENGTH = 10 * 1024 * 1024


class GenerationRequest:
	"""
	Validated generation request.
	"""

	def __init__(self, payload: dict):
		if not isinstance(payload, dict):
			raise ValueError("Request body must be a JSON object")
		people = payload.get("personRecords", payload.get("personData"))
		if not people or not isinstance(people, list):
			raise ValueError("No person data provided")
		self.records = nts.roster.records_from_dicts(people)
		self.big_templates = nts.templates.templates_from_payload(
			payload.get("bigTemplates", payload.get("bigNametagFiles")),
			CATEGORY_NON_STUDENT,
		)
		self.small_templates = nts.templates.templates_from_payload(
			payload.get("smallTemplates", payload.get("smallNametagFiles")),
			CATEGORY_STUDENT,
		)
		if not self.big_templates and not self.small_templates:
			raise ValueError("No nametag template files provided")
		nts.templates.verify_templates(self.big_templates + self.small_templates)
		self.arranged = bool(payload.get("useArrangedLayout", False))
		self.sheet = nts.config.build_sheet_config(
			nts.config.check_width_mm(payload.get("studentWidthMm") or nts.config.DEFAULT_STUDENT_WIDTH_MM),
			nts.config.check_width_mm(payload.get("nonStudentWidthMm") or nts.config.DEFAULT_NON_STUDENT_WIDTH_MM),
		)
		seed = payload.get("seed")
		self.seed = int(seed) if seed is not None else None


#============================================
def error_response(message: str):
	"""
	Build the generic failure response.
	"""
	return jsonify({"error": "Failed to generate nametags", "details": message}), 500


#============================================
def create_app(font_config: nts.config.FontConfig | None = None, stream_archive: bool = True) -> Flask:
	"""
	Create the Flask application.

	Args:
		font_config: Font lookup configuration, resolved once here when omitted.
		stream_archive: Stream the ZIP response instead of buffering it.

	Returns:
		Flask app.
	"""
	app = Flask(__name__)
	app.config["MAX_CONTENT_LENGTH"] = MAX_CONTENT_LENGTH
	app.config["STREAM_ARCHIVE"] = stream_archive
	if font_config is None:
		font_config = nts.config.build_font_config()
	app.config["FONT_CONFIG"] = font_config

	@app.route("/api/generate-nametags", methods=["GET", "POST"])
	def generate_nametags():
		if request.method == "GET":
			return jsonify({"message": "API is working"})
		try:
			job = GenerationRequest(request.get_json(force=True, silent=True))
		except (ValueError, TypeError) as error:
			return error_response(str(error))
		except Exception as error:
			traceback.print_exc()
			return error_response(str(error) or "Unknown error")

		rng = nts.templates.make_random_source(job.seed)
		entries = nts.batch.iter_outputs(
			job.records,
			job.big_templates,
			job.small_templates,
			job.arranged,
			job.sheet,
			app.config["FONT_CONFIG"],
			rng,
			verbose=True,
		)
		headers = {"Content-Disposition": f'attachment; filename="{ARCHIVE_NAME}"'}
		if not app.config["STREAM_ARCHIVE"]:
			try:
				data = nts.archive.build_zip_bytes(entries)
			except Exception as error:
				traceback.print_exc()
				return error_response(str(error) or "Unknown error")
			return Response(data, mimetype="application/zip", headers=headers)
		# errors past this point end the connection; headers are already sent
		stream = stream_with_context(nts.archive.iter_zip_stream(entries))
		return Response(stream, mimetype="application/zip", headers=headers)

	@app.post("/api/parse-roster")
	def parse_roster():
		upload = request.files.get("roster")
		if upload is None or not upload.filename:
			return error_response("No roster file provided")
		try:
			records = nts.roster.parse_roster_bytes(upload.read(), upload.filename)
		except ValueError as error:
			return error_response(str(error))
		return jsonify({"personRecords": [nts.roster.record_to_dict(record) for record in records]})

	return app


#============================================
def main() -> None:
	"""
	Run the development server.
	"""
	app = create_app()
	app.run(host="0.0.0.0", port=8008, debug=False)


if __name__ == "__main__":
	main()
