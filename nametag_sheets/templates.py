"""
Template images: data-URI decoding, loading and random selection.
"""

# Standard Library
import base64
import binascii
import dataclasses
import io
import pathlib
import random
import re

# PIP3 modules
import PIL.Image


IMAGE_SUFFIXES = {".png", ".jpg", ".jpeg", ".gif", ".bmp", ".webp"}
DATA_URI_PREFIX = re.compile(r"^data:[^,]*?;base64,", re.IGNORECASE)


class DecodeError(ValueError):
	"""
	Raised when a data URI payload cannot be decoded.
	"""


class ImageDecodeError(ValueError):
	"""
	Raised when bytes are not a readable raster image.
	"""


@dataclasses.dataclass(frozen=True)
class TemplateImage:
	name: str
	data: bytes
	category: str


#============================================
def decode_data_uri(value: str) -> bytes:
	"""
	Strip the MIME prefix of a data URI and decode the base64 payload.

	Args:
		value: Data URI or bare base64 string.

	Returns:
		Decoded bytes.

	Raises:
		DecodeError: On a missing or malformed payload.
	"""
	if not isinstance(value, str) or not value.strip():
		raise DecodeError("Template data is empty")
	payload = DATA_URI_PREFIX.sub("", value.strip(), count=1)
	if payload.startswith("data:"):
		raise DecodeError("Template data URI is not base64 encoded")
	# base64 may be line-wrapped
	payload = "".join(payload.split())
	try:
		data = base64.b64decode(payload, validate=True)
	except (binascii.Error, ValueError) as error:
		raise DecodeError(f"Template data is not valid base64: {error}") from error
	if not data:
		raise DecodeError("Template data is empty")
	return data


#============================================
def encode_data_uri(data: bytes, mime_type: str = "image/png") -> str:
	"""
	Encode bytes as a base64 data URI.
	"""
	return f"data:{mime_type};base64," + base64.b64encode(data).decode("ascii")


#============================================
def decode_image(data: bytes) -> PIL.Image.Image:
	"""
	Decode image bytes into a loaded RGBA image.

	Args:
		data: Encoded image bytes.

	Returns:
		PIL image in RGBA mode.

	Raises:
		ImageDecodeError: If the bytes are not a readable image.
	"""
	try:
		image = PIL.Image.open(io.BytesIO(data))
		image.load()
	except (PIL.UnidentifiedImageError, OSError, ValueError) as error:
		raise ImageDecodeError(f"Could not decode image: {error}") from error
	return image.convert("RGBA")


#============================================
def image_size(template: TemplateImage) -> tuple[int, int]:
	"""
	Read template dimensions without a full decode.
	"""
	try:
		with PIL.Image.open(io.BytesIO(template.data)) as image:
			return image.size
	except (PIL.UnidentifiedImageError, OSError) as error:
		raise ImageDecodeError(f"Could not decode template {template.name}: {error}") from error


#============================================
def templates_from_payload(items: list[dict] | None, category: str) -> list[TemplateImage]:
	"""
	Build templates from request payload entries.

	Args:
		items: Entries of {name, dataUri} (the key "data" is also accepted).
		category: Category the pool belongs to.

	Returns:
		List of TemplateImage entries.
	"""
	templates: list[TemplateImage] = []
	for index, item in enumerate(items or [], start=1):
		name = str(item.get("name") or f"template_{index}")
		value = item.get("dataUri", item.get("data"))
		try:
			data = decode_data_uri(value)
		except DecodeError as error:
			raise DecodeError(f"{name}: {error}") from error
		templates.append(TemplateImage(name=name, data=data, category=category))
	return templates


#============================================
def gather_template_paths(inputs: list[str]) -> list[pathlib.Path]:
	"""
	Gather image paths from files and directories.

	Args:
		inputs: Input paths.

	Returns:
		Sorted list of image paths.
	"""
	paths: list[pathlib.Path] = []
	for entry in inputs:
		path = pathlib.Path(entry).expanduser().resolve()
		if path.is_dir():
			found = [item for item in path.iterdir() if item.suffix.lower() in IMAGE_SUFFIXES]
			paths.extend(sorted(found, key=lambda item: item.name.lower()))
			continue
		if path.is_file() and path.suffix.lower() in IMAGE_SUFFIXES:
			paths.append(path)
	return paths


#============================================
def load_templates(inputs: list[str], category: str) -> list[TemplateImage]:
	"""
	Load template images from disk.
	"""
	return [
		TemplateImage(name=path.name, data=path.read_bytes(), category=category)
		for path in gather_template_paths(inputs)
	]


#============================================
def verify_templates(templates: list[TemplateImage]) -> None:
	"""
	Fully decode every template before any output is produced.

	Raises:
		ImageDecodeError: For the first template that cannot be read.
	"""
	for template in templates:
		try:
			decode_image(template.data)
		except ImageDecodeError as error:
			raise ImageDecodeError(f"{template.name}: {error}") from error


#============================================
def make_random_source(seed: int | None = None) -> random.Random:
	"""
	Create the random source used for template selection.
	"""
	return random.Random(seed)


#============================================
def choose_template(pool: list[TemplateImage], rng: random.Random) -> TemplateImage:
	"""
	Pick one template uniformly at random.

	Args:
		pool: Category template pool, non-empty.
		rng: Random source.

	Returns:
		Selected template.
	"""
	return pool[rng.randrange(len(pool))]
