"""
Pytest configuration for local imports and shared image helpers.
"""

# Standard Library
import io
import os
import sys

#============================================


def _ensure_repo_on_path() -> None:
	"""
	Ensure the repository root is on sys.path.
	"""
	repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
	if repo_root not in sys.path:
		sys.path.insert(0, repo_root)


_ensure_repo_on_path()
import PIL.Image
import pytest

import nametag_sheets.config


#============================================
def make_png(width: int, height: int, color: tuple[int, int, int] = (200, 40, 40)) -> bytes:
	"""
	Build a solid-colour PNG in memory.

	Args:
		width: Image width.
		height: Image height.
		color: RGB fill.

	Returns:
		PNG bytes.
	"""
	image = PIL.Image.new("RGB", (width, height), color)
	buffer = io.BytesIO()
	image.save(buffer, format="PNG")
	return buffer.getvalue()


#============================================
@pytest.fixture
def font_config() -> nametag_sheets.config.FontConfig:
	"""
	Font config without a bundled font, so lookup falls back to system fonts.
	"""
	return nametag_sheets.config.build_font_config("no-such-font.ttf")


#============================================
@pytest.fixture
def sheet() -> nametag_sheets.config.SheetConfig:
	"""
	Default A4 sheet config with 85/100 mm tags.
	"""
	return nametag_sheets.config.build_sheet_config(85.0, 100.0)


#============================================
def make_truncated_png(width: int, height: int) -> bytes:
	"""
	Build a noisy PNG cut off halfway through its pixel data.

	The header still parses, so only a full decode notices the damage.
	"""
	image = PIL.Image.effect_noise((width, height), 64).convert("RGB")
	buffer = io.BytesIO()
	image.save(buffer, format="PNG")
	data = buffer.getvalue()
	return data[:len(data) // 2]
