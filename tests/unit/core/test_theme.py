"""Unit tests for theme module.

Tests for theme loading, validation, and Rich theme generation.
"""

# pyright: reportPrivateUsage=false

from pathlib import Path
from unittest.mock import patch

import pytest
from rich.theme import Theme
from vfskit.core.theme import (
    ThemeColors,
    _load_toml_colors,
    get_rich_theme,
    get_theme,
    get_user_theme_path,
    load_theme,
)


class TestThemeColors:
    """Tests for ThemeColors Pydantic model."""

    def test_default_values(self) -> None:
        colors = ThemeColors()
        assert colors.text == "#ffffff"
        assert colors.folder == "#69B9A1"
        assert colors.removed == "#f53263"

    def test_valid_hex_colors(self) -> None:
        colors = ThemeColors(text="#AABBCC", muted="#abc")
        assert colors.text == "#AABBCC"
        assert colors.muted == "#abc"

    def test_invalid_hex_no_hash(self) -> None:
        with pytest.raises(ValueError, match="must start with '#'"):
            ThemeColors(text="ffffff")

    def test_invalid_hex_wrong_length(self) -> None:
        with pytest.raises(ValueError, match="must be #RGB or #RRGGBB"):
            ThemeColors(size="#ff")

    def test_invalid_hex_chars(self) -> None:
        with pytest.raises(ValueError, match="invalid hex color"):
            ThemeColors(file="#gggggg")

    def test_extra_fields_forbidden(self) -> None:
        with pytest.raises(ValueError):
            ThemeColors(unknown_field="#ffffff")  # type: ignore[call-arg]


class TestLoadTomlColors:
    """Tests for _load_toml_colors internal function."""

    def test_loads_valid_toml(self, tmp_path: Path) -> None:
        theme_file = tmp_path / "theme.toml"
        theme_file.write_text('[colors]\ntext = "#000000"\nage = "#aabbcc"\n')

        result = _load_toml_colors(theme_file)

        assert result == {"text": "#000000", "age": "#aabbcc"}

    def test_returns_none_for_missing_file(self, tmp_path: Path) -> None:
        assert _load_toml_colors(tmp_path / "nonexistent.toml") is None

    def test_returns_none_for_invalid_toml(self, tmp_path: Path) -> None:
        theme_file = tmp_path / "theme.toml"
        theme_file.write_text("not valid [ toml syntax")

        assert _load_toml_colors(theme_file) is None

    def test_returns_empty_dict_for_missing_colors_section(self, tmp_path: Path) -> None:
        theme_file = tmp_path / "theme.toml"
        theme_file.write_text('[other]\nkey = "value"\n')

        assert _load_toml_colors(theme_file) == {}

    def test_ignores_non_string_values(self, tmp_path: Path) -> None:
        theme_file = tmp_path / "theme.toml"
        theme_file.write_text('[colors]\ntext = 5\nmuted = "#111111"\n')

        assert _load_toml_colors(theme_file) == {"muted": "#111111"}


class TestLoadTheme:
    """Tests for load_theme function."""

    def test_defaults_without_user_theme(self, tmp_path: Path) -> None:
        colors = load_theme(tmp_path / "missing.toml")
        assert colors == ThemeColors()

    def test_user_theme_overrides_defaults(self, tmp_path: Path) -> None:
        """User theme overrides individual colors."""
        user_theme = tmp_path / "theme.toml"
        user_theme.write_text('[colors]\nfolder = "#ff0000"\n')

        with patch("vfskit.core.theme.get_user_theme_path", return_value=user_theme):
            colors = load_theme()

        assert colors.folder == "#ff0000"
        assert colors.text == "#ffffff"

    def test_invalid_user_theme_falls_back(self, tmp_path: Path) -> None:
        """An invalid color falls back to the defaults."""
        user_theme = tmp_path / "theme.toml"
        user_theme.write_text('[colors]\nfolder = "red"\n')

        colors = load_theme(user_theme)

        assert colors == ThemeColors()

    def test_user_theme_path(self) -> None:
        assert get_user_theme_path().name == "theme.toml"


class TestRichTheme:
    """Tests for Rich theme conversion."""

    def test_contains_entry_styles(self) -> None:
        theme = get_rich_theme(ThemeColors())

        assert isinstance(theme, Theme)
        for name in ("entry.file", "entry.folder", "entry.size", "entry.age", "entry.removed", "error"):
            assert name in theme.styles

    def test_get_theme_is_cached(self) -> None:
        assert get_theme() is get_theme()
