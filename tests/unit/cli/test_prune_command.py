"""Unit tests for the prune command."""

from collections.abc import Callable
from datetime import timedelta
from pathlib import Path
from unittest.mock import patch

from typer.testing import CliRunner
from vfskit.cli.main import app

runner = CliRunner()


class TestPrune:
    """Tests for vfskit prune."""

    def test_removes_old_files_over_capacity(
        self, xdg_home: Path, tmp_path: Path, make_file: Callable[..., Path]
    ) -> None:
        old = make_file("data/old.log", 100, age=timedelta(days=30))
        recent = make_file("data/recent.log", 100)

        result = runner.invoke(
            app,
            ["prune", str(tmp_path / "data"), "--capacity", "0", "--min-age", "1d", "--min-usable", "0"],
        )

        assert result.exit_code == 0
        assert "Removed 1 file(s)" in result.stdout
        assert not old.exists()
        assert recent.exists()

    def test_nothing_to_prune(self, xdg_home: Path, tmp_path: Path, make_file: Callable[..., Path]) -> None:
        make_file("data/a", 10, age=timedelta(days=30))

        result = runner.invoke(app, ["prune", str(tmp_path / "data"), "--min-usable", "0"])

        assert result.exit_code == 0
        assert "Nothing to prune" in result.stdout

    def test_dry_run(self, xdg_home: Path, tmp_path: Path, make_file: Callable[..., Path]) -> None:
        old = make_file("data/old", 10, age=timedelta(days=30))

        result = runner.invoke(
            app, ["prune", str(tmp_path / "data"), "-c", "0", "--min-usable", "0%", "--dry-run"]
        )

        assert result.exit_code == 0
        assert "Would remove" in result.stdout
        assert old.exists()

    def test_glob(self, xdg_home: Path, tmp_path: Path, make_file: Callable[..., Path]) -> None:
        keep = make_file("data/keep.dat", 10, age=timedelta(days=30))
        drop = make_file("data/drop.log", 10, age=timedelta(days=30))

        result = runner.invoke(
            app, ["prune", str(tmp_path / "data"), "-c", "0", "--min-usable", "0", "-g", "*.log"]
        )

        assert result.exit_code == 0
        assert keep.exists()
        assert not drop.exists()

    def test_uses_configuration(self, xdg_home: Path, tmp_path: Path, make_file: Callable[..., Path]) -> None:
        """Without options the [pruner] section applies."""
        config = xdg_home / "config" / "vfskit" / "config.toml"
        config.parent.mkdir(parents=True)
        config.write_text('[pruner]\ncapacity = 0\nminimum_usable_percent = 0\nexclude = ["*.keep"]\n')
        kept = make_file("data/a.keep", 10, age=timedelta(days=30))
        pruned = make_file("data/b.bin", 10, age=timedelta(days=30))

        result = runner.invoke(app, ["prune", str(tmp_path / "data")])

        assert result.exit_code == 0
        assert kept.exists()
        assert not pruned.exists()

    def test_missing_folder(self, xdg_home: Path, tmp_path: Path) -> None:
        result = runner.invoke(app, ["prune", str(tmp_path / "missing")])

        assert result.exit_code == 1
        assert "Folder not found" in result.output

    def test_invalid_capacity(self, xdg_home: Path, tmp_path: Path) -> None:
        (tmp_path / "data").mkdir()

        result = runner.invoke(app, ["prune", str(tmp_path / "data"), "--capacity", "lots"])

        assert result.exit_code == 2

    def test_watch_rejects_dry_run(self, xdg_home: Path, tmp_path: Path) -> None:
        (tmp_path / "data").mkdir()

        result = runner.invoke(app, ["prune", str(tmp_path / "data"), "--watch", "--dry-run"])

        assert result.exit_code == 1
        assert "--watch cannot be combined" in result.output

    def test_watch_stops_on_interrupt(self, xdg_home: Path, tmp_path: Path) -> None:
        """--watch runs the pruner until Ctrl+C, then stops it."""
        (tmp_path / "data").mkdir()

        with patch("vfskit.cli.commands.prune.time.sleep", side_effect=KeyboardInterrupt):
            result = runner.invoke(app, ["prune", str(tmp_path / "data"), "--watch", "-i", "1s"])

        assert result.exit_code == 0
        assert "Stopping pruner" in result.stdout
