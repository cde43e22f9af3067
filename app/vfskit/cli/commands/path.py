"""path command implementation."""

from typing import Annotated

import typer

from vfskit.filesystem.path import PathValue
from vfskit.utils.formatting import console

app = typer.Typer(
    help="Inspect path values.",
    no_args_is_help=True,
)


@app.command()
def normalize(
    path: Annotated[str, typer.Argument(help="Path to normalize.")],
) -> None:
    """Print PATH with "." and ".." segments resolved."""
    console.print(str(PathValue.parse(path).normalized()), markup=False, highlight=False)
