"""Write GitHub Actions step outputs."""

from __future__ import annotations

import os
from pathlib import Path

from .errors import DistributionFilesystemError

__all__ = ["write_outputs"]


def _format_output(key: str, value: object) -> str:
    escaped = str(value).replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")
    return f"{key}={escaped}\n"


def write_outputs(**values: object) -> None:
    """Append ``values`` to the ``GITHUB_OUTPUT`` file when it is configured.

    Outside GitHub Actions the variable is unset and nothing is written.

    Raises
    ------
    DistributionFilesystemError
        If the output file cannot be written.
    """
    output_path = os.environ.get("GITHUB_OUTPUT")
    if not output_path:
        return
    path = Path(output_path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as handle:
            for key, value in values.items():
                handle.write(_format_output(key, value))
    except OSError as exc:
        msg = f"Failed to write step outputs to {path}: {exc}"
        raise DistributionFilesystemError(msg) from exc
