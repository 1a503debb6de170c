"""Ask a CodeQL launcher for its version."""

import logging
import os
import subprocess
from pathlib import Path
from typing import Optional, Union

from codeql_distribution.updater.version import Version, try_parse_version_string

logger = logging.getLogger("codeql_distribution.cli_version")


VERSION_TIMEOUT_SECONDS = 30


def get_codeql_cli_version(
    codeql_path: Union[str, Path],
    timeout: float = VERSION_TIMEOUT_SECONDS
) -> Optional[Version]:
    """
    Run ``codeql version --format=terse`` and parse the output.

    Returns:
        The reported version, or None if the launcher could not be run or
        printed something that is not a version
    """
    try:
        proc = subprocess.run(
            [str(codeql_path), "version", "--format=terse"],
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            stdin=subprocess.DEVNULL,
            text=True,
            timeout=timeout,
            check=False,
            env={**os.environ, "TERM": "dumb"},
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.warning(f"Could not run {codeql_path} to determine its version: {e}")
        return None

    if proc.returncode != 0:
        logger.warning(
            f"{codeql_path} exited with code {proc.returncode} when asked for its version: "
            f"{(proc.stderr or '').strip()}"
        )
        return None

    output = (proc.stdout or "").strip()
    version = try_parse_version_string(output)
    if version is None:
        logger.warning(f"Could not parse version output of {codeql_path}: {output!r}")
    return version
