"""
Versioning: we use a hard-coded version number, because it's simple and always
works.
"""

import logging


# This is the base version number, to be bumped before each release.
# Keep in sync with the version in pyproject.toml.
__version__ = "0.3.1"

logger = logging.getLogger("rulegrid")


def _version_info_from_string(version):
    parts = []
    for part in version.split("."):
        try:
            parts.append(int(part))
        except ValueError:
            logger.debug(f"Non-integer version part {part!r} in {version!r}")
            parts.append(part)
    return tuple(parts)


version_info = _version_info_from_string(__version__)
