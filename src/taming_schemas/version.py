"""Application release and persisted snapshot schema versions."""

from __future__ import annotations

from pydantic import Field

from taming_schemas.base import BaseSchema

# Bumped whenever ProtocolState changes shape; older snapshots are discarded.
PROTOCOL_STATE_VERSION = 1


class VersionInfo(BaseSchema):
    """Release version of the taming package."""

    major: int = Field(..., ge=0, description="Major version number")
    minor: int = Field(..., ge=0, description="Minor version number")
    patch: int = Field(..., ge=0, description="Patch version number")

    def __str__(self) -> str:
        """Return semantic version string."""
        return f"{self.major}.{self.minor}.{self.patch}"

    def describe(self) -> str:
        """Return the release together with the snapshot schema it writes."""
        return f"taming v{self} (snapshot schema v{PROTOCOL_STATE_VERSION})"


VERSION = VersionInfo(major=0, minor=1, patch=0)
