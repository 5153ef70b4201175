"""Persisted aggregator state.

The state file carries information that survives between builds. Today that
is only the latest issue observed on the server, used as a starting point
for latest-issue discovery so that every run does not probe forward from the
start of the series.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class BuildState(BaseModel):
    """State persisted between builds.

    Attributes:
        cached_latest_issue: Highest issue number known to be published
        updated_at: When the state was last written
    """

    cached_latest_issue: int | None = Field(default=None, ge=0)
    updated_at: datetime | None = None

    model_config = {"extra": "allow"}
