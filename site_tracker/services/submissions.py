from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterable, Sequence

from site_tracker.services.site_keys import SiteKey

MANUAL_MARKER = "manual"
DEFAULT_COMPLETION_THRESHOLD = 10.0


class SubmissionPolicy(str, Enum):
    completion_ratio = "completion_ratio"
    manual_marker_first = "manual_marker_first"
    manual_marker_latest = "manual_marker_latest"


@dataclass(frozen=True)
class InventoryObservation:
    site_key: SiteKey
    updated_at: datetime | None
    tag_category: str | None = None
    photo_category: str | None = None
    sheet_source: str | None = None

    @property
    def is_filled(self) -> bool:
        return bool((self.tag_category or "").strip()) and bool((self.photo_category or "").strip())

    @property
    def is_manual(self) -> bool:
        return MANUAL_MARKER in (self.sheet_source or "").lower()


@dataclass(frozen=True)
class SubmissionState:
    is_submitted: bool
    latest_update: datetime | None = None

    def __post_init__(self) -> None:
        if self.latest_update is not None and not self.is_submitted:
            raise ValueError("latest_update requires a submitted state")


NOT_SUBMITTED = SubmissionState(is_submitted=False)


def _latest(values: Iterable[datetime | None]) -> datetime | None:
    present = [value for value in values if value is not None]
    return max(present) if present else None


class SubmissionResolver:
    """Derives a site's submission state from the full set of its inventory rows."""

    def __init__(
        self,
        policy: SubmissionPolicy = SubmissionPolicy.completion_ratio,
        completion_threshold: float = DEFAULT_COMPLETION_THRESHOLD,
    ) -> None:
        self.policy = SubmissionPolicy(policy)
        self.completion_threshold = completion_threshold

    def resolve(self, observations: Sequence[InventoryObservation]) -> SubmissionState:
        if not observations:
            return NOT_SUBMITTED
        if self.policy is SubmissionPolicy.completion_ratio:
            return self._resolve_by_completion(observations)
        return self._resolve_by_manual_marker(observations)

    def resolve_all(self, observations: Iterable[InventoryObservation]) -> dict[SiteKey, SubmissionState]:
        grouped: dict[SiteKey, list[InventoryObservation]] = defaultdict(list)
        for observation in observations:
            grouped[observation.site_key].append(observation)
        return {key: self.resolve(rows) for key, rows in grouped.items()}

    def _resolve_by_completion(self, observations: Sequence[InventoryObservation]) -> SubmissionState:
        filled = [row for row in observations if row.is_filled]
        completion = len(filled) / len(observations) * 100
        if completion <= self.completion_threshold:
            return NOT_SUBMITTED
        return SubmissionState(is_submitted=True, latest_update=_latest(row.updated_at for row in filled))

    def _resolve_by_manual_marker(self, observations: Sequence[InventoryObservation]) -> SubmissionState:
        manual = [row for row in observations if row.is_manual]
        if not manual:
            return NOT_SUBMITTED
        if self.policy is SubmissionPolicy.manual_marker_first:
            # Fetch order decides which row supplies the timestamp.
            return SubmissionState(is_submitted=True, latest_update=manual[0].updated_at)
        return SubmissionState(is_submitted=True, latest_update=_latest(row.updated_at for row in manual))
