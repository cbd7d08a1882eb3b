from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class SyncReport(BaseModel):
	"""Outcome of one reconciliation pass."""

	pushed: int = 0
	tombstones_pushed: int = 0
	push_failed_ids: List[str] = Field(default_factory=list)
	pull_failed: bool = False
	inserted: int = 0
	updated: int = 0
	removed: int = 0
	kept_pending: int = 0
	skipped_tombstoned: int = 0
	pruned: int = 0
	errors: List[str] = Field(default_factory=list)

	@property
	def fully_synced(self) -> bool:
		return not self.push_failed_ids and not self.pull_failed

	@property
	def local_changes(self) -> int:
		"""Local store mutations made by the pull and prune phases."""
		return self.inserted + self.updated + self.removed + self.pruned

	@property
	def warning(self) -> str | None:
		if self.fully_synced:
			return None
		parts = []
		if self.push_failed_ids:
			parts.append(f"{len(self.push_failed_ids)} change(s) still waiting to upload")
		if self.pull_failed:
			parts.append("cloud records could not be downloaded")
		return "Could not fully sync: " + "; ".join(parts) + "."
