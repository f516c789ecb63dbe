import logging
import os
import threading
from pathlib import Path
from typing import Any, Dict, Iterable, List, Sequence

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font
from openpyxl.worksheet.worksheet import Worksheet

logger = logging.getLogger(__name__)

JOB_SITES = "job_sites"
CREW_MEMBERS = "crew_members"
FORM_SUBMISSIONS = "form_submissions"
MATERIALS_USED = "materials_used"
MATERIALS_NEEDED = "materials_needed"
PHOTOS = "photos"

SHEET_HEADERS: Dict[str, List[str]] = {
	JOB_SITES: ["job_id", "name", "address"],
	CREW_MEMBERS: ["crew_member_id", "name"],
	FORM_SUBMISSIONS: [
		"submission_id",
		"job_id",
		"crew_member_id",
		"submitted_at",
		"trade_task_type",
		"work_performed",
		"location_on_site",
		"status",
		"issues_concerns",
		"weather_conditions",
		"device_info",
	],
	MATERIALS_USED: ["material_id", "submission_id", "material"],
	MATERIALS_NEEDED: ["material_id", "submission_id", "material"],
	PHOTOS: ["photo_id", "submission_id", "photo_url", "caption", "uploaded_at"],
}


class WorkbookService:
	"""Spreadsheet backend: two reference tables plus append-only record tables.

	Every write is a full load-append-save cycle guarded by a lock, so rows
	appended from concurrent requests in one process keep a total order.
	"""

	def __init__(self, path: str):
		self.path = Path(path)
		self._lock = threading.Lock()

	def _draw_header(self, worksheet: Worksheet, sheet_name: str) -> None:
		worksheet.append(SHEET_HEADERS[sheet_name])
		for cell in worksheet[1]:
			cell.font = Font(bold=True)

	def _load(self) -> Workbook:
		if self.path.exists():
			workbook = load_workbook(self.path)
		else:
			logger.info(f"Creating workbook {self.path}")
			workbook = Workbook()
			workbook.remove(workbook.active)

		for sheet_name in SHEET_HEADERS:
			if sheet_name not in workbook.sheetnames:
				self._draw_header(workbook.create_sheet(sheet_name), sheet_name)
		return workbook

	def _save(self, workbook: Workbook) -> None:
		os.makedirs(self.path.parent, exist_ok=True)
		workbook.save(self.path)

	def ensure_workbook(self) -> None:
		"""Create the workbook and any missing sheets"""
		with self._lock:
			self._save(self._load())

	def read_rows(self, sheet_name: str) -> List[tuple]:
		"""All data rows of a sheet, header excluded"""
		with self._lock:
			workbook = self._load()
			worksheet = workbook[sheet_name]
			return [row for row in worksheet.iter_rows(min_row=2, values_only=True)]

	def append_rows(self, sheet_name: str, rows: Iterable[Sequence[Any]]) -> int:
		rows = list(rows)
		if not rows:
			return 0

		with self._lock:
			workbook = self._load()
			worksheet = workbook[sheet_name]
			for row in rows:
				worksheet.append(list(row))
			self._save(workbook)

		logger.debug(f"Appended {len(rows)} row(s) to {sheet_name}")
		return len(rows)

	def append_row(self, sheet_name: str, row: Sequence[Any]) -> None:
		self.append_rows(sheet_name, [row])

	def get_job_sites(self) -> List[Dict[str, Any]]:
		return [
			{"id": str(row[0]), "name": _cell(row, 1), "address": _cell(row, 2)}
			for row in self.read_rows(JOB_SITES)
			if row and row[0] not in (None, "")
		]

	def get_crew_members(self) -> List[Dict[str, Any]]:
		return [
			{"id": str(row[0]), "name": _cell(row, 1)}
			for row in self.read_rows(CREW_MEMBERS)
			if row and row[0] not in (None, "")
		]

	def check_connection(self) -> bool:
		try:
			self.read_rows(JOB_SITES)
			return True
		except Exception as e:
			logger.error(f"Workbook health check failed: {e}")
			return False


def _cell(row: tuple, index: int) -> str:
	if len(row) <= index or row[index] is None:
		return ""
	return str(row[index])
