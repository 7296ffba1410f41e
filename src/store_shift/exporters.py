"""
Export strategies for schedule data.

This module implements the Strategy Pattern for rendering schedules and
timesheets into spreadsheet byte streams. Each exporter encapsulates one
output format; the engine only supplies the data.
"""

import calendar
import io
import logging
from abc import ABC, abstractmethod
from datetime import date
from pathlib import Path
from typing import Dict, List, Mapping, Sequence

import pandas as pd
from openpyxl.styles import Font, PatternFill

from .calendar_model import days_in_month
from .models import Assignment, Employee, Schedule, Store, Timesheet
from .summary import monthly_summary

logger = logging.getLogger(__name__)

CSV_CONTENT_TYPE = "text/csv"
XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

HEADER_FILL = PatternFill(fill_type="solid", fgColor="D3D3D3")
WEEKEND_FILL = PatternFill(fill_type="solid", fgColor="BDD7EE")
DAY_OFF_FILL = PatternFill(fill_type="solid", fgColor="FF9999")


class ExportStrategy(ABC):
    """Abstract base class for export strategies.

    Subclasses implement render(); export() writes the rendered bytes.
    """

    content_type = CSV_CONTENT_TYPE

    @abstractmethod
    def render(self) -> bytes:
        """Render the export into a byte stream."""
        pass

    def export(self, filepath: str | Path) -> None:
        """Write the rendered export to a file.

        Args:
            filepath: Path to the output file
        """
        Path(filepath).write_bytes(self.render())
        logger.info("Exported %s to %s", type(self).__name__, filepath)


class ScheduleExporter(ExportStrategy):
    """Base for exporters of a whole schedule.

    Provides the date range and lookups shared by the concrete formats.
    """

    def __init__(
        self,
        schedule: Schedule,
        stores: Mapping[str, Store] | None = None,
        employees: Sequence[Employee] = (),
    ):
        """Initialize the exporter.

        Args:
            schedule: The schedule to export
            stores: Store lookup for names and codes (defaults to the
                schedule's own lookup)
            employees: Employees to list; assignees missing from it are
                appended by id
        """
        self.schedule = schedule
        self.stores = dict(stores) if stores is not None else dict(schedule.assignments.stores)
        self.employees = list(employees)

    def _get_date_range(self) -> List[date]:
        return [day.date for day in days_in_month(self.schedule.month, self.schedule.year)]

    def _title(self) -> str:
        return f"{calendar.month_name[self.schedule.month + 1]} {self.schedule.year}"

    def _store_name(self, store_id: str) -> str:
        store = self.stores.get(store_id)
        return store.name if store else store_id

    def _store_label(self, store_id: str) -> str:
        store = self.stores.get(store_id)
        return store.label if store else store_id

    def _ordered_employees(self) -> List[Employee]:
        """Known employees sorted by name, then unknown assignees by id."""
        known = {e.id: e for e in self.employees}
        ordered = sorted(known.values(), key=lambda e: (e.name, e.id))
        for employee_id in self.schedule.assignments.employees():
            if employee_id not in known:
                ordered.append(Employee(id=employee_id, name=employee_id))
        return ordered

    def _build_employee_assignment_map(self) -> Dict[str, Dict[date, List[Assignment]]]:
        """Map employee id -> date -> assignments of that day."""
        assignment_map: Dict[str, Dict[date, List[Assignment]]] = {}
        for a in self.schedule.assignments:
            assignment_map.setdefault(a.employee_id, {}).setdefault(a.date, []).append(a)
        return assignment_map


class AssignmentCSVExporter(ScheduleExporter):
    """Exports one row per assignment.

    Output format: Date, Day_of_Week, Employee, Store, Hours
    """

    COLUMNS = ["Date", "Day_of_Week", "Employee", "Store", "Hours"]

    def build_frame(self) -> pd.DataFrame:
        names = {e.id: e.name for e in self._ordered_employees()}
        rows = []
        for a in sorted(self.schedule.assignments, key=lambda a: (a.date, a.employee_id, a.store_id)):
            rows.append(
                {
                    "Date": a.date.isoformat(),
                    "Day_of_Week": a.date.strftime("%a"),
                    "Employee": names.get(a.employee_id, a.employee_id),
                    "Store": self._store_name(a.store_id),
                    "Hours": a.hours,
                }
            )
        return pd.DataFrame(rows, columns=self.COLUMNS)

    def render(self) -> bytes:
        return self.build_frame().to_csv(index=False).encode("utf-8")


class ScheduleMatrixExporter(ScheduleExporter):
    """Exports the schedule as an employee x day grid of store codes.

    Output format:
    - First column: employee name, headed by the month title
    - One column per day of the month
    - Store code where the employee works, day_off_marker otherwise
    - A legend of store codes below the grid
    """

    def __init__(
        self,
        schedule: Schedule,
        stores: Mapping[str, Store] | None = None,
        employees: Sequence[Employee] = (),
        day_off_marker: str = "X",
    ):
        super().__init__(schedule, stores, employees)
        self.day_off_marker = day_off_marker

    def build_frame(self) -> pd.DataFrame:
        """Grid indexed by employee name, one column per day number."""
        dates = self._get_date_range()
        assignment_map = self._build_employee_assignment_map()

        names = []
        rows = []
        for employee in self._ordered_employees():
            worked = assignment_map.get(employee.id, {})
            row = []
            for d in dates:
                labels = [self._store_label(a.store_id) for a in worked.get(d, []) if a.hours > 0]
                row.append("/".join(sorted(labels)) if labels else self.day_off_marker)
            names.append(employee.name)
            rows.append(row)

        frame = pd.DataFrame(rows, index=names, columns=[str(d.day) for d in dates])
        frame.index.name = self._title()
        return frame

    def build_legend(self) -> pd.DataFrame:
        rows = [("Day off", self.day_off_marker)]
        used = {a.store_id for a in self.schedule.assignments}
        for store in sorted(self.stores.values(), key=lambda s: s.name):
            if store.active or store.id in used:
                rows.append((store.name, store.label))
        return pd.DataFrame(rows, columns=["Legend", "Code"])

    def render(self) -> bytes:
        buffer = io.StringIO()
        self.build_frame().to_csv(buffer)
        buffer.write("\n")
        self.build_legend().to_csv(buffer, index=False)
        return buffer.getvalue().encode("utf-8")


class ScheduleXlsxExporter(ScheduleMatrixExporter):
    """Writes the matrix and an hours summary into an xlsx workbook."""

    content_type = XLSX_CONTENT_TYPE

    def render(self) -> bytes:
        grid = self.build_frame()
        legend = self.build_legend()
        totals = self._build_totals()
        sheet_name = f"Schedule {self.schedule.month + 1}-{self.schedule.year}"

        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            grid.to_excel(writer, sheet_name=sheet_name)
            legend.to_excel(writer, sheet_name=sheet_name, index=False, startrow=len(grid) + 2)
            totals.to_excel(writer, sheet_name="Summary", index=False)
            self._style_grid(writer.sheets[sheet_name], len(grid))
        return buffer.getvalue()

    def _build_totals(self) -> pd.DataFrame:
        result = monthly_summary(self.schedule.assignments, self.schedule.coverage)
        names = {e.id: e.name for e in self._ordered_employees()}
        rows = [("Employee", names.get(k, k), v) for k, v in result.employee_hours.items()]
        rows += [("Store", self._store_name(k), v) for k, v in result.store_hours.items()]
        rows.append(("Total", "", result.total_hours))
        return pd.DataFrame(rows, columns=["Type", "Name", "Hours"])

    def _style_grid(self, sheet, employee_count: int) -> None:
        dates = self._get_date_range()
        sheet.column_dimensions["A"].width = 20
        for cell in sheet[1]:
            cell.font = Font(bold=True)
            cell.fill = HEADER_FILL
        for offset, d in enumerate(dates, start=2):
            column = sheet.cell(row=1, column=offset).column_letter
            sheet.column_dimensions[column].width = 6
            if d.weekday() >= 5:
                for row in range(2, employee_count + 2):
                    sheet.cell(row=row, column=offset).fill = WEEKEND_FILL


class TimesheetExporter(ExportStrategy):
    """Exports a single employee's timesheet, one row per day of the month.

    Days without hours are left blank; a trailing row carries the total.
    """

    COLUMNS = ["Day", "Weekday", "Store", "Hours"]

    def __init__(self, timesheet: Timesheet, fmt: str = "csv"):
        """
        Args:
            timesheet: The timesheet to export
            fmt: "csv" or "xlsx"
        """
        if fmt not in ("csv", "xlsx"):
            raise ValueError(f"Unsupported timesheet format: {fmt}")
        self.timesheet = timesheet
        self.fmt = fmt
        self.content_type = XLSX_CONTENT_TYPE if fmt == "xlsx" else CSV_CONTENT_TYPE

    def build_frame(self) -> pd.DataFrame:
        by_date: Dict[date, List] = {}
        for entry in self.timesheet.entries:
            by_date.setdefault(entry.date, []).append(entry)

        rows = []
        for day in days_in_month(self.timesheet.month, self.timesheet.year):
            entries = by_date.get(day.date, [])
            rows.append(
                {
                    "Day": day.date.day,
                    "Weekday": day.date.strftime("%a"),
                    "Store": ", ".join(e.store_name for e in entries),
                    "Hours": sum(e.hours for e in entries) if entries else None,
                }
            )
        rows.append({"Day": "Total", "Weekday": "", "Store": "", "Hours": self.timesheet.total_hours})
        return pd.DataFrame(rows, columns=self.COLUMNS)

    def render(self) -> bytes:
        frame = self.build_frame()
        if self.fmt == "csv":
            return frame.to_csv(index=False).encode("utf-8")

        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            frame.to_excel(writer, sheet_name="Timesheet", index=False, startrow=2)
            sheet = writer.sheets["Timesheet"]
            sheet["A1"] = self.timesheet.employee.name
            sheet["A1"].font = Font(bold=True)
            sheet["C1"] = f"{calendar.month_name[self.timesheet.month + 1]} {self.timesheet.year}"
            off = set(self.timesheet.days_off)
            for offset, day in enumerate(days_in_month(self.timesheet.month, self.timesheet.year)):
                if day.date in off:
                    for column in range(1, len(self.COLUMNS) + 1):
                        sheet.cell(row=4 + offset, column=column).fill = DAY_OFF_FILL
        return buffer.getvalue()
