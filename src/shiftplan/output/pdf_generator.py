"""PDF generation for schedule output.

This module creates printable PDF rosters showing:
- One weekly grid per page with employees as rows and working days as columns
- Shift labels per cell, with follow-ups and locked assignments marked
- A summary page with workloads and conflicts
"""

from collections import defaultdict
from datetime import date
from io import BytesIO
from pathlib import Path
from typing import Union

from shiftplan.domain.models import (
    Employee,
    ScheduleRequest,
    ScheduleResult,
    ShiftAssignment,
)

# Color definitions (RGB tuples, 0-1 scale)
COLORS = {
    "primary": (0.75, 0.85, 0.95),  # Light blue
    "follow_up": (0.85, 0.93, 0.78),  # Light green
    "locked": (0.95, 0.88, 0.7),  # Light orange
    "header": (0.85, 0.85, 0.85),  # Gray
    "off_day": (0.97, 0.97, 0.97),  # Near white
}


class PDFGenerator:
    """Generates printable PDF rosters.

    Example:
        >>> generator = PDFGenerator()
        >>> generator.generate(result, request, "roster.pdf")
    """

    def __init__(
        self,
        page_width: float = 792,  # Letter landscape width (11")
        page_height: float = 612,  # Letter landscape height (8.5")
        margin: float = 36,  # 0.5 inch margins
    ):
        self.page_width = page_width
        self.page_height = page_height
        self.margin = margin

    def generate(
        self,
        result: ScheduleResult,
        request: ScheduleRequest,
        output_path: Union[str, Path],
        include_summary: bool = True,
    ) -> None:
        """Generate PDF roster and save to file.

        Args:
            result: The scheduling result to render.
            request: The request the result was generated from.
            output_path: Path to save the PDF.
            include_summary: Whether to include the summary page.
        """
        try:
            from reportlab.lib.pagesizes import landscape, letter
            from reportlab.pdfgen import canvas
        except ImportError:
            raise ImportError(
                "reportlab is required for PDF generation. "
                "Install with: pip install reportlab"
            )

        c = canvas.Canvas(str(output_path), pagesize=landscape(letter))
        self._draw(c, result, request, include_summary)
        c.save()

    def generate_to_buffer(
        self,
        result: ScheduleResult,
        request: ScheduleRequest,
        include_summary: bool = True,
    ) -> BytesIO:
        """Generate PDF and return as bytes buffer.

        Returns:
            BytesIO buffer containing PDF data.
        """
        try:
            from reportlab.lib.pagesizes import landscape, letter
            from reportlab.pdfgen import canvas
        except ImportError:
            raise ImportError(
                "reportlab is required for PDF generation. "
                "Install with: pip install reportlab"
            )

        buffer = BytesIO()
        c = canvas.Canvas(buffer, pagesize=landscape(letter))
        self._draw(c, result, request, include_summary)
        c.save()
        buffer.seek(0)
        return buffer

    def _draw(self, c, result: ScheduleResult, request: ScheduleRequest, include_summary: bool) -> None:
        self._draw_week_pages(c, result, request)
        if include_summary:
            self._draw_summary_page(c, result, request)

    def _group_weeks(self, request: ScheduleRequest) -> list[list[date]]:
        """Split the working dates of the horizon into ISO weeks."""
        weeks = []
        current_key = None
        for schedule_date, _ in request.working_dates:
            key = schedule_date.isocalendar()[:2]
            if key != current_key:
                weeks.append([])
                current_key = key
            weeks[-1].append(schedule_date)
        return weeks

    def _draw_week_pages(self, c, result: ScheduleResult, request: ScheduleRequest) -> None:
        """Draw one grid page per week (more if the employees overflow)."""
        cells: dict[tuple[str, date], list[ShiftAssignment]] = defaultdict(list)
        for assignment in result.assignments:
            cells[(assignment.employee_id, assignment.schedule_date)].append(assignment)

        employees = sorted(request.employees, key=lambda e: e.name)
        weeks = self._group_weeks(request)

        row_height = 22
        header_height = 60
        footer_height = 40
        usable_height = self.page_height - 2 * self.margin - header_height - footer_height
        rows_per_page = max(1, int(usable_height / row_height) - 1)

        pages = []
        for week in weeks:
            for start in range(0, max(len(employees), 1), rows_per_page):
                pages.append((week, employees[start : start + rows_per_page]))

        for page_num, (week, page_employees) in enumerate(pages, 1):
            self._draw_header(c, week)
            self._draw_grid(
                c,
                week,
                page_employees,
                cells,
                request,
                self.page_height - self.margin - header_height,
                row_height,
            )
            self._draw_legend(c, self.margin, self.margin + 10)

            c.setFont("Helvetica", 9)
            c.drawCentredString(
                self.page_width / 2,
                self.margin - 10,
                f"Page {page_num} of {len(pages)}",
            )
            c.showPage()

    def _draw_header(self, c, week: list[date]) -> None:
        c.setFont("Helvetica-Bold", 16)
        c.drawString(
            self.margin,
            self.page_height - self.margin - 20,
            f"Shift Roster - Week of {week[0].strftime('%B %d, %Y')}",
        )
        c.setFont("Helvetica", 10)
        c.drawString(
            self.margin,
            self.page_height - self.margin - 35,
            f"{week[0].isoformat()} to {week[-1].isoformat()}",
        )

    def _draw_grid(
        self,
        c,
        week: list[date],
        employees: list[Employee],
        cells: dict[tuple[str, date], list[ShiftAssignment]],
        request: ScheduleRequest,
        top: float,
        row_height: float,
    ) -> None:
        """Draw the employees x days table for one week."""
        name_width = 150
        grid_left = self.margin + name_width
        column_width = (self.page_width - self.margin - grid_left) / 5

        # Column headers
        y = top - row_height
        c.setFillColorRGB(*COLORS["header"])
        c.rect(self.margin, y, self.page_width - 2 * self.margin, row_height, fill=1, stroke=0)
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold", 9)
        c.drawString(self.margin + 4, y + 7, "Employee")
        for schedule_date in week:
            x = grid_left + schedule_date.weekday() * column_width
            c.drawCentredString(
                x + column_width / 2, y + 7, schedule_date.strftime("%a %d.%m.")
            )

        for employee in employees:
            y -= row_height
            c.setFillColorRGB(0, 0, 0)
            c.setFont("Helvetica", 9)
            c.drawString(self.margin + 4, y + 7, employee.name[:26])

            for weekday_index in range(5):
                x = grid_left + weekday_index * column_width
                day = [d for d in week if d.weekday() == weekday_index]
                if not day:
                    c.setFillColorRGB(*COLORS["off_day"])
                    c.rect(x, y, column_width, row_height, fill=1, stroke=0)
                    continue

                day_assignments = cells.get((employee.id, day[0]), [])
                if day_assignments:
                    self._draw_cell(c, day_assignments, request, x, y, column_width, row_height)

            c.setStrokeColorRGB(0.8, 0.8, 0.8)
            c.setLineWidth(0.5)
            c.line(self.margin, y, self.page_width - self.margin, y)

        # Column separators
        c.setStrokeColorRGB(0.6, 0.6, 0.6)
        for weekday_index in range(6):
            x = grid_left + weekday_index * column_width
            c.line(x, y, x, top)

    def _draw_cell(
        self,
        c,
        assignments: list[ShiftAssignment],
        request: ScheduleRequest,
        x: float,
        y: float,
        width: float,
        height: float,
    ) -> None:
        if any(a.locked for a in assignments):
            color = COLORS["locked"]
        elif all(a.is_follow_up for a in assignments):
            color = COLORS["follow_up"]
        else:
            color = COLORS["primary"]
        c.setFillColorRGB(*color)
        c.rect(x + 1, y + 1, width - 2, height - 2, fill=1, stroke=0)

        labels = []
        for assignment in sorted(assignments, key=lambda a: a.is_follow_up):
            shift_type = request.get_shift_type(assignment.shift_id)
            label = shift_type.label if shift_type else assignment.shift_id
            labels.append(f"+{label}" if assignment.is_follow_up else label)

        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica", 8)
        c.drawCentredString(x + width / 2, y + height / 2 - 3, " ".join(labels)[:24])

    def _draw_legend(self, c, x: float, y: float) -> None:
        c.setFont("Helvetica-Bold", 8)
        c.drawString(x, y, "Legend:")

        items = [
            ("primary", "Shift"),
            ("follow_up", "Follow-up only (+)"),
            ("locked", "Locked"),
        ]

        c.setFont("Helvetica", 7)
        current_x = x + 45
        for key, label in items:
            c.setFillColorRGB(*COLORS[key])
            c.rect(current_x, y - 2, 12, 10, fill=1, stroke=1)
            c.setFillColorRGB(0, 0, 0)
            c.drawString(current_x + 15, y, label)
            current_x += 100

    def _draw_summary_page(self, c, result: ScheduleResult, request: ScheduleRequest) -> None:
        """Draw summary page with workloads and conflicts."""
        stats = result.statistics

        c.setFont("Helvetica-Bold", 16)
        c.drawString(
            self.margin,
            self.page_height - self.margin - 20,
            f"Schedule Summary - {request.start_date.isoformat()} to {request.end_date.isoformat()}",
        )

        y = self.page_height - self.margin - 60
        c.setFont("Helvetica-Bold", 12)
        c.drawString(self.margin, y, "Overview")
        y -= 20

        c.setFont("Helvetica", 10)
        for line in [
            f"Total Assignments: {stats.total_assignments}",
            f"Unassigned Positions: {stats.unassigned_shifts}",
            f"Conflicts: {len(result.conflict_details)}",
        ]:
            c.drawString(self.margin + 20, y, line)
            y -= 15

        # Workload table
        y -= 15
        c.setFont("Helvetica-Bold", 12)
        c.drawString(self.margin, y, "Workload")
        y -= 18

        c.setFont("Helvetica-Bold", 9)
        columns = [self.margin + 20, self.margin + 200, self.margin + 260, self.margin + 320]
        for x, title in zip(columns, ["Employee", "Shifts", "Hours", "Target"]):
            c.drawString(x, y, title)
        y -= 13

        c.setFont("Helvetica", 9)
        for employee in sorted(request.employees, key=lambda e: e.name):
            workload = stats.employee_workloads.get(employee.id)
            if workload is None:
                continue
            if y < self.margin + 20:
                c.showPage()
                y = self.page_height - self.margin - 20
                c.setFont("Helvetica", 9)
            values = [
                employee.name[:30],
                str(workload.shift_count),
                f"{workload.hours:.1f}",
                f"{workload.target_percentage:.0f}%",
            ]
            for x, value in zip(columns, values):
                c.drawString(x, y, value)
            y -= 13

        # Conflicts
        y -= 15
        if y < self.margin + 40:
            c.showPage()
            y = self.page_height - self.margin - 20
        c.setFont("Helvetica-Bold", 12)
        c.drawString(self.margin, y, "Conflicts")
        y -= 18

        c.setFont("Helvetica", 8)
        if not result.conflict_details:
            c.drawString(self.margin + 20, y, "None")
        for conflict in result.conflict_details:
            if y < self.margin + 10:
                c.showPage()
                y = self.page_height - self.margin - 20
                c.setFont("Helvetica", 8)
            c.drawString(self.margin + 20, y, conflict.message[:140])
            y -= 11

        c.showPage()
