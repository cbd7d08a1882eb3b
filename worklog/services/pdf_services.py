"""
Build the one-page maintenance report for a job.
"""
import base64
import io
import logging
from datetime import datetime
from typing import Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfgen import canvas

from worklog.schemas.job import Job, parse_timestamp

logger = logging.getLogger(__name__)

SLATE_50 = colors.HexColor("#f8fafc")
SLATE_100 = colors.HexColor("#f1f5f9")
SLATE_200 = colors.HexColor("#e2e8f0")
SLATE_300 = colors.HexColor("#cbd5e1")
SLATE_400 = colors.HexColor("#94a3b8")
SLATE_500 = colors.HexColor("#64748b")
SLATE_600 = colors.HexColor("#475569")
SLATE_700 = colors.HexColor("#334155")
SLATE_900 = colors.HexColor("#0f172a")
BLUE_50 = colors.HexColor("#eff6ff")
BLUE_600 = colors.HexColor("#2563eb")

MARGIN = 15 * mm


def decode_data_url(value: Optional[str]) -> Optional[ImageReader]:
    """Turn a `data:image/...;base64,` string into an ImageReader, or None."""
    if not value or not value.startswith("data:image/") or "," not in value:
        return None
    try:
        raw = base64.b64decode(value.split(",", 1)[1], validate=False)
        reader = ImageReader(io.BytesIO(raw))
        reader.getSize()
        return reader
    except Exception as e:
        logger.warning("Skipping undecodable image in report", extra={"error": str(e)})
        return None


def _format_date(value: str) -> str:
    parsed = parse_timestamp(value)
    return parsed.strftime("%d/%m/%Y %H:%M") if parsed else (value or "N/A")


class _Report:
    def __init__(self, job: Job):
        self.job = job
        self.buf = io.BytesIO()
        self.width, self.height = letter
        self.c = canvas.Canvas(self.buf, pagesize=letter)
        self.c.setTitle(f"Report {job.id}")
        # Cursor measured from the top of the page
        self.y = 32 * mm

    def _at(self, y: float) -> float:
        return self.height - y

    def _ensure_space(self, needed: float) -> None:
        if self.y + needed > 270 * mm:
            self.c.showPage()
            self.y = 20 * mm

    def header(self) -> None:
        c = self.c
        c.setFillColor(SLATE_100)
        c.rect(0, self._at(25 * mm), self.width, 25 * mm, stroke=0, fill=1)
        c.setFillColor(SLATE_900)
        c.setFont("Helvetica-Bold", 18)
        c.drawString(MARGIN, self._at(12 * mm), "MAINTENANCE REPORT")
        c.setFillColor(SLATE_600)
        c.setFont("Helvetica", 9)
        c.drawString(MARGIN, self._at(18 * mm), "STATUS: FINISHED")

    def field(self, label: str, value: str, x: float, badge: bool = False) -> None:
        c = self.c
        c.setFont("Helvetica-Bold", 9)
        c.setFillColor(SLATE_500)
        c.drawString(x, self._at(self.y), label.upper())
        value = value or "N/A"
        value_y = self.y + 5 * mm
        c.setFont("Helvetica", 11)
        if badge:
            text_width = c.stringWidth(value, "Helvetica", 11)
            c.setFillColor(BLUE_50)
            c.roundRect(x - 2 * mm, self._at(value_y + 2 * mm), text_width + 4 * mm, 6 * mm, 1 * mm, stroke=0, fill=1)
            c.setFillColor(BLUE_600)
        else:
            c.setFillColor(SLATE_900)
        c.drawString(x, self._at(value_y), value)

    def row(self, left: tuple, right: tuple, badge_right: bool = False) -> None:
        self.field(left[0], left[1], MARGIN)
        self.field(right[0], right[1], self.width / 2, badge=badge_right)
        self.y += 13 * mm

    def paragraph(self, title: str, text: str, font: str = "Helvetica", color=SLATE_700) -> None:
        c = self.c
        c.setFont("Helvetica-Bold", 10)
        c.setFillColor(SLATE_500)
        c.drawString(MARGIN, self._at(self.y), title)
        self.y += 7 * mm
        for line in simpleSplit(text, font, 11, self.width - 2 * MARGIN):
            self._ensure_space(6 * mm)
            c.setFont(font, 11)
            c.setFillColor(color)
            c.drawString(MARGIN, self._at(self.y), line)
            self.y += 6 * mm
        self.y += 6 * mm

    def photos(self) -> None:
        before = decode_data_url(self.job.before_photo)
        after = decode_data_url(self.job.after_photo)
        if not before and not after:
            return
        self._ensure_space(80 * mm)
        c = self.c
        c.setFont("Helvetica-Bold", 10)
        c.setFillColor(SLATE_500)
        c.drawString(MARGIN, self._at(self.y), "PHOTOGRAPHIC EVIDENCE")
        self.y += 7 * mm
        img_w, img_h = 85 * mm, 60 * mm
        x = MARGIN
        for label, image in (("Before:", before), ("After:", after)):
            if image is None:
                continue
            c.setFont("Helvetica", 9)
            c.setFillColor(SLATE_600)
            c.drawString(x, self._at(self.y), label)
            c.drawImage(image, x, self._at(self.y + 2 * mm + img_h), img_w, img_h, preserveAspectRatio=True, mask="auto")
            x += img_w + 10 * mm
        self.y += img_h + 10 * mm

    def signature(self) -> None:
        c = self.c
        sig_h = 30 * mm
        self._ensure_space(sig_h)
        c.setFillColor(SLATE_50)
        c.setStrokeColor(SLATE_300)
        c.roundRect(MARGIN, self._at(self.y + sig_h), self.width - 2 * MARGIN, sig_h, 3 * mm, stroke=1, fill=1)
        c.setFont("Helvetica-Bold", 10)
        c.setFillColor(SLATE_500)
        c.drawString(20 * mm, self._at(self.y + 8 * mm), "TECHNICIAN SIGNATURE")

        signature = self.job.signature
        image = decode_data_url(signature)
        if image is not None:
            c.drawImage(image, 18 * mm, self._at(self.y + 27 * mm), 60 * mm, 15 * mm, preserveAspectRatio=True, mask="auto")
        elif signature and not signature.startswith("data:image/"):
            c.setFont("Times-Italic", 18)
            c.setFillColor(SLATE_900)
            c.drawString(20 * mm, self._at(self.y + 22 * mm), signature)
        else:
            c.setFont("Helvetica-Oblique", 12)
            c.setFillColor(SLATE_400)
            c.drawString(20 * mm, self._at(self.y + 20 * mm), "(No signature)")

    def footer(self) -> None:
        c = self.c
        c.setFont("Helvetica", 8)
        c.setFillColor(SLATE_400)
        generated = datetime.now().strftime("%d/%m/%Y %H:%M")
        c.drawString(MARGIN, self._at(272 * mm), f"Generated {generated} - Shift Worklog")

    def build(self) -> bytes:
        job = self.job
        self.header()
        self.row(("Task ID", job.id), ("Work type", job.work_type), badge_right=True)
        self.row(("Area / Location", job.area), ("Finished", _format_date(job.finished_at)))
        self.row(("Assigned technician", job.technician_name), ("Shift", job.shift))
        self.c.setStrokeColor(SLATE_200)
        self.c.line(MARGIN, self._at(self.y - 4 * mm), self.width - MARGIN, self._at(self.y - 4 * mm))
        self.y += 4 * mm
        self.paragraph("DESCRIPTION OF WORK PERFORMED", job.description or "No description.")
        if job.additional_comments:
            self.paragraph("ADDITIONAL COMMENTS", job.additional_comments, font="Helvetica-Oblique", color=SLATE_600)
        self.photos()
        self.signature()
        self.footer()
        self.c.showPage()
        self.c.save()
        return self.buf.getvalue()


def build_job_report_pdf(job: Job) -> bytes:
    """Generate PDF bytes for the given job."""
    return _Report(job).build()


def report_filename(job: Job) -> str:
    return f"Report_{job.id}.pdf"
