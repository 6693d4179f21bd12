import io
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Union

from reportlab.lib.colors import Color, black
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import cm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from .content import MAX_SCORE, ContentConfigError
from .narrative import ReportBlock, ReportBundle

log = logging.getLogger(__name__)

BRAND = Color(89 / 255, 44 / 255, 137 / 255)  # #592C89
REPORT_TITLE = "Data Maturity Results"

MARGIN = 2 * cm
BOTTOM = 2.5 * cm
LINE = 0.55 * cm
WRAP = 95
IMAGE_SIZE = 5 * cm


def safe_text(x: Optional[str]) -> str:
    return (x or "").replace("\n", " ").strip()


def split_text(text: str, max_len: int) -> List[str]:
    words = text.split()
    if not words:
        return []
    lines = []
    line = ""
    for w in words:
        if len(line) + len(w) + 1 <= max_len:
            line = (line + " " + w).strip()
        else:
            lines.append(line)
            line = w
    if line:
        lines.append(line)
    return lines


class _Page:
    """Cursor over a reportlab canvas that starts a new page when the bottom margin is hit."""

    def __init__(self, c: canvas.Canvas):
        self.c = c
        self.width, self.height = A4
        self.y = self.height - MARGIN

    def ensure_room(self, needed: float = LINE) -> None:
        if self.y - needed < BOTTOM:
            self.c.showPage()
            self.y = self.height - MARGIN

    def new_page(self) -> None:
        self.c.showPage()
        self.y = self.height - MARGIN

    def title(self, text: str) -> None:
        self.ensure_room(1.2 * cm)
        self.c.setFillColor(BRAND)
        self.c.setFont("Helvetica-Bold", 20)
        self.c.drawString(MARGIN, self.y, text)
        self.c.setFillColor(black)
        self.y -= 1.1 * cm

    def subtitle(self, text: str) -> None:
        self.ensure_room(0.9 * cm)
        self.c.setFont("Helvetica-Bold", 13)
        self.c.drawString(MARGIN, self.y, text)
        self.y -= 0.7 * cm

    def key_value(self, key: str, value: str) -> None:
        self.ensure_room()
        self.c.setFont("Helvetica-Bold", 11)
        label = f"{key} "
        self.c.drawString(MARGIN, self.y, label)
        offset = self.c.stringWidth(label, "Helvetica-Bold", 11)
        self.c.setFont("Helvetica", 11)
        self.c.drawString(MARGIN + offset, self.y, value)
        self.y -= LINE

    def paragraph(self, text: Optional[str]) -> None:
        self.c.setFont("Helvetica", 11)
        for chunk in split_text(safe_text(text), WRAP):
            self.ensure_room()
            self.c.setFont("Helvetica", 11)
            self.c.drawString(MARGIN, self.y, chunk)
            self.y -= LINE
        self.y -= 0.3 * cm

    def row(self, cols: List[str], widths: List[float], bold: bool = False) -> None:
        self.ensure_room()
        self.c.setFont("Helvetica-Bold" if bold else "Helvetica", 10)
        x = MARGIN
        for col, w in zip(cols, widths):
            self.c.drawString(x, self.y, col)
            x += w
        self.y -= LINE

    def image(self, path: Path) -> None:
        self.ensure_room(IMAGE_SIZE + 0.4 * cm)
        self.c.drawImage(
            ImageReader(str(path)),
            MARGIN,
            self.y - IMAGE_SIZE,
            width=IMAGE_SIZE,
            height=IMAGE_SIZE,
            preserveAspectRatio=True,
            mask="auto",
        )
        self.y -= IMAGE_SIZE + 0.6 * cm


def _resolve_image(assets_dir: Path, ref: str) -> Path:
    path = assets_dir / ref
    if not path.is_file():
        raise ContentConfigError(f"Report image '{ref}' not found under {assets_dir}")
    return path


def _narrative(page: _Page, block: ReportBlock) -> None:
    page.subtitle("Overview")
    page.paragraph(block.recommendation)
    page.subtitle("Quick improvements")
    page.paragraph(block.quick)
    page.subtitle("Long-term goals")
    page.paragraph(block.long_term)


def render_report(
    report: ReportBundle,
    assets_dir: Union[str, Path],
    output_path: Optional[str] = None,
) -> bytes:
    """
    Render the report as an A4 PDF: one overview page, then one page per section.
    Returns the PDF bytes and also writes them to output_path when given.
    """
    assets = Path(assets_dir)
    # every image must resolve before drawing starts
    images = [_resolve_image(assets, block.image) if block.image else None for block in report.sections]

    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4, pageCompression=0)
    c.setTitle(REPORT_TITLE)
    page = _Page(c)

    overall = report.overall
    page.title(f"Stage {overall.stage}: {overall.stage_name}")
    page.key_value("Overall score:", f"{overall.score:.2f} / {MAX_SCORE:.0f}")
    c.setFont("Helvetica", 9)
    c.drawString(MARGIN, page.y, f"Generated: {datetime.now(timezone.utc).isoformat(timespec='seconds')}")
    page.y -= 0.8 * cm

    _narrative(page, overall)

    if report.focus_areas:
        page.subtitle("Focus areas")
        for area in report.focus_areas:
            page.paragraph(f"- {area}")

    if report.breakdown:
        page.subtitle("Part breakdown")
        widths = [5.5 * cm, 2 * cm, 2 * cm, 2 * cm, 2 * cm, 2.5 * cm]
        page.row(["Part", "Raw", "Max", "0..15", "Weight", "Contrib"], widths, bold=True)
        for r in report.breakdown:
            page.row([r.part, r.raw, r.max, r.scaled0to15, f"{r.weight:g}", r.contribution], widths)

    for block, image in zip(report.sections, images):
        page.new_page()
        page.title(block.title)
        page.key_value("Stage:", f"{block.stage} - {block.stage_name}")
        page.key_value("Score:", f"{block.score:.2f} / {MAX_SCORE:.0f}")
        page.y -= 0.3 * cm
        if image is not None:
            page.image(image)
        _narrative(page, block)

    c.showPage()
    c.save()
    data = buf.getvalue()

    if output_path:
        os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
        with open(output_path, "wb") as f:
            f.write(data)
        log.info("Wrote report to %s", output_path)
    return data
