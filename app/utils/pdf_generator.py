"""
Budget PDF Generator

Renders a printable A4 summary of a budget: shop header, vehicle and owner
data, the parts and labor tables and the totals. Content that does not fit
on one page flows onto the next.
"""
import os
from io import BytesIO
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import (
    Image,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from app.logging_config import get_logger
from app.utils.formatting import format_currency, format_date, format_number

logger = get_logger(__name__)

BRAND_COLOR = colors.HexColor("#1f3b73")
HEADER_BG = colors.HexColor("#f3f4f6")
GRID_COLOR = colors.HexColor("#d1d5db")


def _text(value) -> str:
    """Escape a value for a Paragraph, keeping line breaks."""
    if value is None:
        return ""
    return escape(str(value)).replace("\n", "<br/>")


class BudgetPDFGenerator:
    """
    Build the PDF for one budget.

    Usage:
        generator = BudgetPDFGenerator(budget, shop_name="Motoren Haus")
        pdf_bytes = generator.generate()
    """

    def __init__(self, budget, shop_name, logo_path=None, currency_symbol="$"):
        """
        Args:
            budget: Budget model instance with its items loaded
            shop_name: Printed in the header when there is no logo
            logo_path: Optional PNG/JPEG logo file
            currency_symbol: Prefix for money amounts
        """
        self.budget = budget
        self.shop_name = shop_name
        self.logo_path = logo_path
        self.currency_symbol = currency_symbol
        self.page_width, self.page_height = A4
        self.margin = 1.5 * cm
        self.content_width = self.page_width - 2 * self.margin

        base = getSampleStyleSheet()
        self.styles = {
            "shop": ParagraphStyle("shop", parent=base["Title"], textColor=BRAND_COLOR, alignment=0),
            "meta": ParagraphStyle("meta", parent=base["Normal"], fontSize=9, alignment=TA_RIGHT, leading=12),
            "section": ParagraphStyle("section", parent=base["Heading4"], textColor=BRAND_COLOR, spaceBefore=8, spaceAfter=4),
            "body": ParagraphStyle("body", parent=base["Normal"], fontSize=9, leading=12),
            "label": ParagraphStyle("label", parent=base["Normal"], fontSize=8, textColor=colors.grey),
            "cell": ParagraphStyle("cell", parent=base["Normal"], fontSize=8, leading=10),
            "total": ParagraphStyle("total", parent=base["Normal"], fontSize=9, alignment=TA_RIGHT, leading=13),
            "grand_total": ParagraphStyle("grand_total", parent=base["Normal"], fontName="Helvetica-Bold", fontSize=12, alignment=TA_RIGHT, leading=16),
        }

    def _money(self, value) -> str:
        return format_currency(value, symbol=self.currency_symbol)

    def _brand(self):
        if self.logo_path and os.path.isfile(self.logo_path):
            try:
                return Image(self.logo_path, width=5 * cm, height=2.4 * cm, kind="proportional")
            except Exception as e:
                logger.warning(f"Could not load logo {self.logo_path}: {e}")
        return Paragraph(_text(self.shop_name), self.styles["shop"])

    def _header(self):
        budget = self.budget
        meta_lines = [
            f"<b>N° {budget.number}</b>",
            f"Fecha: {format_date(budget.date)}",
        ]
        if budget.mileage:
            meta_lines.append(f"Kilometraje: {_text(budget.mileage)}")
        meta = Paragraph("<br/>".join(meta_lines), self.styles["meta"])

        table = Table(
            [[self._brand(), meta]],
            colWidths=[self.content_width * 0.6, self.content_width * 0.4],
        )
        table.setStyle(TableStyle([
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ("LINEBELOW", (0, 0), (-1, 0), 1, BRAND_COLOR),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 8),
        ]))
        return [table, Spacer(1, 0.4 * cm)]

    def _vehicle_block(self):
        budget = self.budget
        vehicle = " ".join(part for part in (budget.make, budget.model) if part) or "-"
        rows = [
            ("Propietario", budget.owner),
            ("Placa", budget.plate),
            ("Vehículo", vehicle),
            ("Kilometraje", budget.mileage or "-"),
            ("VIN", budget.vin or "-"),
        ]
        data = [
            [Paragraph(label, self.styles["label"]), Paragraph(_text(value), self.styles["body"])]
            for label, value in rows
        ]
        table = Table(data, colWidths=[3.5 * cm, self.content_width - 3.5 * cm])
        table.setStyle(TableStyle([
            ("BOX", (0, 0), (-1, -1), 0.5, GRID_COLOR),
            ("BACKGROUND", (0, 0), (0, -1), HEADER_BG),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ]))
        return [table, Spacer(1, 0.3 * cm)]

    def _paragraph_section(self, title, text):
        if not text:
            return []
        return [
            Paragraph(title, self.styles["section"]),
            Paragraph(_text(text), self.styles["body"]),
        ]

    def _items_table(self, title, name_header, items, subtotal):
        """One table per item kind, omitted when the kind has no items."""
        if not items:
            return []

        data = [[name_header, "Cant.", "Precio", "Total"]]
        for item in items:
            data.append([
                Paragraph(_text(item.name), self.styles["cell"]),
                format_number(item.quantity),
                format_number(item.unit_price),
                format_number(item.total),
            ])
        data.append([f"Subtotal {title.lower()}", "", "", format_number(subtotal)])

        name_width = self.content_width - 2 * cm - 2 * 3.25 * cm
        table = Table(data, colWidths=[name_width, 2 * cm, 3.25 * cm, 3.25 * cm], repeatRows=1)
        table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), BRAND_COLOR),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, -1), 8),
            ("GRID", (0, 0), (-1, -1), 0.5, GRID_COLOR),
            ("ALIGN", (1, 1), (1, -1), "CENTER"),
            ("ALIGN", (2, 1), (-1, -1), "RIGHT"),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            # Subtotal footer
            ("SPAN", (0, -1), (2, -1)),
            ("ALIGN", (0, -1), (2, -1), "RIGHT"),
            ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
            ("BACKGROUND", (0, -1), (-1, -1), HEADER_BG),
        ]))
        return [Paragraph(title, self.styles["section"]), table, Spacer(1, 0.3 * cm)]

    def _totals_block(self):
        budget = self.budget
        totals = Paragraph(
            f"Subtotal repuestos: {self._money(budget.parts_subtotal)}<br/>"
            f"Subtotal servicios: {self._money(budget.labor_subtotal)}",
            self.styles["total"],
        )
        grand_total = Paragraph(f"Total: {self._money(budget.total)}", self.styles["grand_total"])

        notes = []
        if budget.notes:
            notes = [
                Paragraph("Observaciones", self.styles["section"]),
                Paragraph(_text(budget.notes), self.styles["body"]),
            ]

        table = Table(
            [[notes or "", [totals, grand_total]]],
            colWidths=[self.content_width * 0.55, self.content_width * 0.45],
        )
        table.setStyle(TableStyle([
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("LINEABOVE", (0, 0), (-1, 0), 1, BRAND_COLOR),
            ("TOPPADDING", (0, 0), (-1, -1), 8),
        ]))
        return [Spacer(1, 0.3 * cm), table]

    def build_story(self):
        """Collect the flowables in print order."""
        budget = self.budget
        story = []
        story.extend(self._header())
        story.extend(self._vehicle_block())
        story.extend(self._paragraph_section("Descripción / diagnóstico", budget.description))
        story.extend(self._items_table("Repuestos", "Repuesto", budget.parts, budget.parts_subtotal))
        story.extend(self._items_table("Servicios", "Servicio", budget.labor, budget.labor_subtotal))
        story.extend(self._totals_block())
        return story

    def generate(self) -> bytes:
        """Render the PDF and return its bytes."""
        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            leftMargin=self.margin,
            rightMargin=self.margin,
            topMargin=self.margin,
            bottomMargin=self.margin,
            title=f"Presupuesto {self.budget.number}",
            author=self.shop_name,
        )
        doc.build(self.build_story())
        pdf_bytes = buffer.getvalue()
        buffer.close()
        logger.info(f"Rendered PDF for budget #{self.budget.number} ({len(pdf_bytes)} bytes)")
        return pdf_bytes

    @property
    def filename(self) -> str:
        return f"budget-{self.budget.number}.pdf"
