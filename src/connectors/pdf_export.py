# connectors/pdf_export.py

import io
import logging
from typing import Iterable
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer

from config import settings as default_settings
from connectors.base import BaseExporter
from models import Customer, Quotation, QuotationStatus
from services.ledger import compute_totals, quantize_money

logger = logging.getLogger(__name__)


HEADER_BG = colors.HexColor("#1B2A4A")
ROW_ALT_BG = colors.HexColor("#F1F5F9")

CUSTOMER_COLUMNS = ["Name", "Phone", "Location", "Stage", "Business Type", "Daily Prod. (kg)"]
LINE_ITEM_COLUMNS = ["S.No", "Description", "HSN", "Pcs", "Qty", "Amount (Rs.)"]

TERMS = [
    "1. Goods once sold will not be taken back.",
    "2. Please inform of any discrepancy within five days.",
]


class PdfExporter(BaseExporter):
    """
    Documents PDF générés avec reportlab (platypus).

    → export_customers() : tableau de la liste filtrée
    → export_quotation() : devis imprimable avec en-tête société,
      lignes, taxes CGST/SGST, coordonnées bancaires et conditions
    """

    media_type = "application/pdf"
    extension = "pdf"

    def __init__(self, settings=None):
        super().__init__(settings or default_settings)
        self.styles = getSampleStyleSheet()
        self.styles.add(ParagraphStyle(
            name="Company",
            parent=self.styles["Title"],
            fontSize=16,
            spaceAfter=2
        ))
        self.styles.add(ParagraphStyle(
            name="Small",
            parent=self.styles["Normal"],
            fontSize=8,
            leading=10
        ))

    def _get_format_name(self) -> str:
        return "pdf"

    # ─────────────────────────────────────────
    # LISTE CLIENTS
    # ─────────────────────────────────────────

    def export_customers(self, customers: Iterable[Customer]) -> bytes:
        customers = list(customers)
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            leftMargin=12 * mm,
            rightMargin=12 * mm,
            title="Customer List"
        )

        rows = [CUSTOMER_COLUMNS]
        for c in customers:
            rows.append([
                Paragraph(escape(c.name), self.styles["Small"]),
                c.phone,
                Paragraph(escape(c.location), self.styles["Small"]),
                c.stage.label,
                c.business_type.value,
                str(c.daily_production),
            ])

        table = Table(rows, repeatRows=1)
        table.setStyle(self._table_style(len(rows)))

        elements = [
            Paragraph("Customer List", self.styles["Title"]),
            Paragraph(f"{len(customers)} customer(s)", self.styles["Normal"]),
            Spacer(1, 6 * mm),
            table,
        ]
        doc.build(elements)

        logger.info(f"PDF clients généré ({len(customers)} lignes)")
        return buffer.getvalue()

    # ─────────────────────────────────────────
    # DEVIS
    # ─────────────────────────────────────────

    def export_quotation(self, customer: Customer, quotation: Quotation) -> bytes:
        s = self.settings
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            leftMargin=15 * mm,
            rightMargin=15 * mm,
            title=f"Quotation {quotation.quotation_number}"
        )

        elements = [
            Paragraph(escape(s.company_name), self.styles["Company"]),
            Paragraph(escape(s.company_tagline), self.styles["Small"]),
            Paragraph(escape(s.company_address), self.styles["Small"]),
            Paragraph(f"GSTIN: {escape(s.company_gstin)} | Contact: {escape(s.company_contact)}", self.styles["Small"]),
            Spacer(1, 6 * mm),
            Paragraph("QUOTATION", self.styles["Heading2"]),
        ]

        # ── Destinataire / référence ──
        meta = Table(
            [
                ["To:", customer.name, "Quotation No:", quotation.quotation_number],
                ["", customer.location, "Date:", quotation.date.strftime("%d/%m/%Y")],
                ["", customer.phone, "Status:", quotation.status.value],
            ],
            colWidths=[15 * mm, 75 * mm, 30 * mm, 60 * mm]
        )
        meta.setStyle(TableStyle([
            ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
            ("FONTNAME", (2, 0), (2, -1), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, -1), 9),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ]))
        elements += [meta, Spacer(1, 6 * mm)]

        # ── Lignes ──
        rows = [LINE_ITEM_COLUMNS]
        for position, item in enumerate(quotation.line_items, start=1):
            rows.append([
                str(position),
                Paragraph(escape(item.description), self.styles["Small"]),
                item.hsn,
                str(item.pcs),
                str(item.quantity),
                _money(item.amount),
            ])

        items_table = Table(
            rows,
            colWidths=[12 * mm, 78 * mm, 22 * mm, 15 * mm, 15 * mm, 38 * mm],
            repeatRows=1
        )
        style = self._table_style(len(rows))
        style.add("ALIGN", (3, 1), (-1, -1), "RIGHT")
        items_table.setStyle(style)
        elements += [items_table, Spacer(1, 4 * mm)]

        # ── Totaux ──
        totals = printed_totals(quotation)
        totals_table = Table(
            [
                ["Sub Total", _money(totals["sub_total"])],
                ["CGST @ 9%", _money(totals["cgst"])],
                ["SGST @ 9%", _money(totals["sgst"])],
                ["Net Amount", _money(totals["net_amount"])],
            ],
            colWidths=[40 * mm, 38 * mm],
            hAlign="RIGHT"
        )
        totals_table.setStyle(TableStyle([
            ("ALIGN", (1, 0), (1, -1), "RIGHT"),
            ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
            ("LINEABOVE", (0, -1), (-1, -1), 0.8, colors.black),
            ("FONTSIZE", (0, 0), (-1, -1), 9),
        ]))
        elements += [totals_table, Spacer(1, 8 * mm)]

        # ── Banque | Conditions, côte à côte ──
        bank = [
            Paragraph("Our Bank Details", self.styles["Heading4"]),
            Paragraph(f"Bank: {escape(s.bank_name)}", self.styles["Small"]),
            Paragraph(f"Account Name: {escape(s.bank_account_name)}", self.styles["Small"]),
            Paragraph(f"Account No: {escape(s.bank_account_number)}", self.styles["Small"]),
            Paragraph(f"IFSC: {escape(s.bank_ifsc)}", self.styles["Small"]),
        ]
        terms = [Paragraph("Terms And Conditions", self.styles["Heading4"])] + [
            Paragraph(escape(line), self.styles["Small"]) for line in TERMS
        ]
        footer = Table([[bank, terms]], colWidths=[85 * mm, 85 * mm])
        footer.setStyle(TableStyle([
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("LEFTPADDING", (0, 0), (0, -1), 0),
        ]))

        elements += [
            footer,
            Spacer(1, 10 * mm),
            Paragraph(f"For {escape(s.company_name.upper())}", self.styles["Normal"]),
            Spacer(1, 12 * mm),
            Paragraph("Proprietor", self.styles["Normal"]),
        ]

        doc.build(elements)

        logger.info(f"PDF devis {quotation.quotation_number} généré pour {customer.id}")
        return buffer.getvalue()

    def _table_style(self, row_count: int) -> TableStyle:
        commands = [
            ("BACKGROUND", (0, 0), (-1, 0), HEADER_BG),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, -1), 8),
            ("GRID", (0, 0), (-1, -1), 0.4, colors.grey),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ]
        for row in range(2, row_count, 2):
            commands.append(("BACKGROUND", (0, row), (-1, row), ROW_ALT_BG))
        return TableStyle(commands)


def _money(value) -> str:
    return f"{quantize_money(value):,.2f}"


def printed_totals(quotation: Quotation) -> dict:
    """
    Totaux imprimés sur le devis.
    Un devis accepté garde le montant net enregistré à la confirmation.
    """
    totals = compute_totals(quotation.line_items)
    if quotation.status == QuotationStatus.ACCEPTED:
        totals["net_amount"] = quotation.net_amount
    return totals
