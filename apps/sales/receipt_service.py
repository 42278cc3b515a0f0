"""
Receipt generation for the billing counter.

- A5 PDF receipt with shop header, bill details, particulars table, totals
  and GST summary
- 80mm thermal PDF receipt for counter printers
- HTML receipts for browser printing
- Plain text summary for WhatsApp
- QR code linking to the digital receipt
"""

import io
import logging
from decimal import Decimal
from typing import Optional
from xml.sax.saxutils import escape

from django.conf import settings
from django.template.loader import render_to_string
from django.utils import timezone

import qrcode
from reportlab.lib import colors
from reportlab.lib.pagesizes import A5
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch, mm
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle
from reportlab.platypus.flowables import HRFlowable

from apps.core.exceptions import ValidationError

from .services import BillWithItems

logger = logging.getLogger(__name__)

STANDARD = "standard"
THERMAL = "thermal"
FORMAT_TYPES = (STANDARD, THERMAL)

FOOTER_MESSAGES = [
    "Thank you for shopping with us",
    "Please visit again..!",
    "*** Have A Nice Day ***",
]


def get_shop_details():
    """Shop header printed on every receipt."""
    return {
        "name": getattr(settings, "POS_SHOP_NAME", ""),
        "address_lines": [
            line for line in getattr(settings, "POS_SHOP_ADDRESS", "").split("\n") if line.strip()
        ],
        "phone": getattr(settings, "POS_SHOP_PHONE", ""),
        "gstin": getattr(settings, "POS_SHOP_GSTIN", ""),
    }


def format_money(amount, symbol=True) -> str:
    value = f"{Decimal(amount):,.2f}"
    if not symbol:
        return value
    return f"{getattr(settings, 'POS_CURRENCY_SYMBOL', 'Rs.')} {value}"


def get_receipt_url(bill: BillWithItems) -> str:
    """Public link to the digital receipt."""
    base_url = getattr(settings, "POS_RECEIPT_BASE_URL", "").rstrip("/")
    return f"{base_url}/api/bills/{bill.id}/receipt/"


class ReceiptGenerator:
    """
    Receipt generator for bills.

    Supports:
    - Standard receipt (A5)
    - Thermal printer format (80mm width)
    - HTML receipts for browser printing
    """

    # Receipt dimensions
    THERMAL_WIDTH = 80 * mm

    # Margins
    THERMAL_MARGIN = 5 * mm
    STANDARD_MARGIN = 10 * mm

    def __init__(self, bill: BillWithItems):
        self.bill = bill
        self.shop = get_shop_details()
        self.styles = getSampleStyleSheet()
        self._create_custom_styles()

    def _create_custom_styles(self):
        """Create custom paragraph styles for receipts."""
        self.shop_name_style = ParagraphStyle(
            "ShopName",
            parent=self.styles["Heading1"],
            fontSize=16,
            spaceAfter=4,
            alignment=1,
            textColor=colors.black,
            fontName="Helvetica-Bold",
        )

        self.thermal_shop_style = ParagraphStyle(
            "ThermalShop",
            parent=self.styles["Heading1"],
            fontSize=12,
            spaceAfter=2,
            alignment=1,
            textColor=colors.black,
            fontName="Helvetica-Bold",
        )

        self.body_style = ParagraphStyle(
            "ReceiptBody",
            parent=self.styles["Normal"],
            fontSize=9,
            spaceAfter=2,
            textColor=colors.black,
        )

        self.thermal_body_style = ParagraphStyle(
            "ThermalBody",
            parent=self.styles["Normal"],
            fontSize=7,
            spaceAfter=1,
            textColor=colors.black,
        )

        self.centered_style = ParagraphStyle(
            "ReceiptCentered", parent=self.body_style, alignment=1
        )

        self.thermal_centered_style = ParagraphStyle(
            "ThermalCentered", parent=self.thermal_body_style, alignment=1
        )

    def _body(self, thermal):
        return self.thermal_body_style if thermal else self.body_style

    def _centered(self, thermal):
        return self.thermal_centered_style if thermal else self.centered_style

    def generate_pdf_receipt(self, format_type: str = STANDARD) -> bytes:
        """
        Generate a PDF receipt.

        Args:
            format_type: 'standard' for A5, 'thermal' for 80mm paper

        Returns:
            PDF bytes
        """
        if format_type not in FORMAT_TYPES:
            raise ValueError(f"Unsupported receipt format: {format_type}")

        buffer = io.BytesIO()
        thermal = format_type == THERMAL

        if thermal:
            # Page grows with the number of lines
            height = 120 * mm + len(self.bill.items) * 6 * mm
            doc = SimpleDocTemplate(
                buffer,
                pagesize=(self.THERMAL_WIDTH, height),
                rightMargin=self.THERMAL_MARGIN,
                leftMargin=self.THERMAL_MARGIN,
                topMargin=self.THERMAL_MARGIN,
                bottomMargin=self.THERMAL_MARGIN,
                title=f"Receipt {self.bill.bill_number}",
            )
        else:
            doc = SimpleDocTemplate(
                buffer,
                pagesize=A5,
                rightMargin=self.STANDARD_MARGIN,
                leftMargin=self.STANDARD_MARGIN,
                topMargin=self.STANDARD_MARGIN,
                bottomMargin=self.STANDARD_MARGIN,
                title=f"Receipt {self.bill.bill_number}",
            )

        doc.build(self._build_receipt_content(thermal))
        pdf_bytes = buffer.getvalue()
        buffer.close()

        return pdf_bytes

    def _build_receipt_content(self, thermal: bool):
        story = []
        story.extend(self._build_shop_header(thermal))
        story.extend(self._build_bill_info(thermal))
        story.extend(self._build_items_table(thermal))
        story.extend(self._build_totals_section(thermal))
        if not thermal and self.bill.tax > 0:
            story.extend(self._build_gst_summary())
        story.extend(self._build_payment_info(thermal))
        story.extend(self._build_receipt_footer(thermal))
        return story

    def _build_shop_header(self, thermal: bool = False):
        elements = []

        if self.shop["name"]:
            style = self.thermal_shop_style if thermal else self.shop_name_style
            elements.append(Paragraph(escape(self.shop["name"]), style))

        centered = self._centered(thermal)
        for line in self.shop["address_lines"]:
            elements.append(Paragraph(escape(line), centered))
        if self.shop["phone"]:
            elements.append(Paragraph(f"MOB No. {escape(self.shop['phone'])}", centered))
        if self.shop["gstin"]:
            elements.append(Paragraph(f"GSTIN : {escape(self.shop['gstin'])}", centered))

        elements.append(Spacer(1, 4))
        elements.append(HRFlowable(width="100%", thickness=0.5, color=colors.black))
        elements.append(Spacer(1, 4))
        return elements

    def _build_bill_info(self, thermal: bool = False):
        """Bill No / Date on the first row, Counter No / Time on the second."""
        created_at = timezone.localtime(self.bill.created_at) if self.bill.created_at else timezone.now()
        font_size = 7 if thermal else 9

        data = [
            [f"Bill No : {self.bill.bill_number}", f"Date : {created_at.strftime('%d/%m/%Y')}"],
            [f"Counter No : {self.bill.counter_number}", f"Time : {created_at.strftime('%I:%M %p')}"],
            [f"Customer : {self.bill.customer_name}", f"Phone : {self.bill.customer_phone}"],
        ]
        table = Table(data, colWidths=["60%", "40%"])
        table.setStyle(
            TableStyle(
                [
                    ("FONTNAME", (0, 0), (-1, 1), "Helvetica-Bold"),
                    ("FONTNAME", (0, 2), (-1, -1), "Helvetica"),
                    ("FONTSIZE", (0, 0), (-1, -1), font_size),
                    ("ALIGN", (1, 0), (1, -1), "RIGHT"),
                    ("LEFTPADDING", (0, 0), (-1, -1), 0),
                    ("RIGHTPADDING", (0, 0), (-1, -1), 0),
                ]
            )
        )

        return [
            table,
            Spacer(1, 4),
            HRFlowable(width="100%", thickness=0.5, color=colors.black),
            Spacer(1, 4),
        ]

    def _build_items_table(self, thermal: bool = False):
        """Particulars, Qty, MRP and Amount per line."""
        font_size = 7 if thermal else 9
        name_limit = 18 if thermal else 40

        data = [["Particulars", "Qty", "MRP", "Amount"]]
        for item in self.bill.items:
            name = item.product_name.upper()
            if item.selected_size:
                name = f"{name} ({item.selected_size})"
            if len(name) > name_limit:
                name = name[: name_limit - 3] + "..."
            data.append(
                [
                    name,
                    str(item.quantity),
                    format_money(item.product_price, symbol=False),
                    format_money(item.total, symbol=False),
                ]
            )

        if not self.bill.items:
            data.append(["No items in this bill", "", "", ""])

        data.append(
            [
                f"Qty: {self.bill.total_quantity}",
                "",
                "Total MRP:",
                format_money(self.bill.total_mrp, symbol=False),
            ]
        )

        table = Table(data, colWidths=["50%", "12%", "18%", "20%"])
        table.setStyle(
            TableStyle(
                [
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                    ("FONTNAME", (0, 1), (-1, -2), "Helvetica"),
                    ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, -1), font_size),
                    ("ALIGN", (1, 0), (1, -1), "CENTER"),
                    ("ALIGN", (2, 0), (-1, -1), "RIGHT"),
                    ("LINEBELOW", (0, 0), (-1, 0), 0.5, colors.black),
                    ("LINEABOVE", (0, -1), (-1, -1), 0.5, colors.black),
                    ("LEFTPADDING", (0, 0), (-1, -1), 0),
                    ("RIGHTPADDING", (0, 0), (-1, -1), 0),
                    ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                ]
            )
        )

        return [table, Spacer(1, 6)]

    def _build_totals_section(self, thermal: bool = False):
        font_size = 7 if thermal else 9

        rows = [["Subtotal :", format_money(self.bill.subtotal)]]
        if self.bill.discount_amount > 0:
            label = "Discount :"
            if self.bill.discount_type == "percent":
                label = f"Discount ({self.bill.discount_value.normalize():f}%) :"
            rows.append([label, f"- {format_money(self.bill.discount_amount)}"])
        if self.bill.tax > 0:
            rows.append(["Tax :", format_money(self.bill.tax)])
        net_row = len(rows)
        rows.append(["Net Amount :", format_money(self.bill.total)])
        if self.bill.savings > 0:
            rows.append(["You saved :", format_money(self.bill.savings)])

        table = Table(rows, colWidths=["60%", "40%"])
        table.setStyle(
            TableStyle(
                [
                    ("FONTNAME", (0, 0), (-1, -1), "Helvetica"),
                    ("FONTSIZE", (0, 0), (-1, -1), font_size),
                    ("ALIGN", (1, 0), (1, -1), "RIGHT"),
                    ("FONTNAME", (0, net_row), (-1, net_row), "Helvetica-Bold"),
                    ("LINEABOVE", (0, net_row), (-1, net_row), 1, colors.black),
                    ("LEFTPADDING", (0, 0), (-1, -1), 0),
                    ("RIGHTPADDING", (0, 0), (-1, -1), 0),
                ]
            )
        )

        return [table, Spacer(1, 6)]

    def _build_gst_summary(self):
        """Taxable value with the tax split evenly into CGST and SGST."""
        half = (self.bill.tax / 2).quantize(Decimal("0.01"))
        rate = self.bill.tax_rate * 100

        data = [
            ["GST Summary", "Taxable", "CGST", "SGST"],
            [
                f"GST {rate:.2f}%",
                format_money(self.bill.subtotal, symbol=False),
                format_money(half, symbol=False),
                format_money(self.bill.tax - half, symbol=False),
            ],
        ]
        table = Table(data, colWidths=["34%", "22%", "22%", "22%"])
        table.setStyle(
            TableStyle(
                [
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, -1), 8),
                    ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
                    ("BOX", (0, 0), (-1, -1), 0.5, colors.black),
                ]
            )
        )
        return [table, Spacer(1, 6)]

    def _build_payment_info(self, thermal: bool = False):
        created_at = timezone.localtime(self.bill.created_at) if self.bill.created_at else timezone.now()
        return [
            Paragraph(
                f"{self.bill.payment_method_display} : {format_money(self.bill.total)}"
                f" &nbsp;&nbsp; Paid on : {created_at.strftime('%d/%m/%Y')}",
                self._body(thermal),
            ),
            Spacer(1, 8 if thermal else 12),
        ]

    def _build_receipt_footer(self, thermal: bool = False):
        elements = [HRFlowable(width="100%", thickness=0.5, color=colors.black), Spacer(1, 4)]

        centered = self._centered(thermal)
        for message in FOOTER_MESSAGES:
            elements.append(Paragraph(message, centered))

        if not thermal:
            qr_code = self._generate_qr_code()
            if qr_code:
                elements.append(Spacer(1, 8))
                elements.append(qr_code)
                elements.append(Paragraph("Scan for digital receipt", centered))

        return elements

    def _generate_qr_code(self) -> Optional[Image]:
        """QR code pointing at the digital receipt."""
        receipt_url = get_receipt_url(self.bill)
        try:
            qr = qrcode.QRCode(
                version=1,
                error_correction=qrcode.constants.ERROR_CORRECT_L,
                box_size=3,
                border=2,
            )
            qr.add_data(receipt_url)
            qr.make(fit=True)

            qr_img = qr.make_image(fill_color="black", back_color="white")

            buffer = io.BytesIO()
            qr_img.save(buffer, format="PNG")
            buffer.seek(0)

            img = Image(buffer, width=0.9 * inch, height=0.9 * inch)
            img.hAlign = "CENTER"
            return img

        except (ValueError, OSError) as e:
            # The receipt is still valid without the QR code
            logger.warning(f"Error generating QR code for bill {self.bill.bill_number}: {e}")
            return None

    def generate_html_receipt(self, format_type: str = STANDARD) -> str:
        """
        Generate an HTML receipt for browser printing.

        Args:
            format_type: 'standard' or 'thermal'
        """
        if format_type not in FORMAT_TYPES:
            raise ValueError(f"Unsupported receipt format: {format_type}")

        context = {
            "bill": self.bill,
            "shop": self.shop,
            "items": self.bill.items,
            "currency": getattr(settings, "POS_CURRENCY_SYMBOL", "Rs."),
            "receipt_url": get_receipt_url(self.bill),
            "footer_messages": FOOTER_MESSAGES,
            "current_time": timezone.now(),
        }
        return render_to_string(f"sales/receipt_{format_type}.html", context)


def build_whatsapp_message(bill: BillWithItems) -> str:
    """Plain text receipt sent to the customer on WhatsApp."""
    shop = get_shop_details()
    created_at = timezone.localtime(bill.created_at) if bill.created_at else timezone.now()

    lines = []
    if shop["name"]:
        lines.append(f"*{shop['name']}*")
    lines.append(f"Bill No: {bill.bill_number}")
    lines.append(f"Date: {created_at.strftime('%d/%m/%Y %I:%M %p')}")
    lines.append("")
    lines.append(f"Dear {bill.customer_name}, thank you for your purchase.")
    lines.append("")
    for item in bill.items:
        size = f" ({item.selected_size})" if item.selected_size else ""
        lines.append(f"{item.product_name}{size} x {item.quantity} = {format_money(item.total)}")
    lines.append("")
    lines.append(f"Subtotal: {format_money(bill.subtotal)}")
    if bill.discount_amount > 0:
        lines.append(f"Discount: - {format_money(bill.discount_amount)}")
    if bill.tax > 0:
        lines.append(f"Tax: {format_money(bill.tax)}")
    lines.append(f"*Total: {format_money(bill.total)}*")
    lines.append(f"Paid by: {bill.payment_method_display}")
    lines.append("")
    lines.append(f"View your receipt: {get_receipt_url(bill)}")
    lines.append(FOOTER_MESSAGES[1])
    return "\n".join(lines)


class ReceiptService:
    """
    High-level interface for receipt generation and delivery.
    """

    @staticmethod
    def generate_receipt(
        bill: BillWithItems, format_type: str = STANDARD, output_format: str = "pdf"
    ) -> bytes:
        """
        Generate a receipt for a bill.

        Args:
            bill: BillWithItems value
            format_type: 'standard' or 'thermal'
            output_format: 'pdf' or 'html'

        Returns:
            PDF bytes or UTF-8 encoded HTML
        """
        generator = ReceiptGenerator(bill)

        if output_format == "pdf":
            return generator.generate_pdf_receipt(format_type)
        elif output_format == "html":
            return generator.generate_html_receipt(format_type).encode("utf-8")
        else:
            raise ValueError(f"Unsupported output format: {output_format}")

    @staticmethod
    def get_filename(bill: BillWithItems, format_type: str = STANDARD) -> str:
        return f"receipt_{bill.bill_number}_{format_type}.pdf"

    @staticmethod
    def send_whatsapp(bill: BillWithItems):
        """
        Queue the WhatsApp receipt.

        Raises:
            ValidationError: If the bill has no customer phone.
        """
        from .tasks import send_whatsapp_receipt_task

        if not (bill.customer_phone or "").strip():
            raise ValidationError(
                "Customer phone number is required to send bill via WhatsApp."
            )

        result = send_whatsapp_receipt_task.delay(bill.id)
        logger.info(f"Queued WhatsApp receipt for bill {bill.bill_number} to {bill.customer_phone}")
        return result
