import io
from datetime import datetime

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.pdfgen import canvas
from starlette.concurrency import run_in_threadpool


def format_completion_date(value: datetime) -> str:
    # e.g. "March 4, 2026"
    return f"{value.strftime('%B')} {value.day}, {value.year}"


class CertificateRenderer:
    """Draws a landscape A4 completion certificate and returns the PDF bytes."""

    def render_sync(self, data: dict) -> bytes:
        buffer = io.BytesIO()
        p = canvas.Canvas(buffer, pagesize=landscape(A4))
        width, height = landscape(A4)

        p.setTitle(f"Certificate {data['certificateId']}")

        # Border
        p.setStrokeColor(colors.HexColor("#1f3b73"))
        p.setLineWidth(4)
        p.rect(30, 30, width - 60, height - 60)

        p.setFillColor(colors.HexColor("#1f3b73"))
        p.setFont("Helvetica-Bold", 22)
        p.drawCentredString(width / 2.0, height - 90, data["platformName"])

        p.setFont("Helvetica", 16)
        p.drawCentredString(width / 2.0, height - 130, "Certificate of Completion")

        p.setFillColor(colors.black)
        p.setFont("Helvetica", 14)
        p.drawCentredString(width / 2.0, height / 2.0 + 60, "This certifies that")

        p.setFont("Helvetica-Bold", 30)
        p.drawCentredString(width / 2.0, height / 2.0 + 20, data["studentName"])

        p.setFont("Helvetica", 18)
        p.drawCentredString(
            width / 2.0, height / 2.0 - 20, f"has successfully completed {data['courseTitle']}"
        )

        p.setFont("Helvetica", 13)
        p.drawCentredString(
            width / 2.0, height / 2.0 - 55, f"Instructor: {data['instructorName']}"
        )
        p.drawCentredString(
            width / 2.0,
            height / 2.0 - 75,
            f"Completed on {format_completion_date(data['completionDate'])}",
        )

        p.setFont("Helvetica", 10)
        p.setFillColor(colors.HexColor("#555555"))
        p.drawCentredString(width / 2.0, 60, f"Certificate ID: {data['certificateId']}")

        p.showPage()
        p.save()
        return buffer.getvalue()

    async def render(self, data: dict) -> bytes:
        return await run_in_threadpool(self.render_sync, data)


certificate_renderer = CertificateRenderer()
