import io
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List
from xml.sax.saxutils import escape

from loguru import logger
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import Flowable, Paragraph, SimpleDocTemplate, Spacer

from mediconnect.utils.prometheus_metrics import metrics

TITLE = "MediConnect"
SUBTITLE = "Official Digital Prescription"
FOOTER = "Digitally generated prescription. No signature required."
PAGE_MARGIN = 50

@dataclass(frozen=True)
class PrescriptionDocument:
    doctor_name: str
    doctor_specialty: str
    patient_name: str
    patient_age: int
    care_to_be_taken: str
    medicines: str

class DocumentRenderer(ABC):
    @abstractmethod
    def render(self, document: PrescriptionDocument) -> bytes:
        pass

def _markup(text: str) -> str:
    # Paragraph parses a mini-markup; keep user text literal and keep its line breaks
    return escape(text).replace("\n", "<br/>")

class ReportLabRenderer(DocumentRenderer):
    """Lays out the fixed prescription template on a single A4 flow"""

    def __init__(self):
        base = getSampleStyleSheet()
        body = base["BodyText"]
        self.styles = {
            "title": ParagraphStyle("Title", parent=body, fontSize=24, leading=28, alignment=TA_CENTER),
            "subtitle": ParagraphStyle("Subtitle", parent=body, fontSize=12, leading=16, alignment=TA_CENTER),
            "body": ParagraphStyle("Body", parent=body, fontSize=12, leading=16),
            "indented": ParagraphStyle("Indented", parent=body, fontSize=12, leading=16, leftIndent=20),
            "footer": ParagraphStyle("Footer", parent=body, fontSize=10, leading=14, alignment=TA_CENTER),
        }

    def build_story(self, document: PrescriptionDocument) -> List[Flowable]:
        s = self.styles
        gap = Spacer(1, 12)
        return [
            Paragraph(TITLE, s["title"]),
            Paragraph(SUBTITLE, s["subtitle"]),
            gap,
            Paragraph(_markup(f"Doctor: Dr. {document.doctor_name}"), s["body"]),
            Paragraph(_markup(f"Specialty: {document.doctor_specialty}"), s["body"]),
            gap,
            Paragraph(_markup(f"Patient: {document.patient_name}"), s["body"]),
            Paragraph(f"Age: {document.patient_age} Years", s["body"]),
            gap,
            Paragraph("Care to be taken:", s["body"]),
            Paragraph(_markup(document.care_to_be_taken), s["indented"]),
            gap,
            Paragraph("Medicines:", s["body"]),
            Paragraph(_markup(document.medicines), s["indented"]),
            gap,
            Paragraph(FOOTER, s["footer"]),
        ]

    def render(self, document: PrescriptionDocument) -> bytes:
        start_time = time.time()
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            leftMargin=PAGE_MARGIN,
            rightMargin=PAGE_MARGIN,
            topMargin=PAGE_MARGIN,
            bottomMargin=PAGE_MARGIN,
            title=f"{TITLE} prescription",
        )
        doc.build(self.build_story(document))

        duration = time.time() - start_time
        metrics.record_pdf_render(duration)
        logger.debug(f"Rendered prescription PDF in {duration:.3f}s")
        return buffer.getvalue()

renderer = ReportLabRenderer()
