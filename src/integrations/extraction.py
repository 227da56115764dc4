"""
Document extraction: reads order lines off scanned POS documents with an LLM.

Output is treated as untrusted. Whatever comes back is handed to the
RecordNormalizer, which decides what survives.
"""

import base64
import logging
from openai import OpenAI

from tracker.parsers import extract_json_block

logger = logging.getLogger(__name__)

EXTRACTION_PROMPT = """Analyze the provided document and extract order data into a structured table format.

Requirements:
- Extract Vendor Code, Customer Name, Estimate ID, PO/Order Number, Order Date, Expected Receipt Date, and Status.
- Vendor Code: standard internal identifier (e.g., SUSM).
- Customer Name: full primary entity name.
- Date format: MM/DD/YY.
- Exclude any irrelevant decorative text or line indexes.

Respond with a single JSON object:
{"orders": [{"lineNumber": "", "vendorCode": "", "customerName": "", "estNum": "", "orderNum": "", "orderDate": "", "expectedRecvDate": "", "status": ""}]}"""


def to_data_url(content: bytes, mime_type: str) -> str:
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


class DocumentExtractor:
    """
    Extracts candidate order records from an image or PDF.

    Usage:
        extractor = DocumentExtractor()
        records = extractor.extract(pdf_bytes, "application/pdf")
    """

    def __init__(self, model: str = "gpt-4o", client: OpenAI | None = None):
        self.client = client or OpenAI()
        self.model = model

    def extract(
        self, content: bytes, mime_type: str = "image/png", filename: str = "document"
    ) -> list[dict]:
        """
        Return the raw order records found in the document.

        A response without a usable JSON payload yields an empty list.
        Errors from the API itself propagate to the caller.
        """
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {
                    "role": "user",
                    "content": [
                        self._document_part(content, mime_type, filename),
                        {"type": "text", "text": EXTRACTION_PROMPT},
                    ],
                }
            ],
            response_format={"type": "json_object"},
        )

        text = response.choices[0].message.content
        payload = extract_json_block(text)
        if payload is None:
            logger.error("Extraction response for %s had no JSON object", filename)
            return []

        orders = payload.get("orders")
        if not isinstance(orders, list):
            logger.warning("Extraction response for %s had no orders list", filename)
            return []

        logger.info("Extracted %d candidate records from %s", len(orders), filename)
        return [o for o in orders if isinstance(o, dict)]

    def _document_part(self, content: bytes, mime_type: str, filename: str) -> dict:
        data_url = to_data_url(content, mime_type)
        if mime_type == "application/pdf":
            return {"type": "file", "file": {"filename": filename, "file_data": data_url}}
        return {"type": "image_url", "image_url": {"url": data_url}}
