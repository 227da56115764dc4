"""
AI-assisted executive summary of the order registry.

Uses Pydantic models so the LLM output is validated before anything
downstream touches it. Numbers shown on the dashboard are always computed
programmatically; the model only adds the narrative.
"""

import json
import logging
from typing import Literal
from pydantic import AliasChoices, BaseModel, Field, ValidationError
from openai import OpenAI, OpenAIError

from .models import Order
from .parsers import extract_json_block

logger = logging.getLogger(__name__)


class SummaryGenerationError(Exception):
    """The summary could not be produced. Safe to retry; registry untouched."""


class Insight(BaseModel):
    """One tagged observation about the registry."""

    title: str = Field(description="Short headline")
    content: str = Field(description="One or two sentences of explanation")
    category: Literal["positive", "warning", "alert"] = Field(
        validation_alias=AliasChoices("category", "type"),
        description="One of: positive, warning, alert",
    )


class RegistrySummary(BaseModel):
    """Narrative summary plus a short list of observations."""

    summary: str = Field(description="High-level overview of operational health")
    insights: list[Insight] = Field(description="Actionable observations")


def build_summary_dataset(orders: list[Order]) -> list[dict]:
    """
    De-identified projection of the registry sent to the model.

    Only vendor, customer, status, both dates and description leave the
    machine; ids, estimate and PO numbers do not.
    """
    return [
        {
            "v": o.vendor_code,
            "c": o.customer_name,
            "s": o.status,
            "p": o.order_date,
            "e": o.expected_recv_date,
            "d": o.description,
        }
        for o in orders
    ]


class SummaryGenerator:
    """
    Generates the executive summary with an LLM.

    What to trust vs verify:
    - TRUST: Narrative, pattern synthesis
    - VERIFY: Any specific number (the dashboard computes these itself)
    """

    SYSTEM_PROMPT = """You are a supply chain analyst reviewing a small business's purchase-order registry.

Write professionally and formally. Respond with a single JSON object of the form:
{"summary": "...", "insights": [{"title": "...", "content": "...", "category": "positive|warning|alert"}]}"""

    def __init__(self, model: str = "gpt-4o-mini", client: OpenAI | None = None):
        self.client = client or OpenAI()
        self.model = model

    def generate(self, orders: list[Order]) -> RegistrySummary:
        """
        Produce a summary of the whole registry.

        Raises:
            SummaryGenerationError: The call failed or returned an unusable payload.
        """
        prompt = self._build_prompt(build_summary_dataset(orders))

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": self.SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                response_format={"type": "json_object"},
            )
        except OpenAIError as e:
            logger.error("Summary request failed: %s", e)
            raise SummaryGenerationError("Summary request failed") from e

        text = response.choices[0].message.content
        payload = extract_json_block(text)
        if payload is None:
            logger.error("Summary response had no JSON object")
            raise SummaryGenerationError("No valid JSON structure found in response")

        try:
            return RegistrySummary.model_validate(payload)
        except ValidationError as e:
            logger.error("Summary response had the wrong shape: %s", e)
            raise SummaryGenerationError("Summary response had the wrong shape") from e

    def _build_prompt(self, dataset: list[dict]) -> str:
        return f"""Supply chain analysis task.
Review the following order dataset. Keys: v=vendor, c=customer, s=status,
p=date ordered, e=expected receipt date, d=notes.

Deliverables:
1. Executive summary: a high-level overview of operational health.
2. Strategic insights: three actionable observations focusing on efficiency and risk.

Data:
{json.dumps(dataset)}"""
