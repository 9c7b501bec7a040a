"""
External Twin Generator.

Asks a language model for a twin analysis and validates its JSON answer
against ExternalTwinPayload. Any failure surfaces as ExternalGeneratorError;
the blend orchestrator is the only caller and treats it as "absent".
"""

import json
import re
from typing import Optional, Protocol

import structlog
from pydantic import ValidationError

from casecast.config import settings
from casecast.exceptions import ExternalGeneratorError
from casecast.scenarios.definitions import default_registry
from casecast.scenarios.registry import ScenarioVariableRegistry
from casecast.schemas.twin import (
    BUDGET_LABELS,
    COMMUTE_LABELS,
    DENSITY_LABELS,
    ESCORT_LABELS,
    FIELD_AGENT_LABELS,
    OCCUPATION_LABELS,
    SHIFT_LABELS,
    WEATHER_LABELS,
    ExternalTwinPayload,
    TwinSimulationInput,
)
from casecast.services.llm_gateway import LLMGateway

logger = structlog.get_logger(__name__)

SYSTEM_PROMPT = (
    "You are a digital twin analyst for private investigation field operations. "
    "Estimate the operation's success rate from the case variables provided and "
    "answer with JSON only."
)

RESPONSE_SHAPE = (
    '{"success_rate": number, "confidence_label": "high"|"medium"|"low", '
    '"key_factors": string[], "risk_alerts": string[], "recommended_actions": string[], '
    '"timeline": [{"phase": string, "detail": string, "emphasis"?: string}], '
    '"knowledge_base": string[], "rationale": string}'
)

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


class ExternalTwinGenerator(Protocol):
    """Anything that can produce a validated external twin payload."""

    name: str

    @property
    def available(self) -> bool: ...

    async def generate(self, inputs: TwinSimulationInput) -> ExternalTwinPayload: ...


def extract_json(text: str) -> str:
    """Outermost {...} block of a model answer, or the text itself."""
    match = _JSON_OBJECT.search(text)
    return match.group(0) if match else text


def parse_payload(text: str) -> ExternalTwinPayload:
    if not text or not text.strip():
        raise ExternalGeneratorError("empty response")
    try:
        data = json.loads(extract_json(text))
    except json.JSONDecodeError as exc:
        raise ExternalGeneratorError("invalid json", details={"error": str(exc)}) from exc
    try:
        return ExternalTwinPayload.model_validate(data)
    except ValidationError as exc:
        raise ExternalGeneratorError(
            "invalid payload", details={"errors": exc.error_count()}
        ) from exc


class LLMTwinGenerator:
    """External generator backed by the Claude gateway."""

    def __init__(
        self,
        gateway: Optional[LLMGateway] = None,
        registry: Optional[ScenarioVariableRegistry] = None,
    ):
        self.gateway = gateway or LLMGateway()
        self.registry = registry or default_registry
        self.name = f"claude:{settings.llm_model}"

    @property
    def available(self) -> bool:
        return self.gateway.configured

    def build_prompt(self, inputs: TwinSimulationInput) -> str:
        category = self.registry.get(inputs.scenario_category)
        variables = self.registry.sanitize(category.id, inputs.scenario_variables)
        vehicle = " / vehicle available" if inputs.has_vehicle else " / no vehicle"
        notes = (inputs.special_notes or "").strip() or "none"

        segments = [
            "Digital twin analysis request for a private investigation.",
            "Estimate the operation success rate from the input variables and field context, "
            "and give the key reasons.",
            "Answer in JSON with exactly these keys:",
            RESPONSE_SHAPE,
            "success_rate is an integer between 0 and 100.",
            "Choose confidence_label from the success rate and the evidence.",
            "timeline has at most 4 steps describing how the field operation is rehearsed.",
            "knowledge_base lists the manuals and datasets referenced.",
        ]
        if inputs.scenario_title:
            segments.append(f"Scenario title: {inputs.scenario_title}")
        if inputs.conversation_summary:
            segments.append(f"Consultation summary: {inputs.conversation_summary}")

        segments.extend([
            "Input parameters:",
            f"· Category: {category.label}",
            f"· Field agents: {FIELD_AGENT_LABELS[inputs.field_agent_gender]}{vehicle}",
            f"· Planned date: {inputs.operation_date or 'undecided'}",
            f"· Shift pattern: {SHIFT_LABELS[inputs.shift_type]}",
            f"· Subject occupation: {OCCUPATION_LABELS[inputs.target_occupation]}",
            f"· Movement pattern: {COMMUTE_LABELS[inputs.commute_pattern]}",
            f"· Weather: {WEATHER_LABELS[inputs.weather]}",
            f"· Location density: {DENSITY_LABELS[inputs.location_density]}",
            f"· Deployment: {ESCORT_LABELS[inputs.escort_support]}",
            f"· Budget: {BUDGET_LABELS[inputs.budget_level]}",
            f"· Special notes: {notes}",
            "Scenario-specific variables:",
            *self.registry.format_for_prompt(category.id, variables),
            "Respond with JSON only. No extra explanation or markdown.",
        ])
        return "\n".join(segments)

    async def generate(self, inputs: TwinSimulationInput) -> ExternalTwinPayload:
        text = await self.gateway.generate(SYSTEM_PROMPT, self.build_prompt(inputs))
        payload = parse_payload(text)
        logger.debug("external_twin_generated", success_rate=payload.success_rate)
        return payload
