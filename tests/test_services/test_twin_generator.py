"""
Tests for the external twin generator.

Covers:
- JSON extraction from chatty model answers
- Payload validation and the failure reason it reports
- Prompt content (fixed factors, scenario variables, notes)
- generate() through a stub gateway
"""

import json

import pytest

from casecast.exceptions import ExternalGeneratorError
from casecast.schemas.twin import ExternalTwinPayload, TwinSimulationInput
from casecast.services.twin_generator import (
    RESPONSE_SHAPE,
    LLMTwinGenerator,
    extract_json,
    parse_payload,
)

VALID = {
    "success_rate": 71,
    "confidence_label": "medium",
    "key_factors": ["a"],
    "risk_alerts": ["b"],
    "recommended_actions": ["c"],
    "timeline": [{"phase": "p", "detail": "d"}],
    "knowledge_base": ["k"],
    "rationale": "r",
}


class _StubGateway:
    def __init__(self, answer="", configured=True):
        self.answer = answer
        self.configured = configured
        self.prompts = []

    async def generate(self, system, user_message):
        self.prompts.append((system, user_message))
        return self.answer


class TestParsePayload:
    def test_extract_json_from_markdown(self):
        text = "Here you go:\n```json\n{\"a\": {\"b\": 1}}\n```"
        assert extract_json(text) == '{"a": {"b": 1}}'
        assert extract_json("no braces") == "no braces"

    def test_valid_payload(self):
        payload = parse_payload("Sure! " + json.dumps(VALID))
        assert payload.success_rate == 71
        assert payload.timeline[0].phase == "p"

    @pytest.mark.parametrize("text,reason", [
        ("", "empty response"),
        ("   ", "empty response"),
        ("{not json}", "invalid json"),
        (json.dumps({**VALID, "success_rate": 140}), "invalid payload"),
        (json.dumps({**VALID, "key_factors": []}), "invalid payload"),
        (json.dumps({**VALID, "confidence_label": "certain"}), "invalid payload"),
    ])
    def test_failures(self, text, reason):
        with pytest.raises(ExternalGeneratorError) as exc:
            parse_payload(text)
        assert exc.value.reason == reason

    def test_camel_case_keys_are_rejected(self):
        camel = {
            "successRate": 71,
            "confidenceLabel": "medium",
            "keyFactors": ["a"],
            "riskAlerts": ["b"],
            "recommendedActions": ["c"],
            "timeline": [{"phase": "p", "detail": "d"}],
            "knowledgeBase": ["k"],
        }
        with pytest.raises(ExternalGeneratorError) as exc:
            parse_payload(json.dumps(camel))
        assert exc.value.reason == "invalid payload"

    def test_response_shape_names_every_payload_field(self):
        for name in ExternalTwinPayload.model_fields:
            assert f'"{name}"' in RESPONSE_SHAPE


class TestLLMTwinGenerator:
    def test_availability_follows_gateway(self):
        assert LLMTwinGenerator(gateway=_StubGateway(configured=False)).available is False
        assert LLMTwinGenerator(gateway=_StubGateway()).available is True

    def test_prompt_lists_inputs(self):
        generator = LLMTwinGenerator(gateway=_StubGateway())
        prompt = generator.build_prompt(TwinSimulationInput(
            scenario_category="corporate",
            has_vehicle=True,
            special_notes="guard dog on site",
            scenario_title="Data leak",
            scenario_variables={"dataLossWindow": "120h"},
        ))
        assert "· Category: Corporate investigation" in prompt
        assert "· Field agents: Male agent / vehicle available" in prompt
        assert "· Planned date: undecided" in prompt
        assert "· Special notes: guard dog on site" in prompt
        assert "Scenario title: Data leak" in prompt
        assert "· Data loss window (hours): 96" in prompt
        assert prompt.endswith("Respond with JSON only. No extra explanation or markdown.")

    @pytest.mark.asyncio
    async def test_generate(self, twin_input):
        gateway = _StubGateway(answer=json.dumps(VALID))
        payload = await LLMTwinGenerator(gateway=gateway).generate(twin_input)
        assert payload.confidence_label == "medium"
        assert len(gateway.prompts) == 1

    @pytest.mark.asyncio
    async def test_generate_empty_answer(self, twin_input):
        with pytest.raises(ExternalGeneratorError):
            await LLMTwinGenerator(gateway=_StubGateway(answer="")).generate(twin_input)
