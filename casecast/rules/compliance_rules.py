"""
Compliance rules: privacy, safety, legal, bias and platform policy.

Identifier patterns use ASCII word boundaries so that digits written
directly after Hangul still count as a standalone number.
"""

import re

from casecast.rules.table import Rule, RuleCategory, RuleTable
from casecast.schemas.common import Severity

COMPLIANCE_RULES: tuple[Rule, ...] = (
    # ── Privacy ──
    Rule(
        id="pii-phone",
        title="Phone number",
        patterns=(r"\b\d{2,3}[-.\s]?\d{3,4}[-.\s]?\d{4}\b",),
        flags=re.ASCII,
        category=RuleCategory.PRIVACY,
        severity=Severity.HIGH,
        guidance="Mask phone numbers or share them through a separate secure channel.",
        references=("PIPA", "GDPR"),
    ),
    Rule(
        id="pii-rrn",
        title="Resident registration number",
        patterns=(r"\b\d{6}-\d{7}\b",),
        flags=re.ASCII,
        category=RuleCategory.PRIVACY,
        severity=Severity.HIGH,
        guidance="Resident registration numbers must not be collected or stored. Delete and use a surrogate id.",
        references=("PIPA",),
    ),
    Rule(
        id="pii-account",
        title="Financial account",
        patterns=(r"(계좌번호|card\s?number|bank\s?account)[^\n]{0,40}\d{6,}",),
        flags=re.IGNORECASE,
        category=RuleCategory.PRIVACY,
        severity=Severity.MEDIUM,
        guidance="Financial data requires encrypted storage and access control.",
        references=("PCI DSS",),
    ),
    # ── Safety ──
    Rule(
        id="harm-threat",
        title="Threat of harm",
        patterns=(r"(살해|폭탄|테러|폭력|협박|자살|\bkill\b|\bbomb\b|terroris[mt]|violence|threaten\w*|suicide)",),
        flags=re.IGNORECASE,
        category=RuleCategory.SAFETY,
        severity=Severity.HIGH,
        guidance="Notify an administrator immediately and direct the user to public safety services if needed.",
        references=("Platform Safety Guideline",),
    ),
    # ── Legal ──
    Rule(
        id="illegal-request",
        title="Possibly unlawful request",
        patterns=(r"(불법|위법|탈세|뇌물|자료\s?삭제\s?요청|illegal|unlawful|tax\s?evasion|bribe\w*|delete\s(?:the\s)?(?:data|records))",),
        flags=re.IGNORECASE,
        category=RuleCategory.LEGAL,
        severity=Severity.MEDIUM,
        guidance="The request may violate the law. Follow the legal review and reporting procedure.",
        references=("KCC Compliance",),
    ),
    # ── Bias ──
    Rule(
        id="bias-gender",
        title="Gender bias",
        patterns=(r"(여자(?:는|들)?|남자(?:는|들)?|\bwomen\b|\bmen\b)[^\n]{0,20}(못해|열등|부적합|can't|inferior|unfit)",),
        flags=re.IGNORECASE,
        category=RuleCategory.BIAS,
        severity=Severity.MEDIUM,
        guidance="Remove gender-discriminatory wording and use neutral language.",
        references=("DEI Policy",),
    ),
    Rule(
        id="bias-race",
        title="Racial or origin bias",
        patterns=(r"(흑인|백인|아시아인|외국인|\bblacks?\b|\bwhites?\b|\basians?\b|foreigners?)[^\n]{0,20}(위험|의심|불량|dangerous|suspicious|untrustworthy)",),
        flags=re.IGNORECASE,
        category=RuleCategory.BIAS,
        severity=Severity.HIGH,
        guidance="Biased wording based on race or origin. Correct it and keep a review log.",
        references=("DEI Policy", "UN SDG 10"),
    ),
    # ── Policy ──
    Rule(
        id="policy-legal-advice",
        title="Implied legal advice",
        patterns=(r"(법률\s?자문|법적\s?책임|법률\s?확약|legal\s?advice|legal\s?liability|legal\s?guarantee)",),
        flags=re.IGNORECASE,
        category=RuleCategory.POLICY,
        severity=Severity.LOW,
        guidance="Statements that read as legal advice must carry a disclaimer.",
        references=("Terms of Service",),
    ),
)

COMPLIANCE_RULE_TABLE = RuleTable("compliance", COMPLIANCE_RULES)
