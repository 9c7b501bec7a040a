"""
Conversational risk signal rules.

Patterns run against lowercased user messages. Korean keywords come from
the intake chat's primary locale; English equivalents cover mixed input.
"""

from casecast.rules.table import Rule, RuleCategory, RuleTable
from casecast.schemas.common import Severity

VIOLENCE_THREAT = "violence-threat"
EVIDENCE_LOSS = "evidence-loss"
LEGAL_DEADLINE = "legal-deadline"
EMOTIONAL_DISTRESS = "emotional-distress"
DIGITAL_TRACE = "digital-trace"


RISK_RULES: tuple[Rule, ...] = (
    Rule(
        id=VIOLENCE_THREAT,
        title="Violence threat indicators",
        severity=Severity.HIGH,
        category=RuleCategory.SAFETY,
        patterns=(
            r"폭력", r"협박", r"위협", r"위험", r"스토킹", r"접근금지",
            r"\bthreat", r"\bviolen", r"\bstalk", r"restraining order",
        ),
        guidance=(
            "Secure the client's safety first; guide them through a police report "
            "or protection order if needed."
        ),
    ),
    Rule(
        id=EVIDENCE_LOSS,
        title="Evidence loss risk",
        severity=Severity.MEDIUM,
        category=RuleCategory.CUSTOM,
        patterns=(
            r"증거", r"삭제", r"폐기", r"훼손", r"녹취", r"영상", r"지워",
            r"\bevidence", r"\bdelet", r"\bdestroy", r"\brecording", r"\bfootage",
        ),
        guidance="Walk the client through backing up and preserving evidence, and share what can be collected now.",
    ),
    Rule(
        id=LEGAL_DEADLINE,
        title="Imminent legal deadline",
        severity=Severity.HIGH,
        category=RuleCategory.LEGAL,
        patterns=(
            r"기한", r"마감", r"소멸시효", r"내일", r"이번 주", r"빠르게",
            r"\bdeadline", r"\bdue date", r"statute of limitations", r"\btomorrow\b", r"\bthis week\b",
        ),
        guidance="Confirm the filing deadline, check the required documents and align the submission schedule.",
    ),
    Rule(
        id=EMOTIONAL_DISTRESS,
        title="Client emotional distress",
        severity=Severity.MEDIUM,
        category=RuleCategory.CUSTOM,
        patterns=(
            r"불안", r"두렵", r"잠을 못", r"멘탈", r"감당", r"힘들", r"울", r"패닉",
            r"\banxious", r"\bafraid\b", r"\bpanic", r"can'?t sleep", r"\boverwhelm",
        ),
        guidance="The client needs reassurance; restate the situation calmly and explain the next steps.",
    ),
    Rule(
        id=DIGITAL_TRACE,
        title="Digital forensics required",
        severity=Severity.LOW,
        category=RuleCategory.CUSTOM,
        patterns=(
            r"카카오톡", r"메신저", r"이메일", r"로그", r"클라우드", r"백업", r"휴대폰",
            r"\bkakaotalk", r"\bmessenger", r"\be-?mail", r"\bcloud\b", r"\bbackup", r"\bphone\b",
        ),
        guidance="Confirm digital evidence collection procedures and whether a forensic copy is preserved.",
    ),
)

RISK_RULE_TABLE = RuleTable("risk", RISK_RULES)
