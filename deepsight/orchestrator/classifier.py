"""
Hazard classifier for the vision model's reply.

Expected grammar:  <SEVERITY> : <DIRECTION> - <DISTANCE>
  e.g. "DANGER : Forward - 2 steps."  |  "SAFE : Path Clear."

Parsing never fails. Anything outside the grammar degrades to
Severity.UNKNOWN with the raw text kept verbatim.
"""
import re
from typing import Optional

from deepsight.orchestrator.contracts import HazardVerdict, Severity

# Order matters: DANGER wins over CAUTION wins over SAFE
_SEVERITY_TOKENS = [
    ("DANGER", Severity.DANGER),
    ("CAUTION", Severity.CAUTION),
    ("SAFE", Severity.SAFE),
]

_DISTANCE_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(steps?|met(?:er|re)s?)\b", re.IGNORECASE)
_SEVERITY_PREFIX_RE = re.compile(r"^\W*(?:DANGER|CAUTION|SAFE)\W*", re.IGNORECASE)


def _severity(upper: str) -> Severity:
    for token, sev in _SEVERITY_TOKENS:
        if token in upper:
            return sev
    return Severity.UNKNOWN


def _distance(text: str) -> tuple[Optional[float], Optional[str]]:
    m = _DISTANCE_RE.search(text)
    if m is None:
        return None, None
    num = m.group(1)
    value = float(num) if "." in num else int(num)
    unit = "steps" if m.group(2).lower().startswith("step") else "meters"
    return value, unit


def _direction(text: str) -> Optional[str]:
    if ":" in text:
        body = text.split(":", 1)[1]
    else:
        body = _SEVERITY_PREFIX_RE.sub("", text, count=1)
    # direction ends at the first " - " separator (or bare "-") before the distance
    body = re.split(r"\s+-\s*|\s*-\s+", body, maxsplit=1)[0]
    body = body.strip().strip(".").strip()
    return body or None


def parse(raw_text: str) -> HazardVerdict:
    text = raw_text or ""
    stripped = text.strip()
    if not stripped:
        return HazardVerdict(severity=Severity.UNKNOWN, raw_text=text)

    severity = _severity(stripped.upper())
    if severity is Severity.UNKNOWN:
        return HazardVerdict(severity=severity, raw_text=text)

    distance, unit = _distance(stripped)
    return HazardVerdict(
        severity=severity,
        raw_text=text,
        direction=_direction(stripped),
        distance_steps=distance,
        distance_unit=unit,
    )


class HazardClassifier:
    """Stateless wrapper so the loop can take the parser as a collaborator."""

    def parse(self, raw_text: str) -> HazardVerdict:
        return parse(raw_text)
