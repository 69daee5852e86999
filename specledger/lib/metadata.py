"""
Metadata field recognition.

Field names are matched case-insensitively against a bounded synonym table.
Anything unrecognized is kept verbatim in `custom`.
"""

import re
from dataclasses import dataclass, field
from typing import Optional

from specledger.lib.types import ParseWarning, SpecMetadata, SpecStatus, WarningSeverity

FIELD_SYNONYMS = {
    "phase": "phase",
    "spec id": "spec_id",
    "spec-id": "spec_id",
    "spec_id": "spec_id",
    "specid": "spec_id",
    "id": "spec_id",
    "status": "status",
    "dependencies": "dependencies",
    "depends on": "dependencies",
    "deps": "dependencies",
    "estimated context": "estimated_context",
    "estimated-context": "estimated_context",
    "context estimate": "estimated_context",
}

PHASE_RE = re.compile(r'^\s*(\d+)\s*(?:[-:]\s*(.*?))?\s*$')
SPEC_ID_RE = re.compile(r'^\s*#?(\d+)\s*$')
TITLE_ID_RE = re.compile(r'[Ss]pec\s*(\d+)')


def canonical_field(name: str) -> Optional[str]:
    """Return the canonical field name for a metadata label, or None if custom."""
    return FIELD_SYNONYMS.get(" ".join(name.strip().lower().split()))


def extract_spec_id_from_title(title: str) -> Optional[int]:
    """Extract the id from titles like "Spec 116: Spec Directory"."""
    match = TITLE_ID_RE.search(title)
    return int(match.group(1)) if match else None


@dataclass
class MetadataDraft:
    """Mutable accumulator used while parsing; frozen into SpecMetadata at the end."""
    phase: int = 0
    phase_name: Optional[str] = None
    spec_id: Optional[int] = None
    spec_id_line: int = 0
    status: Optional[SpecStatus] = None
    dependencies: list[str] = field(default_factory=list)
    estimated_context: Optional[str] = None
    custom: dict[str, str] = field(default_factory=dict)

    def apply(self, name: str, value: str, line: int, warnings: list[ParseWarning]) -> None:
        """Record one `- **name**: value` field."""
        canonical = canonical_field(name)

        if canonical == "phase":
            match = PHASE_RE.match(value)
            if match:
                self.phase = int(match.group(1))
                self.phase_name = match.group(2) or None
            else:
                warnings.append(ParseWarning(
                    f"Malformed phase value '{value}'", line, WarningSeverity.WARNING))
        elif canonical == "spec_id":
            match = SPEC_ID_RE.match(value)
            if match:
                self.spec_id = int(match.group(1))
                self.spec_id_line = line
            else:
                warnings.append(ParseWarning(
                    f"Malformed spec id '{value}'", line, WarningSeverity.WARNING))
        elif canonical == "status":
            status = SpecStatus.from_string(value)
            if status is None:
                warnings.append(ParseWarning(
                    f"Unknown status '{value}', assuming Planned", line, WarningSeverity.WARNING))
                status = SpecStatus.PLANNED
            self.status = status
        elif canonical == "dependencies":
            self.dependencies = [d.strip() for d in value.split(",") if d.strip()]
        elif canonical == "estimated_context":
            self.estimated_context = value
        else:
            self.custom[name.strip()] = value

    def freeze(self, title_spec_id: Optional[int], warnings: list[ParseWarning]) -> SpecMetadata:
        """Resolve fallbacks and defaults, emitting warnings for gaps."""
        spec_id = self.spec_id
        if spec_id is None:
            spec_id = title_spec_id or 0
        elif title_spec_id is not None and title_spec_id != spec_id:
            warnings.append(ParseWarning(
                f"Title spec id {title_spec_id} conflicts with metadata spec id {spec_id}; using {spec_id}",
                self.spec_id_line,
                WarningSeverity.WARNING,
            ))

        if spec_id == 0:
            warnings.append(ParseWarning("Spec ID not found or is 0", 0, WarningSeverity.WARNING))

        status = self.status
        if status is None:
            warnings.append(ParseWarning("Status not specified", 0, WarningSeverity.INFO))
            status = SpecStatus.PLANNED

        return SpecMetadata(
            phase=self.phase,
            phase_name=self.phase_name,
            spec_id=spec_id,
            status=status,
            dependencies=tuple(self.dependencies),
            estimated_context=self.estimated_context,
            custom=dict(self.custom),
        )
