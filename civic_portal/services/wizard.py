# File: civic_portal/services/wizard.py
# Project: civic-portal
"""
Four-step issue report wizard.

Steps run strictly in order (1 issue, 2 location and evidence, 3 details and
priority, 4 review). ``submitted`` is a terminal flag, not a step. The
wizard works on a ``ReportDraft`` row and never commits; callers own the
transaction and the gateway calls.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from civic_portal.core.catalog import IssueCategory, IssuePriority, IssueStatus, values
from civic_portal.core.errors import WizardError
from civic_portal.models.report_draft import ReportDraft

TOTAL_STEPS = 4

STEP_FIELDS = {
    1: ("title", "category"),
    2: ("location", "latitude", "longitude"),
    3: ("description", "priority"),
    4: (),
}

REQUIRED_FIELDS = {
    1: ("title", "category"),
    2: ("location",),
    3: (),
    4: (),
}

INITIAL_DATA = {
    "title": "",
    "description": "",
    "category": "",
    "priority": IssuePriority.medium.value,
    "location": "",
    "latitude": "",
    "longitude": "",
    "image_url": "",
}


@dataclass
class StepGate:
    """Required-field check run before leaving a step and before submit."""
    enforce: bool = True
    required: dict = field(default_factory=lambda: dict(REQUIRED_FIELDS))

    def missing(self, step: int, data: dict) -> list[str]:
        if not self.enforce:
            return []
        return [f for f in self.required.get(step, ()) if not str(data.get(f) or "").strip()]

    def missing_all(self, data: dict) -> list[str]:
        out = []
        for step in range(1, TOTAL_STEPS + 1):
            out.extend(self.missing(step, data))
        return out


def _coerce_coordinate(value, low: float, high: float) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number or not (low <= number <= high):
        return None
    return number


def coerce_coordinates(latitude, longitude) -> tuple[Optional[float], Optional[float]]:
    """Both numbers or neither."""
    lat = _coerce_coordinate(latitude, -90, 90)
    lng = _coerce_coordinate(longitude, -180, 180)
    if lat is None or lng is None:
        return None, None
    return lat, lng


def gps_label(latitude: float, longitude: float) -> str:
    return f"Acquired GPS: {latitude:.4f}, {longitude:.4f}"


def still_pending(flag: str) -> str:
    return f"Still {flag}; please wait"


class ReportWizard:
    def __init__(self, draft: ReportDraft, gate: Optional[StepGate] = None):
        self.draft = draft
        self.gate = gate or StepGate()
        if self.draft.step is None:
            self.draft.step = 1
        if not self.draft.data:
            self.draft.data = dict(INITIAL_DATA)

    @classmethod
    def start(cls, draft_id: str, gate: Optional[StepGate] = None) -> "ReportWizard":
        draft = ReportDraft(
            id=draft_id,
            step=1,
            data=dict(INITIAL_DATA),
            submitted=False,
            uploading=False,
            locating=False,
            submitting=False,
            created_at=datetime.now(timezone.utc),
        )
        return cls(draft, gate)

    @property
    def step(self) -> int:
        return self.draft.step

    @property
    def data(self) -> dict:
        return {**INITIAL_DATA, **(self.draft.data or {})}

    def _touch(self):
        self.draft.updated_at = datetime.now(timezone.utc)

    def _set(self, **changes):
        # reassign so the JSON column is flagged dirty
        self.draft.data = {**self.data, **changes}
        self._touch()

    def _require_open(self):
        if self.draft.submitted:
            raise WizardError("Report already submitted. Start a new report.")

    def _require_step(self, *steps: int):
        if self.draft.step not in steps:
            raise WizardError(f"Not available at step {self.draft.step}")

    # --- transitions ---

    def edit(self, changes: dict[str, Any]) -> None:
        self._require_open()
        if self.draft.step == TOTAL_STEPS:
            raise WizardError("The review step is read-only. Go back to change details.")
        allowed = STEP_FIELDS[self.draft.step]
        foreign = sorted(k for k in changes if k not in allowed)
        if foreign:
            raise WizardError(
                f"Fields {', '.join(foreign)} do not belong to step {self.draft.step}",
                status_code=422,
            )
        category = changes.get("category")
        if category and category not in values(IssueCategory):
            raise WizardError(f"Unknown category '{category}'", status_code=422)
        priority = changes.get("priority")
        if priority and priority not in values(IssuePriority):
            raise WizardError(f"Unknown priority '{priority}'", status_code=422)
        clean = {k: ("" if v is None else v) for k, v in changes.items()}
        self._set(**clean)

    def missing(self) -> list[str]:
        return self.gate.missing(self.draft.step, self.data)

    def next(self) -> int:
        self._require_open()
        if self.draft.step >= TOTAL_STEPS:
            raise WizardError("Already at the review step")
        missing = self.missing()
        if missing:
            raise WizardError(f"Please fill in: {', '.join(missing)}", status_code=422)
        self.draft.step += 1
        self._touch()
        return self.draft.step

    def back(self) -> int:
        self._require_open()
        if self.draft.step <= 1:
            raise WizardError("Already at the first step")
        self.draft.step -= 1
        self._touch()
        return self.draft.step

    def reset(self) -> None:
        self.draft.step = 1
        self.draft.data = dict(INITIAL_DATA)
        self.draft.submitted = False
        self.draft.issue_id = None
        self.draft.uploading = False
        self.draft.locating = False
        self.draft.submitting = False
        self.draft.last_error = None
        self._touch()

    # --- step 2 side actions ---

    def check_begin(self, flag: str) -> None:
        """Whether the async action behind ``flag`` may start from this state.

        Raising the flag itself is left to the caller, which must do it as a
        conditional write so two overlapping requests cannot both pass.
        """
        self._require_open()
        if flag in ("uploading", "locating"):
            self._require_step(2)
        elif flag == "submitting":
            self._require_step(TOTAL_STEPS)
        else:
            raise WizardError(f"Unknown action '{flag}'", status_code=500)
        if getattr(self.draft, flag):
            raise WizardError(still_pending(flag))

    def end(self, flag: str, error: Optional[str] = None) -> None:
        setattr(self.draft, flag, False)
        self.draft.last_error = error
        self._touch()

    def set_coordinates(self, latitude: float, longitude: float, label: Optional[str] = None) -> None:
        self._set(
            latitude=str(latitude),
            longitude=str(longitude),
            location=label or gps_label(latitude, longitude),
        )

    def set_image(self, url: str) -> None:
        self._set(image_url=url)

    # --- step 4 ---

    def build_payload(self, created_by: str) -> dict:
        self._require_open()
        self._require_step(TOTAL_STEPS)
        missing = self.gate.missing_all(self.data)
        if missing:
            raise WizardError(f"Please fill in: {', '.join(missing)}", status_code=422)
        data = self.data
        lat, lng = coerce_coordinates(data["latitude"], data["longitude"])
        return {
            "title": data["title"].strip(),
            "description": data["description"] or None,
            "category": data["category"] or None,
            "priority": data["priority"] or IssuePriority.medium.value,
            "status": IssueStatus.pending.value,
            "location": data["location"],
            "latitude": lat,
            "longitude": lng,
            "image_url": data["image_url"] or None,
            "upvotes": 0,
            "comments_count": 0,
            "created_by": created_by,
        }

    def mark_submitted(self, issue_id) -> None:
        self.draft.submitted = True
        self.draft.issue_id = str(issue_id)
        self.draft.submitting = False
        self.draft.last_error = None
        self._touch()

    # --- view ---

    def summary(self) -> dict:
        step = self.draft.step
        open_ = not self.draft.submitted
        return {
            "id": self.draft.id,
            "step": step,
            "total_steps": TOTAL_STEPS,
            "progress": int(step / TOTAL_STEPS * 100),
            "data": self.data,
            "submitted": bool(self.draft.submitted),
            "issue_id": self.draft.issue_id,
            "uploading": bool(self.draft.uploading),
            "locating": bool(self.draft.locating),
            "submitting": bool(self.draft.submitting),
            "last_error": self.draft.last_error,
            "missing": self.missing() if open_ else [],
            "can_go_back": open_ and step > 1,
            "can_go_next": open_ and step < TOTAL_STEPS,
            "can_submit": open_ and step == TOTAL_STEPS and not self.draft.submitting,
            "created_at": self.draft.created_at,
        }
