# File: civic_portal/routers/report.py
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional
from fastapi import APIRouter, Depends, File, Request, UploadFile
from sqlalchemy import update
from sqlalchemy.orm import Session

from civic_portal.core.config import settings
from civic_portal.core.errors import GatewayError, GeolocationError, PortalError, WizardError, notice
from civic_portal.core.ratelimit import limiter, SUBMIT_LIMIT
from civic_portal.core.security import PortalSession, get_session
from civic_portal.db.session import get_db
from civic_portal.gateway.base import EntityGateway
from civic_portal.gateway.session import get_gateway
from civic_portal.models.report_draft import ReportDraft
from civic_portal.schemas.wizard import DraftOut, DraftPatch, GeolocateIn
from civic_portal.services.geocoding import MANUAL_ENTRY_MESSAGE, geocode_address
from civic_portal.services.storage import ALLOWED_IMAGE_TYPES, MAX_IMAGE_BYTES
from civic_portal.services.wizard import ReportWizard, StepGate, coerce_coordinates, still_pending

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/report", tags=["report"])

UPLOAD_FAILED = "Photo upload failed. Please try again."
SUBMIT_FAILED = "Could not submit the report. Please try again."


def _gate() -> StepGate:
    return StepGate(enforce=settings.wizard_enforce_required)


def _load(db: Session, draft_id: str) -> ReportWizard:
    draft = db.get(ReportDraft, draft_id)
    if not draft:
        raise WizardError("Report draft not found", status_code=404)
    return ReportWizard(draft, _gate())


def _save(db: Session, wizard: ReportWizard) -> None:
    db.add(wizard.draft)
    db.commit()
    db.refresh(wizard.draft)


def _claim(db: Session, wizard: ReportWizard, flag: str) -> None:
    """Raises the loading flag with a conditional UPDATE; only one request wins."""
    wizard.check_begin(flag)
    column = getattr(ReportDraft, flag)
    result = db.execute(
        update(ReportDraft)
        .where(ReportDraft.id == wizard.draft.id, column.is_(False))
        .values({flag: True, "last_error": None, "updated_at": datetime.now(timezone.utc)})
        .execution_options(synchronize_session=False)
    )
    claimed = result.rowcount == 1
    db.commit()
    if not claimed:
        logger.info(f"Draft {wizard.draft.id} already {flag}")
        raise WizardError(still_pending(flag))
    db.refresh(wizard.draft)


def _release(db: Session, wizard: ReportWizard, flag: str, error: Optional[str] = None) -> None:
    # the failed call may have left the session mid-transaction
    db.rollback()
    wizard.end(flag, error=error)
    _save(db, wizard)


@router.post("/drafts", response_model=DraftOut, status_code=201)
def start_report(db: Session = Depends(get_db)):
    wizard = ReportWizard.start(uuid.uuid4().hex, _gate())
    _save(db, wizard)
    return wizard.summary()


@router.get("/drafts/{draft_id}", response_model=DraftOut)
def get_report(draft_id: str, db: Session = Depends(get_db)):
    return _load(db, draft_id).summary()


@router.patch("/drafts/{draft_id}", response_model=DraftOut)
def edit_report(draft_id: str, body: DraftPatch, db: Session = Depends(get_db)):
    wizard = _load(db, draft_id)
    wizard.edit(body.model_dump(exclude_unset=True))
    _save(db, wizard)
    return wizard.summary()


@router.post("/drafts/{draft_id}/next", response_model=DraftOut)
def next_step(draft_id: str, db: Session = Depends(get_db)):
    wizard = _load(db, draft_id)
    wizard.next()
    _save(db, wizard)
    return wizard.summary()


@router.post("/drafts/{draft_id}/back", response_model=DraftOut)
def previous_step(draft_id: str, db: Session = Depends(get_db)):
    wizard = _load(db, draft_id)
    wizard.back()
    _save(db, wizard)
    return wizard.summary()


@router.post("/drafts/{draft_id}/reset", response_model=DraftOut)
def reset_report(draft_id: str, db: Session = Depends(get_db)):
    wizard = _load(db, draft_id)
    wizard.reset()
    _save(db, wizard)
    return wizard.summary()


@router.post("/drafts/{draft_id}/geolocate", response_model=DraftOut)
def geolocate(draft_id: str, body: GeolocateIn, db: Session = Depends(get_db)):
    """Device coordinates from the client, or a typed address resolved here.

    On failure the location fields are left untouched for manual entry.
    """
    wizard = _load(db, draft_id)
    _claim(db, wizard, "locating")
    try:
        if body.latitude is not None or body.longitude is not None:
            lat, lng = coerce_coordinates(body.latitude, body.longitude)
            if lat is None:
                raise GeolocationError(MANUAL_ENTRY_MESSAGE)
            label = None
        elif body.query:
            lat, lng, label = geocode_address(body.query)
        else:
            raise GeolocationError(MANUAL_ENTRY_MESSAGE)
    except GeolocationError as e:
        logger.info(f"Geolocation failed for draft {draft_id}: {e.message}")
        _release(db, wizard, "locating", error=e.message)
        raise
    except Exception as e:
        logger.error(f"Geolocation failed for draft {draft_id}: {e}", exc_info=True)
        _release(db, wizard, "locating", error=MANUAL_ENTRY_MESSAGE)
        raise GeolocationError(MANUAL_ENTRY_MESSAGE) from e
    wizard.set_coordinates(lat, lng, label)
    wizard.end("locating")
    _save(db, wizard)
    return wizard.summary()


@router.post("/drafts/{draft_id}/photo", response_model=DraftOut)
def upload_photo(
    draft_id: str,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    gateway: EntityGateway = Depends(get_gateway),
):
    wizard = _load(db, draft_id)
    if file.content_type not in ALLOWED_IMAGE_TYPES:
        raise WizardError("Unsupported image type", status_code=422)
    data = file.file.read()
    if len(data) > MAX_IMAGE_BYTES:
        raise WizardError("Image exceeds 5MB", status_code=422)
    _claim(db, wizard, "uploading")
    try:
        url = gateway.upload_file(data, file.content_type, file.filename or "upload.jpg")
    except Exception as e:
        logger.error(f"Photo upload failed for draft {draft_id}: {e}", exc_info=True)
        _release(db, wizard, "uploading", error=UPLOAD_FAILED)
        status_code = e.status_code if isinstance(e, GatewayError) else None
        raise GatewayError(UPLOAD_FAILED, status_code=status_code) from e
    wizard.set_image(url)
    wizard.end("uploading")
    _save(db, wizard)
    return wizard.summary()


@router.post("/drafts/{draft_id}/submit", status_code=201)
@limiter.limit(SUBMIT_LIMIT)
def submit_report(
    request: Request,
    draft_id: str,
    db: Session = Depends(get_db),
    gateway: EntityGateway = Depends(get_gateway),
    session: PortalSession = Depends(get_session),
):
    wizard = _load(db, draft_id)
    payload = wizard.build_payload(created_by=session.reporter)
    _claim(db, wizard, "submitting")
    try:
        issue = gateway.issues.create(payload)
    except PortalError as e:
        logger.error(f"Submitting draft {draft_id} failed: {e.message}")
        _release(db, wizard, "submitting", error=e.message)
        raise
    except Exception as e:
        logger.error(f"Submitting draft {draft_id} failed: {e}", exc_info=True)
        _release(db, wizard, "submitting", error=SUBMIT_FAILED)
        raise GatewayError(SUBMIT_FAILED) from e
    wizard.mark_submitted(issue.id)
    _save(db, wizard)
    return {
        "draft": DraftOut.model_validate(wizard.summary()),
        "issue": issue,
        "notice": notice("Report submitted! Thank you for helping improve your community.", "success"),
    }
