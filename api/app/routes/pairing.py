import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from .. import unit_of_work
from ..deps import require_admin_token
from ..schemas import (
    AlgorithmSettingsResponse,
    OrganizationFailure,
    PairingExecutionResponse,
    ScheduledRunResponse,
    UpdateAlgorithmSettingsRequest,
)
from ..services import algorithm_settings
from ..services import pairing as pairing_service
from ..services import scheduler
from ..services.errors import PairingConstraintException, SettingsValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/pairing", dependencies=[Depends(require_admin_token)])


def _settings_response(row: dict[str, Any], warning: str | None = None) -> AlgorithmSettingsResponse:
    return AlgorithmSettingsResponse(
        id=str(row["id"]),
        organization_id=str(row["organization_id"]),
        period_length_days=int(row["period_length_days"]),
        random_seed=int(row["random_seed"]),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
        warning=warning,
    )


def _require_organization(uow, organization_id: str) -> None:
    if not uow.repo.get_organization(organization_id):
        raise HTTPException(status_code=404, detail=f"Organization {organization_id} not found")


@router.post("/organizations/{organization_id}/execute", response_model=PairingExecutionResponse)
def execute_pairing_for_organization(organization_id: str) -> PairingExecutionResponse:
    try:
        result = pairing_service.execute_pairing_with_stats(
            organization_id,
            uow_factory=unit_of_work.get_unit_of_work,
        )
    except PairingConstraintException as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except Exception:
        raise HTTPException(status_code=500, detail={"message": "Failed to execute pairing algorithm"})
    return PairingExecutionResponse(
        success=result.success,
        pairings_created=result.pairings_created,
        message=result.message,
        unpaired_users=result.unpaired_users,
    )


@router.post("/run-scheduled", response_model=ScheduledRunResponse)
def run_scheduled_pairing() -> ScheduledRunResponse:
    summary = scheduler.execute_scheduled_pairing(uow_factory=unit_of_work.get_unit_of_work)
    return ScheduledRunResponse(
        processed=summary.processed,
        succeeded=summary.succeeded,
        skipped=summary.skipped,
        failed=summary.failed,
        pairs_created=summary.pairs_created,
        failures=[OrganizationFailure(organization_id=org, message=msg) for org, msg in summary.failures],
    )


@router.get("/organizations/{organization_id}/settings", response_model=AlgorithmSettingsResponse)
def get_algorithm_settings(organization_id: str) -> AlgorithmSettingsResponse:
    with unit_of_work.get_unit_of_work() as uow:
        _require_organization(uow, organization_id)
        try:
            row = algorithm_settings.get_or_create_settings(uow.repo, organization_id)
        except PairingConstraintException as exc:
            raise HTTPException(status_code=404, detail=str(exc))
        uow.commit()
    return _settings_response(row, algorithm_settings.build_warning(int(row["period_length_days"])))


@router.put("/organizations/{organization_id}/settings", response_model=AlgorithmSettingsResponse)
def update_algorithm_settings(organization_id: str, payload: UpdateAlgorithmSettingsRequest) -> AlgorithmSettingsResponse:
    with unit_of_work.get_unit_of_work() as uow:
        _require_organization(uow, organization_id)
        try:
            row = algorithm_settings.update_settings(
                uow.repo,
                organization_id,
                period_length_days=payload.period_length_days,
                random_seed=payload.random_seed,
            )
        except SettingsValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        except PairingConstraintException as exc:
            raise HTTPException(status_code=404, detail=str(exc))
        uow.commit()
    logger.info("[PAIRING] updated algorithm settings for organization %s", organization_id)
    return _settings_response(row, row.get("warning"))
