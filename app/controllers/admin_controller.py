"""
Controlador de Admin - Endpoints exclusivos para administradores

Alta de entidades, carga de resultados, configuración de evaluadores y
disparo (manual o desde un job) del motor de evaluación.
"""

from dataclasses import asdict

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.core.dependencies import Cache, CurrentAdmin, Database, Registry
from app.models.entity import EntityCreate, Outcome, PredictableEntity
from app.models.evaluator import Evaluator, EvaluatorCreate
from app.repositories.entity_repository import EntityRepository
from app.repositories.lock_repository import LockConflictError
from app.services.evaluation_service import (
    EntityNotFoundError,
    EvaluationService,
    NotReadyError,
    PartialEvaluationError,
)
from app.services.evaluator_registry import ConfigurationError
from app.services.evaluator_service import EvaluatorService


router = APIRouter(prefix="/admin", tags=["admin"])


# ============================================
# REQUEST SCHEMAS
# ============================================

class RecordOutcomeRequest(BaseModel):
    """Request para registrar (o corregir) el resultado de una entidad"""
    outcome: Outcome


# ============================================
# ENTITIES
# ============================================

@router.post("/entities", response_model=PredictableEntity, status_code=status.HTTP_201_CREATED)
async def create_entity(
    request: EntityCreate,
    admin: CurrentAdmin,
    db: Database
):
    """Crear una entidad apostable (partido, serie, especial o pregunta)."""
    return await EntityRepository(db).create(request)


@router.put("/entities/{entity_id}/outcome", response_model=PredictableEntity)
async def record_outcome(
    entity_id: str,
    request: RecordOutcomeRequest,
    admin: CurrentAdmin,
    db: Database
):
    """
    Registrar el resultado final de una entidad.

    La deja en played; si ya estaba evaluada, el siguiente pase recalcula.
    """
    entity_repo = EntityRepository(db)

    if not await entity_repo.get_by_id(entity_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Entidad {entity_id} no encontrada"
        )

    try:
        return await entity_repo.record_outcome(entity_id, request.outcome)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )


# ============================================
# EVALUATION
# ============================================

@router.post("/evaluations/pending")
async def evaluate_pending(
    admin: CurrentAdmin,
    db: Database,
    registry: Registry,
    cache: Cache
):
    """
    Evaluar todas las entidades pendientes.

    Pensado para un job periódico; los errores por entidad van en el resumen.
    """
    service = EvaluationService(db, registry, cache)
    summary = await service.evaluate_pending()
    return asdict(summary)


@router.post("/entities/{entity_id}/evaluation")
async def evaluate_entity(
    entity_id: str,
    admin: CurrentAdmin,
    db: Database,
    registry: Registry,
    cache: Cache
):
    """
    Evaluar (o re-evaluar) una entidad.

    - 200: todas las apuestas puntuadas
    - 207: algunas apuestas fallaron (failed_bet_ids), el resto se guardó
    """
    service = EvaluationService(db, registry, cache)

    try:
        result = await service.evaluate_one(entity_id)
    except EntityNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    except NotReadyError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except LockConflictError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e)
        )
    except PartialEvaluationError as e:
        return JSONResponse(
            status_code=status.HTTP_207_MULTI_STATUS,
            content={
                **asdict(e.result),
                "errors": e.errors,
            }
        )

    return asdict(result)


@router.delete("/entities/{entity_id}/evaluation")
async def reset_evaluation(
    entity_id: str,
    admin: CurrentAdmin,
    db: Database,
    registry: Registry,
    cache: Cache
):
    """Borrar los puntos de una entidad y volverla a played."""
    service = EvaluationService(db, registry, cache)

    try:
        deleted = await service.reset_evaluation(entity_id)
    except EntityNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    except NotReadyError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except LockConflictError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e)
        )

    return {
        "success": True,
        "message": f"Evaluación de {entity_id} reseteada",
        "records_deleted": deleted
    }


# ============================================
# EVALUATORS
# ============================================

@router.post(
    "/leagues/{league_id}/evaluators",
    response_model=Evaluator,
    status_code=status.HTTP_201_CREATED
)
async def configure_evaluator(
    league_id: str,
    request: EvaluatorCreate,
    admin: CurrentAdmin,
    db: Database,
    registry: Registry
):
    """Configurar un evaluador (tipo, puntos, params) para una liga."""
    service = EvaluatorService(db, registry)

    try:
        return await service.configure(league_id, request)
    except ConfigurationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e)
        )


@router.delete("/evaluators/{evaluator_id}")
async def remove_evaluator(
    evaluator_id: str,
    admin: CurrentAdmin,
    db: Database,
    registry: Registry
):
    """Dar de baja un evaluador."""
    service = EvaluatorService(db, registry)

    if not await service.remove(evaluator_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Evaluador {evaluator_id} no encontrado"
        )

    return {"success": True, "message": f"Evaluador {evaluator_id} dado de baja"}
