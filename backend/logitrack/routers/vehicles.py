"""Vehicle routes, including maintenance log and schedule."""
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from logitrack.core.auth import ActorContext, get_actor_context, require_roles
from logitrack.core.logging import logger
from logitrack.models.fleet import (
    MaintenanceRecordCreate,
    MaintenanceSchedule,
    Vehicle,
    VehicleCreateRequest,
    VehicleUpdateRequest,
)
from logitrack.services.resources import vehicle_service

router = APIRouter(prefix="/vehicles", tags=["vehicles"])


@router.get("", response_model=List[Vehicle])
def list_vehicles(context: ActorContext = Depends(get_actor_context)):
    return vehicle_service.list_vehicles()


@router.get("/next-code")
def next_vehicle_code(context: ActorContext = Depends(get_actor_context)):
    return {"code": vehicle_service.next_vehicle_code()}


@router.get("/{vehicle_id}", response_model=Vehicle)
def get_vehicle(vehicle_id: str, context: ActorContext = Depends(get_actor_context)):
    try:
        return vehicle_service.get_vehicle(vehicle_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Vehicle not found")


@router.post("", response_model=Vehicle)
def create_vehicle(
    request: VehicleCreateRequest,
    context: ActorContext = Depends(require_roles("admin", "dispatcher")),
):
    try:
        return vehicle_service.create_vehicle(request, actor=context.actor)
    except Exception as exc:
        logger.error("Failed to create vehicle", error=str(exc))
        raise HTTPException(status_code=400, detail=str(exc))


@router.patch("/{vehicle_id}", response_model=Vehicle)
def update_vehicle(
    vehicle_id: str,
    request: VehicleUpdateRequest,
    context: ActorContext = Depends(require_roles("admin", "dispatcher")),
):
    try:
        return vehicle_service.update_vehicle(vehicle_id, request, actor=context.actor)
    except KeyError:
        raise HTTPException(status_code=404, detail="Vehicle not found")
    except Exception as exc:
        logger.error("Failed to update vehicle", vehicle_id=vehicle_id, error=str(exc))
        raise HTTPException(status_code=400, detail=str(exc))


@router.delete("/{vehicle_id}", response_model=Vehicle)
def delete_vehicle(vehicle_id: str, context: ActorContext = Depends(require_roles("admin"))):
    try:
        return vehicle_service.delete_vehicle(vehicle_id, actor=context.actor)
    except KeyError:
        raise HTTPException(status_code=404, detail="Vehicle not found")


@router.post("/{vehicle_id}/maintenance", response_model=Vehicle)
def add_maintenance_record(
    vehicle_id: str,
    request: MaintenanceRecordCreate,
    context: ActorContext = Depends(require_roles("admin", "dispatcher", "accounting")),
):
    try:
        return vehicle_service.add_maintenance_record(vehicle_id, request, actor=context.actor)
    except KeyError:
        raise HTTPException(status_code=404, detail="Vehicle not found")
    except Exception as exc:
        logger.error("Failed to add maintenance record", vehicle_id=vehicle_id, error=str(exc))
        raise HTTPException(status_code=400, detail=str(exc))


@router.put("/{vehicle_id}/maintenance-schedule", response_model=Vehicle)
def update_maintenance_schedule(
    vehicle_id: str,
    schedule: List[MaintenanceSchedule],
    context: ActorContext = Depends(require_roles("admin", "dispatcher")),
):
    try:
        return vehicle_service.update_maintenance_schedule(vehicle_id, schedule, actor=context.actor)
    except KeyError:
        raise HTTPException(status_code=404, detail="Vehicle not found")
