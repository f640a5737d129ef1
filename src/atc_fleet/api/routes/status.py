"""Fleet status, service health and readiness endpoints."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, HTTPException, Request

from atc_fleet.catalog import LogicalService
from atc_fleet.errors import OrchestrationError
from atc_fleet.monitor import factory

router = APIRouter(tags=["fleet"])


@router.get("/status")
async def fleet_status(request: Request, verbose: bool = False, probe: bool = False) -> Dict[str, Any]:
    aggregator = factory.status_aggregator(request.app.state.config)
    try:
        snapshot = await aggregator.snapshot(verbose=verbose, probe=probe)
    except OrchestrationError as exc:
        raise HTTPException(status_code=503, detail=exc.message) from exc
    return snapshot.to_dict()


@router.get("/services/{name}/health")
async def service_health(request: Request, name: str) -> Dict[str, Any]:
    if LogicalService.lookup(name) is None:
        raise HTTPException(status_code=404, detail=f"Unknown service: {name}")
    checker = factory.health_checker(request.app.state.config)
    result = await checker.check_service(name)
    return result.to_dict()


@router.get("/readiness")
async def readiness(
    request: Request,
    skip_dns: bool = False,
    skip_https: bool = False,
    skip_websocket: bool = False,
) -> Dict[str, Any]:
    gate = factory.readiness_gate(request.app.state.config)
    result = await gate.run(skip_dns=skip_dns, skip_https=skip_https, skip_websocket=skip_websocket)
    return result.to_dict()
