"""Liveness and readiness probes"""

from fastapi import APIRouter, Response

router = APIRouter()


@router.get("/liveness")
async def liveness():
    return Response(status_code=204)


@router.get("/readiness")
async def readiness():
    return Response(status_code=204)
