from fastapi import APIRouter, Depends, HTTPException, Query

from app import schemas
from app.dependencies import get_opencast_api
from app.proxy.decorated import DecoratedOpencastApi

router = APIRouter(prefix="/opencast/{ocinstanceid}", tags=["opencast"])


def unwrap(response) -> schemas.OpencastResponse:
    #a skipped call under maintenance comes back empty
    if response is None:
        raise HTTPException(status_code=503, detail="Opencast is currently undergoing maintenance")
    return schemas.OpencastResponse(**response)


@router.get("/series", response_model=schemas.OpencastResponse)
def list_series(
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    api: DecoratedOpencastApi = Depends(get_opencast_api),
):
    """List series of the Opencast instance"""
    return unwrap(api.series.get_all(limit=limit, offset=offset))


@router.get("/series/{series_id}", response_model=schemas.OpencastResponse)
def get_series(series_id: str, api: DecoratedOpencastApi = Depends(get_opencast_api)):
    return unwrap(api.series.get(series_id))


@router.get("/series/{series_id}/events", response_model=schemas.OpencastResponse)
def get_series_events(series_id: str, api: DecoratedOpencastApi = Depends(get_opencast_api)):
    return unwrap(api.events.get_by_series(series_id))


@router.delete("/series/{series_id}", response_model=schemas.OpencastResponse)
def delete_series(series_id: str, api: DecoratedOpencastApi = Depends(get_opencast_api)):
    """Delete a series, refused while maintenance is active"""
    return unwrap(api.series.delete(series_id))


@router.delete("/events/{event_id}", response_model=schemas.OpencastResponse)
def delete_event(event_id: str, api: DecoratedOpencastApi = Depends(get_opencast_api)):
    return unwrap(api.events.delete(event_id))


@router.get("/version", response_model=schemas.OpencastResponse)
def get_version(api: DecoratedOpencastApi = Depends(get_opencast_api)):
    return unwrap(api.sysinfo.get_version())
