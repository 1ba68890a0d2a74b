"""Estado del sistema: lectura y cambio de modo."""

from fastapi import APIRouter, Depends, HTTPException

from ..coordinator import Coordinator, get_coordinator
from ..core.domain import SystemMode
from ..schemas import Envelope, ModeUpdateIn, StatusOut
from ._mappers import status_out

router = APIRouter(prefix="/api/status", tags=["status"])


@router.get("", response_model=Envelope[StatusOut])
def get_status(coordinator: Coordinator = Depends(get_coordinator)):
    current = coordinator.status_store.get_current()
    if current is None:
        return Envelope[StatusOut](data=StatusOut(mode=SystemMode.AUTO.value, id=None))
    return Envelope[StatusOut](data=status_out(current))


@router.post("", response_model=Envelope[StatusOut])
def update_mode(body: ModeUpdateIn, coordinator: Coordinator = Depends(get_coordinator)):
    raw = (body.mode or "").strip().lower()
    try:
        mode = SystemMode(raw)
    except ValueError:
        raise HTTPException(status_code=400, detail='Invalid mode. Must be "auto" or "manual"')

    updated = coordinator.dispatcher.set_mode(mode)
    return Envelope[StatusOut](message=f"Mode updated to {mode.value}", data=status_out(updated))
