"""Control manual del chiller."""

from fastapi import APIRouter, Depends, HTTPException

from ..coordinator import Coordinator, get_coordinator
from ..core.domain import ChillerState
from ..schemas import ChillerControlIn, Envelope, StatusOut
from ._mappers import status_out

router = APIRouter(prefix="/api/chiller", tags=["chiller"])


@router.post("/control", response_model=Envelope[StatusOut])
def control_chiller(body: ChillerControlIn, coordinator: Coordinator = Depends(get_coordinator)):
    """ON/OFF del chiller. Solo en modo manual.

    - 200: intención guardada y comandos confirmados por el broker
    - 400: acción inválida o modo != manual (nada se modifica)
    - 503: intención guardada pero el broker no estaba disponible
    """
    raw = (body.action or "").strip().upper()
    try:
        action = ChillerState(raw)
    except ValueError:
        raise HTTPException(status_code=400, detail='Invalid action. Must be "ON" or "OFF"')

    updated = coordinator.dispatcher.control_actuator(action)
    return Envelope[StatusOut](message=f"Chiller {action.value} command sent", data=status_out(updated))
