from fastapi import APIRouter, Depends
from loguru import logger

from tunevault.api.deps import get_current_user
from tunevault.api.schemas import LogRequest, SuccessResponse

router = APIRouter()


@router.post("", response_model=SuccessResponse)
async def log(request: LogRequest, user_id: str = Depends(get_current_user)):
    """Relay a message from the browser client to the server log."""
    logger.debug(f"JS: {request.message}")
    return SuccessResponse()
