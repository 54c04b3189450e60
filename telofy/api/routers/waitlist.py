# =====================================================================
# ROUTER - telofy/api/routers/waitlist.py
# =====================================================================

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from telofy.core.config import get_db
from telofy.services.waitlist import waitlist_service
from telofy.schemas.user import SuccessResponse
from telofy.schemas.waitlist import WaitlistCreate

router = APIRouter(prefix="/waitlist", tags=["Waitlist"])


@router.post(
    "",
    response_model=SuccessResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Join the waitlist",
)
def join_waitlist(waitlist_data: WaitlistCreate, db: Session = Depends(get_db)):
    """Returns 409 when the email is already on the list."""
    waitlist_service.join(db, email=waitlist_data.email)
    return SuccessResponse(message="Added to the waitlist")
