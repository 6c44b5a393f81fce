from fastapi import APIRouter, Depends, HTTPException, status

from orderdesk.api.deps import get_context, require_session
from orderdesk.context import AppContext
from orderdesk.models.schemas import PushSubscription

router = APIRouter(prefix="/webpush", tags=["Web Push Notifications"])


@router.get("/vapid-public-key")
def get_vapid_public_key(ctx: AppContext = Depends(get_context)):
    if not ctx.notifier.supported:
        raise HTTPException(status_code=404, detail="Web push is not configured.")
    return {"public_key": ctx.notifier.public_key}


@router.post("/subscribe", status_code=status.HTTP_201_CREATED)
async def subscribe(subscription: PushSubscription, ctx: AppContext = Depends(get_context),
                    store=Depends(require_session)):
    if not ctx.notifier.supported:
        raise HTTPException(status_code=404, detail="Web push is not configured.")
    ctx.notifier.register(subscription.model_dump(exclude_none=True))
    return {"message": "Successfully subscribed."}
