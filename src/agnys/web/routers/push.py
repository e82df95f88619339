from fastapi import APIRouter
from pydantic import BaseModel, Field

from agnys.core.modules.push.models import NotificationPayload, SendReport
from agnys.web.deps import AppDep, AuthTokenDep
from agnys.web.openapi import ErrorResponse

router = APIRouter(tags=["push"])


class SubscriptionKeys(BaseModel):
    p256dh: str
    auth: str


class SubscriptionInfo(BaseModel):
    """Browser PushSubscription as returned by PushManager.subscribe()."""

    endpoint: str
    keys: SubscriptionKeys


class SubscribeRequest(BaseModel):
    subscription: SubscriptionInfo


class UnsubscribeRequest(BaseModel):
    endpoint: str


class PublicKeyResponse(BaseModel):
    public_key: str = Field(..., serialization_alias="publicKey")


class SuccessResponse(BaseModel):
    success: bool = True


@router.get(
    "/push/vapid-public-key",
    summary="VAPID public key",
    description="Application server key used by browsers to create push subscriptions.",
    operation_id="getVapidPublicKey",
    response_model_by_alias=True,
    responses={500: {"model": ErrorResponse, "description": "Push is not configured"}},
)
async def get_vapid_public_key(app: AppDep) -> PublicKeyResponse:
    return PublicKeyResponse(public_key=app.get_vapid_public_key())


@router.post(
    "/push/subscribe",
    summary="Register push subscription",
    operation_id="pushSubscribe",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid subscription"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def subscribe(request: SubscribeRequest, app: AppDep, auth_token: AuthTokenDep) -> SuccessResponse:
    subscription = request.subscription
    await app.push_subscribe(auth_token, subscription.endpoint, subscription.keys.p256dh, subscription.keys.auth)
    return SuccessResponse()


@router.delete(
    "/push/subscribe",
    summary="Remove push subscription",
    operation_id="pushUnsubscribe",
    responses={401: {"model": ErrorResponse, "description": "Not authenticated"}},
)
async def unsubscribe(request: UnsubscribeRequest, app: AppDep, auth_token: AuthTokenDep) -> SuccessResponse:
    await app.push_unsubscribe(auth_token, request.endpoint)
    return SuccessResponse()


@router.post(
    "/push/send",
    summary="Send notification to own devices",
    description="Deliver a notification to every subscription of the caller. Expired subscriptions are removed.",
    operation_id="pushSend",
    responses={
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        500: {"model": ErrorResponse, "description": "Push is not configured"},
    },
)
async def send(payload: NotificationPayload, app: AppDep, auth_token: AuthTokenDep) -> SendReport:
    return await app.push_send(auth_token, payload)
