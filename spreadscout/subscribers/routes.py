"""
Subscriber settings API routes.

Front-ends (the Telegram bot, an admin UI) drive settings through these
endpoints. The service objects are attached to `app.state` at startup.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status

from .models import (
    ChangeResponse, ConversationResponse, ListEntry, RegistrationResponse,
    ReplyRequest, SubscriberProfile, ThresholdUpdate,
)
from .service import InvalidSettingError, SubscriberService
from .sessions import PendingAction, SettingsConversation
from .store import SubscriberNotFound

router = APIRouter(prefix="/api/subscribers", tags=["Subscribers"])

LISTS = ("whitelist", "blacklist", "venues")
FLAGS = ("scanning", "top_assets", "venue_filtering")


def get_subscriber_service(request: Request) -> SubscriberService:
    service = getattr(request.app.state, "subscriber_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Subscriber service not initialized",
        )
    return service


def get_conversation(request: Request) -> SettingsConversation:
    conversation = getattr(request.app.state, "settings_conversation", None)
    if conversation is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Settings conversation not initialized",
        )
    return conversation


def _not_found(subscriber_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Subscriber {subscriber_id} not found",
    )


def _unknown(kind: str, name: str, allowed) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Unknown {kind} '{name}', expected one of: {', '.join(allowed)}",
    )


# Profiles

@router.post("/{subscriber_id}", response_model=RegistrationResponse)
async def register_subscriber(
    subscriber_id: str,
    service: SubscriberService = Depends(get_subscriber_service),
):
    """
    Register a subscriber with default settings.

    Registering an existing subscriber returns its profile unchanged.
    """
    profile, created = service.register(subscriber_id)
    return RegistrationResponse(profile=profile, created=created)


@router.get("/{subscriber_id}", response_model=SubscriberProfile)
async def get_subscriber(
    subscriber_id: str,
    service: SubscriberService = Depends(get_subscriber_service),
):
    """Get a subscriber's current settings."""
    try:
        return service.get(subscriber_id)
    except SubscriberNotFound:
        raise _not_found(subscriber_id)


# Lists

@router.post("/{subscriber_id}/lists/{list_name}", response_model=ChangeResponse)
async def add_list_entry(
    subscriber_id: str,
    list_name: str,
    entry: ListEntry,
    service: SubscriberService = Depends(get_subscriber_service),
):
    """Add an entry to the asset whitelist, asset blacklist or venue list."""
    adders = {
        "whitelist": service.add_to_whitelist,
        "blacklist": service.add_to_blacklist,
        "venues": service.add_venue,
    }
    return _change_list(service, subscriber_id, adders, list_name, entry.value)


@router.delete("/{subscriber_id}/lists/{list_name}/{value}", response_model=ChangeResponse)
async def remove_list_entry(
    subscriber_id: str,
    list_name: str,
    value: str,
    service: SubscriberService = Depends(get_subscriber_service),
):
    """Remove an entry from the asset whitelist, asset blacklist or venue list."""
    removers = {
        "whitelist": service.remove_from_whitelist,
        "blacklist": service.remove_from_blacklist,
        "venues": service.remove_venue,
    }
    return _change_list(service, subscriber_id, removers, list_name, value)


def _change_list(service, subscriber_id, operations, list_name, value) -> ChangeResponse:
    if list_name not in operations:
        raise _unknown("list", list_name, LISTS)
    try:
        changed = operations[list_name](subscriber_id, value)
        return ChangeResponse(changed=changed, profile=service.get(subscriber_id))
    except SubscriberNotFound:
        raise _not_found(subscriber_id)
    except InvalidSettingError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


# Flags and thresholds

@router.post("/{subscriber_id}/toggles/{flag}", response_model=SubscriberProfile)
async def toggle_flag(
    subscriber_id: str,
    flag: str,
    service: SubscriberService = Depends(get_subscriber_service),
):
    """
    Flip one of the subscriber's switches.

    - scanning: pause or resume scanning
    - top_assets: scan the shared top-N list instead of the whitelist
    - venue_filtering: pause or resume the venue whitelist
    """
    toggles = {
        "scanning": service.toggle_scanning,
        "top_assets": service.toggle_top_assets,
        "venue_filtering": service.toggle_venue_filtering,
    }
    if flag not in toggles:
        raise _unknown("toggle", flag, FLAGS)
    try:
        toggles[flag](subscriber_id)
        return service.get(subscriber_id)
    except SubscriberNotFound:
        raise _not_found(subscriber_id)


@router.put("/{subscriber_id}/thresholds", response_model=SubscriberProfile)
async def update_thresholds(
    subscriber_id: str,
    data: ThresholdUpdate,
    service: SubscriberService = Depends(get_subscriber_service),
):
    """
    Update profit, volume and target settings.

    Profit is a percentage (2 = 2%). Fields left out are not changed.
    """
    try:
        service.get(subscriber_id)
        if data.min_profit_percent is not None:
            service.set_min_profit(subscriber_id, str(data.min_profit_percent))
        if data.min_volume is not None:
            service.set_min_volume(subscriber_id, str(data.min_volume))
        if data.target is not None:
            service.set_target(subscriber_id, data.target)
        return service.get(subscriber_id)
    except SubscriberNotFound:
        raise _not_found(subscriber_id)
    except InvalidSettingError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


# Conversation

@router.post("/{subscriber_id}/prompts/{action}", response_model=ConversationResponse)
async def begin_prompt(
    subscriber_id: str,
    action: PendingAction,
    conversation: SettingsConversation = Depends(get_conversation),
):
    """Ask the subscriber for a value; the next reply is applied to `action`."""
    return ConversationResponse(message=conversation.prompt(subscriber_id, action))


@router.post("/{subscriber_id}/replies", response_model=ConversationResponse)
async def handle_reply(
    subscriber_id: str,
    data: ReplyRequest,
    conversation: SettingsConversation = Depends(get_conversation),
):
    """
    Apply a free-text reply to the pending prompt.

    `message` is null when nothing was pending.
    """
    return ConversationResponse(message=conversation.handle_reply(subscriber_id, data.text))
