from fastapi import APIRouter, Depends

from app.core import log_step
from app.state import AppState, get_state
from app.yoto import YotoError, get_card, list_cards

from ..errors import to_http_exception

router = APIRouter()


@router.get("/cards")
def get_yoto_cards(state: AppState = Depends(get_state)):
    """
    The account's MYO cards, as returned by Yoto.
    """
    log_step("Fetching Yoto cards...")
    try:
        return list_cards(state.credentials)
    except YotoError as e:
        raise to_http_exception(e)


@router.get("/cards/{card_id}")
def get_yoto_card(card_id: str, state: AppState = Depends(get_state)):
    try:
        return get_card(state.credentials, card_id)
    except YotoError as e:
        raise to_http_exception(e)
