from guobiao_assist.errors import ValidationError
from guobiao_assist.hand import HandState
from guobiao_assist.tiles import TileKind, from_code


def validate_tile(code: str) -> TileKind:
    kind = from_code(code)
    if kind is None:
        raise ValidationError(f"Invalid tile code: {code}", details={"code": code})
    return kind


def validate_score_request(hand: HandState) -> None:
    if hand.winning_tile is None:
        raise ValidationError("Please select a winning tile before scoring.")


def validate_advice_request(hand: HandState) -> None:
    if not hand.standing_tiles:
        raise ValidationError("Add standing tiles before asking for advice.")
