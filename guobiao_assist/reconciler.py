from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable

from guobiao_assist.hand import HandState, Meld, MeldType, Tile
from guobiao_assist.schemas import RecognitionTarget
from guobiao_assist.tiles import MAX_COPIES, from_code

logger = logging.getLogger(__name__)

# Faces the recognizer tends to mix up. Each pair is listed once and applies
# in both directions.
CONFUSABLE_PAIRS: tuple[tuple[str, str], ...] = (
    ("s2", "s8"),
    ("s3", "s4"),
    ("s6", "s9"),
    ("p7", "p6"),
    ("m1", "m2"),
    ("p1", "p2"),
)


def _build_remap(pairs: Iterable[tuple[str, str]]) -> dict[str, str]:
    remap: dict[str, str] = {}
    for a, b in pairs:
        remap[a] = b
        remap[b] = a
    return remap


CONFUSABLE_REMAP = _build_remap(CONFUSABLE_PAIRS)


def reconcile_codes(codes: list[str], remap: dict[str, str] = CONFUSABLE_REMAP) -> list[str]:
    """Rewrite surplus occurrences of a tile to its confusable partner.

    Only the fifth and later occurrences of a code are candidates, and only
    while the code is still over the physical limit and the partner has a free
    copy. Occurrences that cannot be repaired are kept as they are.
    """
    counts = Counter(codes)
    seen: Counter[str] = Counter()
    result = list(codes)
    for i, code in enumerate(codes):
        seen[code] += 1
        if seen[code] <= MAX_COPIES or counts[code] <= MAX_COPIES:
            continue
        replacement = remap.get(code)
        if replacement is None or counts[replacement] >= MAX_COPIES:
            continue
        result[i] = replacement
        counts[code] -= 1
        counts[replacement] += 1
        logger.info("remapped recognized tile %s -> %s at position %d", code, replacement, i)

    unresolved = sorted(code for code, n in counts.items() if n > MAX_COPIES)
    if unresolved:
        logger.warning("recognized tiles still over the %d-copy limit: %s", MAX_COPIES, unresolved)
    return result


def codes_to_tiles(codes: list[str]) -> list[Tile]:
    tiles = []
    for code in codes:
        kind = from_code(code)
        if kind is None:
            logger.warning("skipping unknown tile code %r", code)
            continue
        tiles.append(Tile.of(kind))
    return tiles


def recognize_tiles(codes: list[str]) -> list[Tile]:
    return codes_to_tiles(reconcile_codes(codes))


def infer_meld_type(tiles: list[Tile]) -> MeldType:
    if tiles and len({t.code for t in tiles}) == 1:
        return MeldType.kong if len(tiles) == 4 else MeldType.pung
    return MeldType.chow


def groups_to_melds(groups: list[list[str]]) -> list[Meld]:
    # Groups are trusted one by one; no copy-limit repair across groups.
    melds = []
    for group in groups:
        tiles = codes_to_tiles(group)
        melds.append(Meld(type=infer_meld_type(tiles), concealed=False, tiles=tiles))
    return melds


def merge_tiles(hand: HandState, tiles: list[Tile], target: RecognitionTarget) -> HandState:
    """Append a recognized batch, clipped to what the section can still hold."""
    if target is RecognitionTarget.table:
        return hand.model_copy(update={"table_tiles": [*hand.table_tiles, *tiles]})
    if target is not RecognitionTarget.standing:
        raise ValueError(f"tiles cannot be merged into {target.value}")

    accepted = tiles[: hand.free_standing_slots]
    if len(accepted) < len(tiles):
        logger.warning("discarding %d recognized tiles beyond standing capacity", len(tiles) - len(accepted))
    return hand.model_copy(update={"standing_tiles": [*hand.standing_tiles, *accepted]})


def merge_melds(hand: HandState, melds: list[Meld]) -> HandState:
    return hand.model_copy(update={"exposed_melds": [*hand.exposed_melds, *melds]})
