"""Hand builder state machine.

Every function takes a ``Session`` and returns a new one; the input is never
modified. The entry target decides where a chosen tile lands:

* ``standing``: appended while the standing hand holds fewer than 14 tiles.
* ``winning``: replaces the winning tile, then the target falls back to
  ``standing``.
* ``meld``: appended to the targeted meld until it reaches its size limit.
* ``table``: appended without bound.

Once a score result is on display the hand is frozen and chosen tiles are
ignored until ``reset``.
"""

from __future__ import annotations

from uuid import UUID

from guobiao_assist.hand import GameContext, HandState, Meld, MeldType, Tile
from guobiao_assist.schemas import EntryTarget, Section, Session
from guobiao_assist.tiles import TileKind

STANDING = EntryTarget(section=Section.standing)


def new_session(language: str = "zh") -> Session:
    session = Session()
    session.display.language = language
    return session


def _with_hand(session: Session, **changes) -> Session:
    return session.model_copy(update={"hand": session.hand.model_copy(update=changes)})


def select_target(session: Session, section: Section, meld_id: UUID | None = None) -> Session:
    if section is Section.meld:
        if meld_id is None or session.hand.find_meld(meld_id) is None:
            return session
        return session.model_copy(update={"target": EntryTarget(section=section, meld_id=meld_id)})
    return session.model_copy(update={"target": EntryTarget(section=section)})


def start_meld(session: Session, meld_type: MeldType, concealed: bool = False) -> Session:
    meld = Meld(type=meld_type, concealed=concealed)
    session = _with_hand(session, exposed_melds=[*session.hand.exposed_melds, meld])
    return session.model_copy(update={"target": EntryTarget(section=Section.meld, meld_id=meld.id)})


def delete_meld(session: Session, meld_id: UUID) -> Session:
    melds = [m for m in session.hand.exposed_melds if m.id != meld_id]
    session = _with_hand(session, exposed_melds=melds)
    if session.target.section is Section.meld and session.target.meld_id == meld_id:
        session = session.model_copy(update={"target": STANDING})
    return session


def _add_to_meld(session: Session, meld_id: UUID | None, kind: TileKind) -> Session:
    melds = []
    for meld in session.hand.exposed_melds:
        if meld.id == meld_id and not meld.is_full:
            meld = meld.model_copy(update={"tiles": [*meld.tiles, Tile.of(kind)]})
        melds.append(meld)
    return _with_hand(session, exposed_melds=melds)


def choose_tile(session: Session, kind: TileKind) -> Session:
    if session.display.is_frozen:
        return session

    hand = session.hand
    section = session.target.section
    if section is Section.meld:
        return _add_to_meld(session, session.target.meld_id, kind)
    if section is Section.winning:
        session = _with_hand(session, winning_tile=Tile.of(kind))
        return session.model_copy(update={"target": STANDING})
    if section is Section.table:
        return _with_hand(session, table_tiles=[*hand.table_tiles, Tile.of(kind)])
    if hand.free_standing_slots == 0:
        return session
    return _with_hand(session, standing_tiles=[*hand.standing_tiles, Tile.of(kind)])


def remove_standing_tile(session: Session, tile_id: UUID) -> Session:
    return _with_hand(session, standing_tiles=[t for t in session.hand.standing_tiles if t.id != tile_id])


def remove_table_tile(session: Session, tile_id: UUID) -> Session:
    return _with_hand(session, table_tiles=[t for t in session.hand.table_tiles if t.id != tile_id])


def clear_winning_tile(session: Session) -> Session:
    return _with_hand(session, winning_tile=None)


def update_context(session: Session, context: GameContext) -> Session:
    return _with_hand(session, context=context)


def reset(session: Session) -> Session:
    display = session.display.model_copy(update={"result": None, "advice": None, "error": None})
    return Session(hand=HandState(), target=STANDING, display=display)
