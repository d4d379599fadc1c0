from datetime import timedelta

from guobiao_assist import builder
from guobiao_assist.repository import SessionStore
from guobiao_assist.tiles import from_code


def test_update_applies_transition_to_stored_session():
    store = SessionStore()
    item = store.create(builder.new_session())
    store.update(item.id, lambda s: builder.choose_tile(s, from_code("p5")))
    assert [t.code for t in store.get(item.id).session.hand.standing_tiles] == ["p5"]


def test_expired_sessions_are_dropped(monkeypatch):
    store = SessionStore(ttl_hours=1)
    item = store.create(builder.new_session())
    later = item.expires_at + timedelta(seconds=1)
    monkeypatch.setattr(store, "_utcnow", lambda: later)
    assert store.get(item.id) is None
    assert store.update(item.id, lambda s: s) is None
