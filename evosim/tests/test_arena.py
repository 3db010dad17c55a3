"""
Generational arena: handles stay valid until removal, then never resolve again.
"""

from evosim.arena import Arena, Handle


def test_insert_and_get():
    arena = Arena('creature')
    a = arena.insert("alpha")
    b = arena.insert("beta")

    assert arena.get(a) == "alpha"
    assert arena.get(b) == "beta"
    assert len(arena) == 2
    assert a in arena and b in arena
    print(f"[OK] Handles {a} and {b} resolve")


def test_stale_handle_after_slot_reuse():
    arena = Arena('food')
    old = arena.insert("plant")
    assert arena.remove(old) == "plant"

    new = arena.insert("mushroom")
    assert new.index == old.index, "Free slot should be reused"
    assert new.generation == old.generation + 1

    assert arena.get(old) is None, "Stale handle must not resolve to the replacement"
    assert arena.remove(old) is None
    assert arena.get(new) == "mushroom"
    print(f"[OK] Stale handle {old} rejected, slot reused as {new}")


def test_foreign_and_unknown_handles():
    arena = Arena('creature')
    arena.insert("x")

    assert arena.get(Handle('food', 0, 0)) is None
    assert arena.get(Handle('creature', 42, 0)) is None
    assert arena.get(None) is None
    assert not arena.contains(Handle('creature', -1, 0))


def test_iteration_order_and_clear():
    arena = Arena('carrion')
    handles = [arena.insert(i) for i in range(5)]
    arena.remove(handles[2])

    assert list(arena) == [0, 1, 3, 4]
    assert [h for h, _ in arena.items()] == [handles[0], handles[1], handles[3], handles[4]]
    assert arena.values() == [0, 1, 3, 4]

    arena.clear()
    assert len(arena) == 0
    assert list(arena) == []
    assert all(arena.get(h) is None for h in handles)
    print("[OK] Iteration skips removed slots; clear invalidates every handle")


def test_handle_str():
    assert str(Handle('creature', 3, 1)) == "creature-3.1"
