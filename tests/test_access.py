from quotedesk.access import ACCESS_KEY, AccessGate


def test_unlock_with_listed_code(store):
    gate = AccessGate(store, ["AUTO2025", "DEMO123"])
    assert not gate.is_unlocked()
    assert gate.unlock("  DEMO123 ")
    assert gate.is_unlocked()
    assert store.get(ACCESS_KEY) == "true"


def test_wrong_code_stays_locked(store):
    gate = AccessGate(store, ["AUTO2025"])
    assert not gate.unlock("auto2025")
    assert not gate.unlock("")
    assert not gate.is_unlocked()


def test_lock(store):
    gate = AccessGate(store, ["AUTO2025"])
    gate.unlock("AUTO2025")
    gate.lock()
    assert not gate.is_unlocked()
