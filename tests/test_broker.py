import asyncio

from infra.realtime.broker import ProgressBroker, company_room, user_room


def test_publish_reaches_room_members_once():
    async def run():
        b = ProgressBroker()
        both = b.subscribe(company_room("acme"), user_room("u1"))
        other = b.subscribe(company_room("globex"))
        delivered = b.publish_many([company_room("acme"), user_room("u1")], "resume:progress", {"progress": 10})
        assert delivered == 1
        msg = await both.get()
        assert msg["event"] == "resume:progress"
        assert msg["data"] == {"progress": 10}
        assert "timestamp" in msg
        assert both.queue.empty()
        assert other.queue.empty()

    asyncio.run(run())


def test_rooms_skip_missing_ids():
    assert company_room(None) is None
    assert user_room("") is None
    b = ProgressBroker()
    sub = b.subscribe(company_room(None), user_room("u1"))
    assert sub.rooms == {"user:u1"}
    assert b.publish(None, "noop", {}) == 0


def test_join_leave_and_close():
    b = ProgressBroker()
    sub = b.subscribe("company:acme")
    sub.join("analytics:dashboard:acme")
    assert b.publish("analytics:dashboard:acme", "analytics:update", {}) == 1
    sub.leave("analytics:dashboard:acme")
    assert b.publish("analytics:dashboard:acme", "analytics:update", {}) == 0
    assert b.connection_count() == 1
    sub.close()
    assert b.connection_count() == 0
    assert b.publish("company:acme", "resume:progress", {}) == 0


def test_full_queue_drops_messages(monkeypatch):
    monkeypatch.setattr("infra.realtime.broker.QUEUE_SIZE", 2)
    b = ProgressBroker()
    sub = b.subscribe("company:acme")
    assert [b.publish("company:acme", "tick", i) for i in range(3)] == [1, 1, 0]
    assert sub.queue.qsize() == 2


def test_progress_cache_expires():
    b = ProgressBroker(progress_ttl=60)
    entry = b.set_progress("resume", "r1", {"progress": 40})
    assert entry["progress"] == 40
    assert b.get_progress("resume", "r1") == entry
    assert b.get_progress("screening", "r1") is None

    b.progress_ttl = 0
    b.set_progress("resume", "r1", {"progress": 100})
    assert b.get_progress("resume", "r1") is None


def test_expired_progress_is_evicted_without_reads():
    b = ProgressBroker(progress_ttl=0)
    for i in range(5000):
        b.set_progress("resume", f"r{i}", {"progress": i % 100})
    assert len(b._progress) <= 1
    assert len(b._expiry) <= 1


def test_eviction_keeps_live_and_refreshed_entries():
    b = ProgressBroker(progress_ttl=3600)
    b.set_progress("screening", "s1", {"progress": 10})
    b.set_progress("screening", "s1", {"progress": 60})
    b.progress_ttl = 0
    b.set_progress("resume", "r1", {"progress": 5})
    b.set_progress("resume", "r2", {"progress": 5})
    assert b.get_progress("screening", "s1")["progress"] == 60
    assert ("resume", "r1") not in b._progress

    b.clear()
    assert b._progress == {} and b._expiry == []
