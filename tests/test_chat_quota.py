from datetime import timedelta

import pytest


@pytest.fixture(params=[True, False], ids=["strict", "legacy"])
def gate(request, db_session, clock):
    from app.services.chat_quota import ChatQuotaGate
    return ChatQuotaGate(db_session, clock, strict=request.param)


def _seed(db_session, user_id, *, used, limit, last_reset):
    from app.models.chat_limit import ChatLimit

    record = ChatLimit(user_id=user_id, daily_limit=limit, used_count=used, last_reset_date=last_reset)
    db_session.add(record)
    db_session.commit()
    return record


class TestLazyCreation:
    def test_peek_creates_default_record(self, gate, clock, user_id):
        record = gate.peek(user_id)
        assert record.daily_limit == 3
        assert record.used_count == 0
        assert record.last_reset_date == clock.today()
        assert record.remaining_count == 3
        assert record.can_chat is True

    def test_missing_user_rejected(self, gate):
        from app.core.exceptions import InvalidArgument

        with pytest.raises(InvalidArgument):
            gate.check_and_reserve("")
        with pytest.raises(InvalidArgument):
            gate.peek(None)


class TestCheckAndReserve:
    def test_grants_until_exhausted(self, gate, user_id):
        results = [gate.check_and_reserve(user_id) for _ in range(4)]
        assert [r.granted for r in results] == [True, True, True, False]
        assert results[0].used_count == 1
        assert results[2].used_count == 3
        assert results[2].can_chat is False

    def test_decision_is_a_snapshot(self, gate, user_id):
        import dataclasses

        first = gate.check_and_reserve(user_id)
        gate.check_and_reserve(user_id)
        gate.set_daily_limit(user_id, 10)

        assert first.used_count == 1
        assert first.daily_limit == 3
        assert first.remaining_count == 2
        with pytest.raises(dataclasses.FrozenInstanceError):
            first.used_count = 0

    def test_exhausted_today_is_denied_without_mutation(self, gate, db_session, clock, user_id):
        _seed(db_session, user_id, used=3, limit=3, last_reset=clock.today())

        decision = gate.check_and_reserve(user_id)
        assert decision.granted is False
        assert decision.used_count == 3
        assert decision.remaining_count == 0
        assert decision.can_chat is False

    def test_stale_record_is_reset_before_granting(self, gate, db_session, clock, user_id):
        _seed(db_session, user_id, used=3, limit=3, last_reset=clock.today() - timedelta(days=1))

        decision = gate.check_and_reserve(user_id)
        assert decision.granted is True
        assert decision.used_count == 1
        assert decision.remaining_count == 2
        assert decision.can_chat is True
        assert decision.last_reset_date == clock.today()

    def test_rollover_at_midnight(self, gate, clock, user_id):
        for _ in range(3):
            gate.check_and_reserve(user_id)
        assert gate.check_and_reserve(user_id).granted is False

        clock.advance(days=1)
        decision = gate.check_and_reserve(user_id)
        assert decision.granted is True
        assert decision.used_count == 1

    def test_reset_happens_once_per_day(self, gate, clock, user_id):
        gate.check_and_reserve(user_id)
        clock.advance(days=1)
        gate.peek(user_id)
        gate.check_and_reserve(user_id)
        assert gate.peek(user_id).used_count == 1


class TestPeek:
    def test_peek_does_not_consume(self, gate, user_id):
        gate.check_and_reserve(user_id)
        for _ in range(3):
            assert gate.peek(user_id).used_count == 1

    def test_peek_normalizes_stale_record(self, gate, db_session, clock, user_id):
        _seed(db_session, user_id, used=2, limit=5, last_reset=clock.today() - timedelta(days=3))

        record = gate.peek(user_id)
        assert record.used_count == 0
        assert record.daily_limit == 5
        assert record.last_reset_date == clock.today()


class TestSetDailyLimit:
    def test_changing_limit_resets_usage(self, gate, user_id):
        for _ in range(2):
            gate.check_and_reserve(user_id)

        record = gate.set_daily_limit(user_id, 5)
        assert record.daily_limit == 5
        assert record.used_count == 0
        assert record.remaining_count == 5

    def test_creates_record_when_missing(self, gate, clock, user_id):
        record = gate.set_daily_limit(user_id, 1)
        assert record.daily_limit == 1
        assert record.last_reset_date == clock.today()
        assert gate.check_and_reserve(user_id).granted is True
        assert gate.check_and_reserve(user_id).granted is False

    @pytest.mark.parametrize("limit", [0, -1, None])
    def test_limit_below_one_rejected(self, gate, user_id, limit):
        from app.core.exceptions import InvalidArgument

        with pytest.raises(InvalidArgument):
            gate.set_daily_limit(user_id, limit)

    def test_limit_above_column_range_rejected(self, gate, user_id):
        from app.core.exceptions import InvalidArgument
        from app.db.database import MAX_INTEGER

        with pytest.raises(InvalidArgument):
            gate.set_daily_limit(user_id, MAX_INTEGER + 1)
        assert gate.set_daily_limit(user_id, MAX_INTEGER).daily_limit == MAX_INTEGER

    def test_overlong_user_id_rejected(self, gate):
        from app.core.exceptions import InvalidArgument

        with pytest.raises(InvalidArgument):
            gate.peek("u" * 256)


class TestBulkOperations:
    def test_list_limits_includes_users(self, gate, user_id):
        gate.set_daily_limit(user_id, 7)
        records = {r.user_id: r for r in gate.list_limits()}
        assert records[user_id].daily_limit == 7

    def test_reset_all_keeps_limits(self, gate, user_id):
        gate.set_daily_limit(user_id, 2)
        gate.check_and_reserve(user_id)
        gate.check_and_reserve(user_id)

        assert gate.reset_all() >= 1
        record = gate.peek(user_id)
        assert record.used_count == 0
        assert record.daily_limit == 2


class TestConcurrentReservation:
    """Another request consumes the last call between the check and the write."""

    def _race(self, gate, monkeypatch, user_id):
        from app.db.database import SessionLocal
        from app.models.chat_limit import ChatLimit

        original = gate._normalize

        def normalize_then_race(record):
            record = original(record)
            other = SessionLocal()
            try:
                other.query(ChatLimit).filter(ChatLimit.user_id == user_id).update({"used_count": 1})
                other.commit()
            finally:
                other.close()
            return record

        monkeypatch.setattr(gate, "_normalize", normalize_then_race)

    def test_strict_mode_rechecks_in_store(self, db_session, clock, monkeypatch, user_id):
        from app.services.chat_quota import ChatQuotaGate

        gate = ChatQuotaGate(db_session, clock, strict=True)
        gate.set_daily_limit(user_id, 1)
        self._race(gate, monkeypatch, user_id)

        decision = gate.check_and_reserve(user_id)
        assert decision.granted is False
        assert decision.used_count == 1

    def test_legacy_mode_keeps_two_step_race(self, db_session, clock, monkeypatch, user_id):
        from app.services.chat_quota import ChatQuotaGate

        gate = ChatQuotaGate(db_session, clock, strict=False)
        gate.set_daily_limit(user_id, 1)
        self._race(gate, monkeypatch, user_id)

        # Both the racing request and this one believe they got the last call
        decision = gate.check_and_reserve(user_id)
        assert decision.granted is True
        assert decision.used_count == 1
