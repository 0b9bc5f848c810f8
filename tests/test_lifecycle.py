import pytest

from botsync.core.errors import StoreReadError, StoreWriteError
from botsync.models.schedule import Schedule
from tests.conftest import NOW, ROOT, minutes


def load(fs, schedule_id: str) -> Schedule:
    return Schedule.from_document(fs.get("schedules", schedule_id).value)


def add_schedule(fs, schedule_id="s1", *, status="scheduled", start=-5, end=60, **extra):
    fields = {"status": status, **extra}
    if start is not None:
        fields["scheduled_date"] = NOW + minutes(start)
    if end is not None:
        fields["scheduled_end_date"] = NOW + minutes(end)
    fs.add("schedules", schedule_id, **fields)
    return load(fs, schedule_id)


# ---------------------------------------------------------------------------
# promote
# ---------------------------------------------------------------------------

def test_promote_activates_schedule_and_creates_deployment(fs, rt, engine):
    schedule = add_schedule(fs, bot_id="bot-1")

    assert engine.promote(schedule) is True

    s = fs.fields("schedules", "s1")
    assert s["status"] == "active"
    assert s["started_at"] == NOW
    assert s["deployment_id"] == "s1"
    assert s["bot_id"] == "bot-1"  # untouched by the masked patch

    d = fs.fields("deployments", "s1")
    assert d == {
        "schedule_id": "s1",
        "bot_id": "bot-1",
        "status": "active",
        "created_at": NOW,
        "actual_start_time": NOW,
    }


def test_promote_marks_bot_active_in_both_stores(fs, rt, engine):
    engine.promote(add_schedule(fs, bot_id="bot-1"))

    bot = fs.fields("bots", "bot-1")
    assert bot["status"] == "active"
    assert bot["current_schedule_id"] == "s1"
    assert rt.node("/bots/bot-1") == {
        "status": "active",
        "current_schedule_id": "s1",
        "current_deployment_id": "bot-1",
        "last_updated": "2026-10-19T12:00:00.000Z",
    }
    node = rt.node("/deployments/bot-1")
    assert node["status"] == "active"
    assert node["deployment_id"] == "s1"
    assert node["schedule_id"] == "s1"
    assert node["bot_id"] == "bot-1"


def test_promote_uses_assigned_deployment_id(fs, engine):
    engine.promote(add_schedule(fs, deployment_id="dep-42"))
    assert fs.fields("deployments", "dep-42")["schedule_id"] == "s1"
    assert fs.fields("deployments", "s1") is None
    assert fs.fields("schedules", "s1")["deployment_id"] == "dep-42"


def test_promote_without_bot_touches_no_bot_records(fs, rt, engine):
    engine.promote(add_schedule(fs))
    assert fs.fields("schedules", "s1")["status"] == "active"
    assert fs.fields("deployments", "s1")["bot_id"] == ""
    assert rt.writes == []


@pytest.mark.parametrize("start", [5, None])
def test_promote_not_due_writes_nothing(fs, rt, engine, start):
    assert engine.promote(add_schedule(fs, start=start, bot_id="bot-1")) is False
    assert fs.writes == []
    assert rt.writes == []


def test_promote_ignores_schedule_in_other_status(fs, engine):
    assert engine.promote(add_schedule(fs, status="active")) is False
    assert fs.writes == []


def test_promote_past_end_completes_in_same_call(fs, rt, engine):
    schedule = add_schedule(fs, start=-120, end=-60, bot_id="bot-1")

    assert engine.promote(schedule) is True

    s = fs.fields("schedules", "s1")
    assert s["status"] == "completed"
    assert s["completed_at"] == NOW
    assert s["deployment_id"] == "s1"
    assert fs.fields("deployments", "s1")["status"] == "completed"
    assert rt.node("/bots/bot-1")["status"] == "idle"


def test_ensure_deployment_twice_keeps_first_record(fs, engine):
    first = {"status": "active", "schedule_id": "s1"}
    engine.ensure_deployment("dep-1", first)
    engine.ensure_deployment("dep-1", {"status": "active", "schedule_id": "other"})

    assert fs.fields("deployments", "dep-1") == first
    assert [w for w in fs.writes if w[0] == "create"] == [("create", f"{ROOT}/deployments/dep-1")]


def test_ensure_deployment_accepts_lost_create_race(fs, engine):
    fs.race_create = True
    schedule = add_schedule(fs)

    assert engine.promote(schedule) is True
    assert fs.fields("deployments", "s1")["created_by"] == "other"
    assert fs.fields("schedules", "s1")["status"] == "active"


def test_failed_deployment_create_aborts_promotion(fs, rt, engine):
    fs.fail_create = True
    schedule = add_schedule(fs, bot_id="bot-1")

    with pytest.raises(StoreWriteError):
        engine.promote(schedule)
    assert fs.fields("schedules", "s1")["status"] == "scheduled"
    assert rt.writes == []


def test_failed_schedule_patch_aborts_before_bot_updates(fs, rt, engine):
    schedule = add_schedule(fs, bot_id="bot-1")
    fs.fail_patch.add(schedule.name)

    with pytest.raises(StoreWriteError):
        engine.promote(schedule)
    assert fs.fields("bots", "bot-1") is None
    assert rt.writes == []


def test_realtime_failure_after_schedule_patch_is_not_fatal(fs, rt, engine):
    rt.fail_patch.add("/deployments/bot-1")
    assert engine.promote(add_schedule(fs, bot_id="bot-1")) is True
    assert fs.fields("schedules", "s1")["status"] == "active"
    assert rt.node("/bots/bot-1")["status"] == "active"


# ---------------------------------------------------------------------------
# complete
# ---------------------------------------------------------------------------

def active_schedule(fs, rt, **extra):
    fs.add("deployments", "s1", status="active", schedule_id="s1", bot_id="bot-1")
    rt.set("/bots/bot-1", {"status": "active", "current_schedule_id": "s1", "current_deployment_id": "bot-1"})
    rt.set("/deployments/bot-1", {"status": "active", "deployment_id": "s1"})
    return add_schedule(fs, status="active", start=-120, end=-1, bot_id="bot-1", deployment_id="s1", **extra)


def test_complete_writes_metrics_and_idles_bot(fs, rt, engine):
    schedule = active_schedule(fs, rt)
    rt.set("/deployments/bot-1/readings", {
        "0001": {"ph_level": 7.0, "battery_pct": 80, "trash_collected": 0.5},
        "0002": {"ph_level": 8.0, "battery_pct": 76, "trash_collected": 0.25},
    })

    assert engine.complete(schedule) is True

    d = fs.fields("deployments", "s1")
    assert d["status"] == "completed"
    assert d["actual_end_time"] == NOW
    assert d["metrics"] == {
        "totalTrashKg": 0.75,
        "avgPH": 7.5,
        "avgTurbidity": 0.0,
        "avgTemperatureC": 0.0,
        "lastBatteryPct": 76,
        "sampleCount": 2,
        "source": "/deployments/bot-1/readings",
    }
    s = fs.fields("schedules", "s1")
    assert s["status"] == "completed"
    assert s["completed_at"] == NOW

    assert rt.node("/deployments/bot-1")["status"] == "completed"
    assert rt.node("/deployments/bot-1")["actual_end_time"] == "2026-10-19T12:00:00.000Z"
    bot = rt.node("/bots/bot-1")
    assert bot["status"] == "idle"
    assert bot.get("current_schedule_id") is None
    assert bot.get("current_deployment_id") is None
    fs_bot = fs.fields("bots", "bot-1")
    assert fs_bot["status"] == "idle"
    assert fs_bot["current_schedule_id"] is None


def test_complete_not_due_writes_nothing(fs, rt, engine):
    schedule = add_schedule(fs, status="active", end=30, bot_id="bot-1")
    assert engine.complete(schedule) is False
    assert engine.complete(add_schedule(fs, "s2", status="active", end=None)) is False
    assert fs.writes == []
    assert rt.writes == []


def test_failed_deployment_patch_leaves_schedule_active(fs, rt, engine):
    schedule = active_schedule(fs, rt)
    fs.fail_patch.add(f"{ROOT}/deployments/s1")

    with pytest.raises(StoreWriteError):
        engine.complete(schedule)
    assert fs.fields("schedules", "s1")["status"] == "active"
    assert rt.node("/bots/bot-1")["status"] == "active"


def test_unreachable_telemetry_leaves_schedule_active(fs, rt, engine):
    schedule = active_schedule(fs, rt)
    rt.set("/deployments/bot-1/readings", {"0001": {"ph_level": 7.0}})
    rt.fail_get.add("/deployments/bot-1/readings")

    with pytest.raises(StoreReadError):
        engine.complete(schedule)
    assert fs.writes == []
    assert "metrics" not in fs.fields("deployments", "s1")
    assert fs.fields("schedules", "s1")["status"] == "active"
    assert rt.node("/bots/bot-1")["status"] == "active"

    # Store back: the next poll completes with the real readings
    rt.fail_get.clear()
    assert engine.complete(schedule) is True
    assert fs.fields("deployments", "s1")["metrics"]["source"] == "/deployments/bot-1/readings"


def test_bot_timestamps_match_across_stores(fs, rt, engine):
    engine.promote(add_schedule(fs, bot_id="bot-1"))
    assert fs.fields("bots", "bot-1")["last_updated"] == NOW
    assert rt.node("/bots/bot-1")["last_updated"] == "2026-10-19T12:00:00.000Z"
