import random

import pytest

from eventops.models.domain.context import ServiceContext
from eventops.services.cue_service import (
    CueEventNotFoundError,
    CueNotFoundError,
    CueServiceError,
    CueService,
    CueUpdateError,
    IllegalCueTransitionError,
    RunOfShow,
)


@pytest.fixture
def event(seed_event):
    return seed_event(title="Gala Night")


@pytest.mark.asyncio
async def test_list_cues_sorted_by_start_time(store, ctx, event, seed_cue):
    offsets = [45, 0, 90, 15, 30, 60]
    random.Random(7).shuffle(offsets)
    for minutes in offsets:
        seed_cue(event["id"], minutes)

    cues = await CueService(store).list_cues_for_event(ctx, event["id"])

    starts = [cue.start_time for cue in cues]
    assert starts == sorted(starts)
    assert len(cues) == len(offsets)


@pytest.mark.asyncio
async def test_list_cues_refetches_every_call(store, ctx, event, seed_cue):
    service = CueService(store)
    seed_cue(event["id"], 10)
    first = await service.list_cues_for_event(ctx, event["id"])

    seed_cue(event["id"], 5)
    second = await service.list_cues_for_event(ctx, event["id"])

    assert len(first) == 1
    assert len(second) == 2
    assert second[0].start_time < second[1].start_time


@pytest.mark.asyncio
async def test_list_cues_for_other_tenant_event(store, seed_event, seed_cue):
    foreign = seed_event(tenant_id="T2")
    seed_cue(foreign["id"], 0)
    ctx = ServiceContext(tenant_id="T1", coordinator_id="coord-1")

    with pytest.raises(CueEventNotFoundError):
        await CueService(store).list_cues_for_event(ctx, foreign["id"])


@pytest.mark.asyncio
async def test_live_then_completed(store, ctx, event, seed_cue):
    cue = seed_cue(event["id"], 0)
    other = seed_cue(event["id"], 20)
    board = await RunOfShow.load(CueService(store), ctx, event["id"])

    await board.set_cue_status(cue["id"], "live")
    notification = await board.set_cue_status(cue["id"], "completed")

    assert notification.title == "Cue is now COMPLETED"
    assert store.rows("event_cues")[0]["status"] == "completed"
    by_id = {c.id: c for c in board.cues}
    assert by_id[cue["id"]].status == "completed"
    assert by_id[other["id"]].status == "pending"
    assert [c.id for c in board.cues] == [cue["id"], other["id"]]


@pytest.mark.asyncio
async def test_board_updates_in_place_without_refetch(store, ctx, event, seed_cue):
    cue = seed_cue(event["id"], 0)
    board = await RunOfShow.load(CueService(store), ctx, event["id"])
    seed_cue(event["id"], 5)
    finds_before = store.calls_for("event_cues").count("find")

    await board.set_cue_status(cue["id"], "live")

    # one lookup of the cue being changed, no list reload
    assert store.calls_for("event_cues").count("find") == finds_before + 1
    assert len(board.cues) == 1


@pytest.mark.asyncio
async def test_persistence_failure_leaves_board_unchanged(store, ctx, event, seed_cue):
    cue = seed_cue(event["id"], 0)
    board = await RunOfShow.load(CueService(store), ctx, event["id"])
    store.fail_on.add(("update", "event_cues"))

    notification = await board.set_cue_status(cue["id"], "live")

    assert notification.variant == "destructive"
    assert notification.description == "Could not sync cue status."
    assert isinstance(board.last_error, CueUpdateError)
    assert board.cues[0].status == "pending"
    assert store.calls_for("event_cues").count("update") == 1


@pytest.mark.asyncio
async def test_illegal_transition_rejected_when_enforced(store, ctx, event, seed_cue):
    cue = seed_cue(event["id"], 0)

    with pytest.raises(IllegalCueTransitionError) as exc_info:
        await CueService(store, enforce_transitions=True).set_cue_status(ctx, cue["id"], "completed")

    assert exc_info.value.current == "pending"
    assert store.rows("event_cues")[0]["status"] == "pending"
    assert "update" not in store.calls_for("event_cues")


@pytest.mark.asyncio
async def test_overrun_is_terminal_when_enforced(store, ctx, event, seed_cue):
    cue = seed_cue(event["id"], 0, status="overrun")

    with pytest.raises(IllegalCueTransitionError):
        await CueService(store, enforce_transitions=True).set_cue_status(ctx, cue["id"], "completed")


@pytest.mark.asyncio
async def test_any_transition_allowed_when_not_enforced(store, ctx, event, seed_cue):
    cue = seed_cue(event["id"], 0)

    updated = await CueService(store, enforce_transitions=False).set_cue_status(
        ctx, cue["id"], "completed"
    )

    assert updated.status == "completed"


@pytest.mark.asyncio
async def test_reopen_completed_cue(store, ctx, event, seed_cue):
    cue = seed_cue(event["id"], 0, status="completed")

    updated = await CueService(store, enforce_transitions=True).set_cue_status(ctx, cue["id"], "pending")

    assert updated.status == "pending"


@pytest.mark.asyncio
async def test_unknown_cue(store, ctx):
    with pytest.raises(CueNotFoundError):
        await CueService(store).set_cue_status(ctx, "missing", "live")


@pytest.mark.asyncio
async def test_cue_of_other_tenant_is_not_found(store, seed_event, seed_cue):
    foreign = seed_event(tenant_id="T2")
    cue = seed_cue(foreign["id"], 0)
    ctx = ServiceContext(tenant_id="T1", coordinator_id="coord-1")

    with pytest.raises(CueNotFoundError):
        await CueService(store).set_cue_status(ctx, cue["id"], "live")

    assert store.rows("event_cues")[0]["status"] == "pending"


@pytest.mark.asyncio
async def test_status_change_is_broadcast(store, ctx, event, seed_cue, fake_broadcaster):
    cue = seed_cue(event["id"], 0)

    await CueService(store, fake_broadcaster).set_cue_status(ctx, cue["id"], "live")

    channel, payload = fake_broadcaster.published[0]
    assert channel == f"event:{event['id']}:cues"
    assert payload["record"]["status"] == "live"


@pytest.mark.asyncio
async def test_current_cue_includes_overrun(store, ctx, event, seed_cue):
    seed_cue(event["id"], 0, status="completed")
    running = seed_cue(event["id"], 10, status="overrun")
    seed_cue(event["id"], 20)

    board = await RunOfShow.load(CueService(store), ctx, event["id"])

    assert board.current_cue().id == running["id"]
    assert board.actions_for(board.current_cue()) == []


@pytest.mark.asyncio
async def test_malformed_cue_row_raises_service_error(store, ctx, event, seed_cue):
    bad = seed_cue(event["id"], 0, status="paused")

    with pytest.raises(CueServiceError) as exc_info:
        await CueService(store).list_cues_for_event(ctx, event["id"])

    assert exc_info.value.cue_id == bad["id"]
