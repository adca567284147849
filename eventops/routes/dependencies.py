from fastapi import Depends

from eventops.db.store import RecordStore, get_record_store
from eventops.services.client_service import ClientService
from eventops.services.cue_service import CueService
from eventops.services.event_service import EventService
from eventops.services.lifecycle_service import LifecycleService
from eventops.services.realtime import RealtimeBroadcaster, get_broadcaster


def get_event_service(store: RecordStore = Depends(get_record_store)) -> EventService:
    return EventService(store)


def get_client_service(store: RecordStore = Depends(get_record_store)) -> ClientService:
    return ClientService(store)


def get_lifecycle_service(
    store: RecordStore = Depends(get_record_store),
    broadcaster: RealtimeBroadcaster = Depends(get_broadcaster),
) -> LifecycleService:
    return LifecycleService(store, broadcaster)


def get_cue_service(
    store: RecordStore = Depends(get_record_store),
    broadcaster: RealtimeBroadcaster = Depends(get_broadcaster),
) -> CueService:
    return CueService(store, broadcaster)
