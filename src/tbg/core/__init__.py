from .containers import group_by, iter_descending_by_key, random_index, shuffle_in_place
from .errors import EngineIntegrityError, build_forensic_artifact, integrity_error, persist_forensic_artifact
from .events import EventBus, publish_event
from .ids import make_id, now_utc
from .randomness import PythonRandomSource, default_random, seeded_random
from .settings import balance_settings_from_mapping, default_balance_settings, load_balance_settings

__all__ = [
    "EngineIntegrityError",
    "EventBus",
    "PythonRandomSource",
    "balance_settings_from_mapping",
    "build_forensic_artifact",
    "default_balance_settings",
    "default_random",
    "group_by",
    "integrity_error",
    "iter_descending_by_key",
    "load_balance_settings",
    "make_id",
    "now_utc",
    "persist_forensic_artifact",
    "publish_event",
    "random_index",
    "seeded_random",
    "shuffle_in_place",
]
