from __future__ import annotations
import dataclasses
import logging
from pathlib import Path
from typing import Any, Callable, Collection, Dict, List

import yaml

from ..core.calendar import CalendarTime, Season
from ..core.ids import EventId
from . import conditions as cond
from . import effects as eff
from .errors import EventCatalogError
from .frequency import FrequencyConfig
from .model import EventCategory, EventDefinition, EventPriority, EventRewards, GamePhase, Rarity
from .schedule import MonthlySchedule, OneTimeSchedule, RandomSchedule, SeasonalSchedule

logger = logging.getLogger(__name__)


def _read_yaml(path: Path) -> Any:
    with open(path, 'r') as f:
        data = yaml.safe_load(f)
    if data is None:
        raise EventCatalogError(f"YAML file '{path}' is empty or malformed.")
    return data


def _mapping(data: Any, where: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise EventCatalogError(f"Expected a mapping in {where}, got {type(data).__name__}")
    return data


def _require(data: Dict[str, Any], key: str, where: str) -> Any:
    if key not in _mapping(data, where):
        raise EventCatalogError(f"Missing key '{key}' in {where}")
    return data[key]


def _list(data: Dict[str, Any], key: str, where: str) -> List[Any]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise EventCatalogError(f"'{key}' must be a list in {where}")
    return value


def _number(convert: Callable[[Any], Any], value: Any, key: str, where: str):
    try:
        return convert(value)
    except (TypeError, ValueError) as exc:
        raise EventCatalogError(f"'{key}' must be a number in {where}, got {value!r}") from exc


def _int(data: Dict[str, Any], key: str, where: str) -> int:
    return _number(int, _require(data, key, where), key, where)


def _float(data: Dict[str, Any], key: str, where: str) -> float:
    return _number(float, _require(data, key, where), key, where)


def _enum(enum_cls, value: Any, where: str):
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str) and value.upper() in enum_cls.__members__:
        return enum_cls[value.upper()]
    raise EventCatalogError(f"Invalid {enum_cls.__name__.lower()} {value!r} in {where}")


def _season(value: Any, where: str) -> Season:
    try:
        return Season.parse(value)
    except ValueError as exc:
        raise EventCatalogError(f"Invalid season {value!r} in {where}") from exc


# --- Schedules ---

def parse_schedule(data: Dict[str, Any], where: str):
    schedule_type = _require(data, "type", where)
    if schedule_type == "monthly":
        return MonthlySchedule(day_of_month=_int(data, "day", where))
    if schedule_type == "seasonal":
        return SeasonalSchedule(
            season=_season(_require(data, "season", where), where),
            day_of_season=_int(data, "day", where),
        )
    if schedule_type == "one_time":
        return OneTimeSchedule(at=CalendarTime(
            year=_int(data, "year", where),
            season=_season(_require(data, "season", where), where),
            day=_int(data, "day", where),
        ))
    if schedule_type == "random":
        probability = _number(float, data.get("probability", 0.0), "probability", where)
        if not 0.0 <= probability <= 1.0:
            raise EventCatalogError(f"Random schedule probability must be within [0, 1] in {where}")
        return RandomSchedule(probability=probability)
    raise EventCatalogError(f"Unknown schedule type '{schedule_type}' in {where}")


# --- Conditions ---

def parse_condition(data: Dict[str, Any], where: str):
    condition_type = _require(data, "type", where)
    if condition_type == "rank":
        min_rank = _require(data, "min", where)
        if min_rank not in cond.RANK_ORDER:
            raise EventCatalogError(f"Unknown rank '{min_rank}' in {where}")
        return cond.RankCondition(min_rank=min_rank)
    if condition_type == "gold":
        return cond.GoldCondition(min_gold=_int(data, "min", where))
    if condition_type == "reputation":
        return cond.ReputationCondition(min_reputation=_float(data, "min", where))
    if condition_type == "season":
        return cond.SeasonCondition(season=_season(_require(data, "season", where), where))
    if condition_type == "quest":
        return cond.QuestCondition(quest_id=str(_require(data, "quest_id", where)))
    if condition_type == "item":
        items = _require(data, "items", where)
        if not isinstance(items, dict):
            raise EventCatalogError(f"'items' must map item ids to quantities in {where}")
        return cond.ItemCondition(required={str(k): _number(int, v, str(k), where) for k, v in items.items()})
    if condition_type == "random":
        return cond.RandomCondition(probability=_float(data, "probability", where))
    if condition_type == "time":
        return cond.TimeCondition(min_days_passed=_int(data, "min_days", where))
    if condition_type == "shop_level":
        return cond.ShopLevelCondition(min_level=_int(data, "min", where))
    if condition_type in ("all", "any"):
        _require(data, "conditions", where)
        return cond.CompoundCondition(
            children=tuple(
                parse_condition(child, f"{where} > {condition_type}")
                for child in _list(data, "conditions", where)
            ),
            require_all=condition_type == "all",
        )
    raise EventCatalogError(f"Unknown condition type '{condition_type}' in {where}")


# --- Effects ---

EFFECT_TYPES: Dict[str, Callable[..., Any]] = {
    "payday": eff.PaydayEffect,
    "market_crash": eff.MarketCrashEffect,
    "market_boost": eff.MarketBoostEffect,
    "reputation": eff.ReputationEffect,
    "unlock_feature": eff.UnlockFeatureEffect,
    "item_spawn": eff.ItemSpawnEffect,
    "quest_start": eff.QuestStartEffect,
    "weather": eff.WeatherEffect,
    "tax": eff.TaxEffect,
    "competitor": eff.CompetitorEffect,
}


def parse_effect(data: Dict[str, Any], where: str):
    effect_type = _require(data, "type", where)
    if effect_type not in EFFECT_TYPES:
        raise EventCatalogError(f"Unknown effect type '{effect_type}' in {where}")
    params = {k: v for k, v in data.items() if k != "type"}
    for key in ("item_ids", "quantities", "objectives"):
        if key in params:
            params[key] = tuple(_list(params, key, where))
    try:
        return EFFECT_TYPES[effect_type](**params)
    except TypeError as exc:
        raise EventCatalogError(f"Invalid parameters for effect '{effect_type}' in {where}: {exc}") from exc


# --- Events ---

def parse_rewards(data: Dict[str, Any], where: str) -> EventRewards:
    where = f"rewards of {where}"
    _mapping(data, where)
    return EventRewards(
        gold=_number(int, data.get("gold", 0), "gold", where),
        reputation=_number(int, data.get("reputation", 0), "reputation", where),
        items=[str(item) for item in _list(data, "items", where)],
        experience=_number(int, data.get("experience", 0), "experience", where),
    )


def parse_event(data: Dict[str, Any]) -> EventDefinition:
    event_id = _require(data, "id", "event")
    if not isinstance(event_id, str) or not event_id:
        raise EventCatalogError(f"Invalid or empty 'id' in event: {event_id!r}")
    where = f"event '{event_id}'"

    rewards = parse_rewards(data["rewards"], where) if data.get("rewards") is not None else None

    lead_days = _number(int, data.get("notification_lead_days", 0), "notification_lead_days", where)
    if lead_days < 0:
        raise EventCatalogError(f"'notification_lead_days' cannot be negative in {where}")

    follow_up_ids = _list(data, "follow_ups", where)
    for follow_up_id in follow_up_ids:
        if not isinstance(follow_up_id, str):
            raise EventCatalogError(f"Follow-up ids must be strings in {where}, got {follow_up_id!r}")

    return EventDefinition(
        id=EventId(event_id),
        name=str(_require(data, "name", where)),
        description=str(data.get("description", "")),
        category=_enum(EventCategory, data.get("category", "regular"), where),
        priority=_enum(EventPriority, data.get("priority", "normal"), where),
        active=bool(data.get("active", True)),
        schedule=parse_schedule(data["schedule"], where) if data.get("schedule") else None,
        conditions=[parse_condition(c, where) for c in _list(data, "conditions", where)],
        effects=[parse_effect(e, where) for e in _list(data, "effects", where)],
        rewards=rewards,
        follow_up_ids=[EventId(f) for f in follow_up_ids],
        notification_lead_days=lead_days,
        rarity=_enum(Rarity, data.get("rarity", "common"), where),
    )


def validate_follow_ups(definitions: List[EventDefinition], known_ids: Collection[str] = ()):
    """
    Every follow-up must name an event of this batch or one of `known_ids`
    (already registered), and the follow-ups within the batch must be acyclic.
    """
    by_id = {d.id: d for d in definitions}
    for definition in definitions:
        for follow_up_id in definition.follow_up_ids:
            if follow_up_id not in by_id and follow_up_id not in known_ids:
                raise EventCatalogError(f"Event '{definition.id}' has unknown follow-up '{follow_up_id}'")

    done = set()

    def visit(event_id: EventId, path: List[EventId]):
        if event_id in path:
            cycle = " -> ".join(path[path.index(event_id):] + [event_id])
            raise EventCatalogError(f"Follow-up cycle: {cycle}")
        if event_id in done or event_id not in by_id:
            return
        for follow_up_id in by_id[event_id].follow_up_ids:
            visit(follow_up_id, path + [event_id])
        done.add(event_id)

    for definition in definitions:
        visit(definition.id, [])


def load_event_catalog(path: Path, known_ids: Collection[str] = ()) -> List[EventDefinition]:
    """
    Loads and validates event definitions from a YAML file. Follow-ups may
    point at events of the same file or at `known_ids`.
    """
    data = _read_yaml(path)
    if not isinstance(data, dict) or "events" not in data:
        raise EventCatalogError(f"Missing 'events' key in {path}")
    if not isinstance(data["events"], list):
        raise EventCatalogError(f"'events' in {path} must be a list of events.")

    definitions = [parse_event(e_data) for e_data in data["events"]]
    seen = set()
    for definition in definitions:
        if definition.id in seen:
            raise EventCatalogError(f"Duplicate event id '{definition.id}' in {path}")
        seen.add(definition.id)
    validate_follow_ups(definitions, known_ids)
    return definitions


def load_frequency_config(path: Path) -> FrequencyConfig:
    """Loads frequency tuning from YAML; omitted keys keep their defaults."""
    data = _read_yaml(path)
    if not isinstance(data, dict):
        raise EventCatalogError(f"Top level of {path} must be a mapping of settings.")

    known = {f.name for f in dataclasses.fields(FrequencyConfig)}
    unknown = set(data) - known
    if unknown:
        raise EventCatalogError(f"Unknown frequency settings in {path}: {', '.join(sorted(unknown))}")

    where = str(path)
    settings = dict(data)
    if "phase_multipliers" in settings:
        settings["phase_multipliers"] = {
            _enum(GamePhase, phase, where): _number(float, mult, str(phase), where)
            for phase, mult in _mapping(settings["phase_multipliers"], f"'phase_multipliers' of {where}").items()
        }
    for band in ("common_frequency_band", "uncommon_frequency_band"):
        if band in settings:
            bounds = settings[band]
            if not isinstance(bounds, list) or len(bounds) != 2:
                raise EventCatalogError(f"'{band}' must be a [low, high] pair in {path}")
            lo, hi = (_number(float, bound, band, where) for bound in bounds)
            if lo > hi:
                raise EventCatalogError(f"'{band}' lower bound exceeds upper bound in {path}")
            settings[band] = (lo, hi)

    config = FrequencyConfig(**settings)
    if not 0.0 < config.probability_cap <= 1.0:
        raise EventCatalogError(f"'probability_cap' must be within (0, 1] in {path}")
    logger.info("Loaded frequency config from %s", path)
    return config
