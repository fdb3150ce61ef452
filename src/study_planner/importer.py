"""Import a generated roadmap from a JSON or YAML file."""
import json
import re
from datetime import date, datetime
from pathlib import Path

import yaml
from loguru import logger

from study_planner import dates
from study_planner.models import ACTIVE, LOCKED, STATUS_ORDER, RoadmapData, RoadmapItem
from study_planner.sm2 import clamp_score, round_half_up


class RoadmapImportError(ValueError):
    """The file doesn't hold a usable roadmap."""


def _snake(key: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower()


TIMESTAMP_FIELDS = ("last_reviewed", "next_review")
SCORE_FIELDS = ("mastery", "best_score", "average_score")


def _timestamp(value, index: int, field: str) -> str | None:
    # YAML loads unquoted dates as date/datetime objects
    if value is None or value == "":
        return None
    if isinstance(value, (date, datetime)):
        value = value.isoformat()
    if not isinstance(value, str):
        raise RoadmapImportError(f"Topic {index} has a bad {field}: {value!r}")
    try:
        dates.parse_timestamp(value)
    except ValueError as e:
        raise RoadmapImportError(f"Topic {index} has a bad {field}: {e}") from e
    return value


def _score(value, index: int, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise RoadmapImportError(f"Topic {index} has a bad {field}: {value!r}")
    return round_half_up(clamp_score(value))


def read_file_content(file_path: str):
    path = Path(file_path)
    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")
    try:
        if suffix == ".json":
            return json.loads(text)
        elif suffix in (".yaml", ".yml"):
            return yaml.safe_load(text)
    except (ValueError, yaml.YAMLError) as e:
        raise RoadmapImportError(f"Could not parse {path.name}: {e}") from e
    raise RoadmapImportError(f"Unsupported roadmap format: {suffix or 'no extension'}")


def parse_roadmap(data) -> RoadmapData:
    """Build roadmap items from generator output.

    Accepts either a list of topics or a mapping with an ``items`` list. Topics
    without a status start locked, except the first one which is made active.
    """
    raw_items = data.get("items") if isinstance(data, dict) else data
    if not isinstance(raw_items, list) or not raw_items:
        raise RoadmapImportError("Roadmap has no topics")

    items = []
    for index, raw in enumerate(raw_items, 1):
        if not isinstance(raw, dict):
            raise RoadmapImportError(f"Topic {index} is not a mapping")
        values = {_snake(k): v for k, v in raw.items()}
        if not values.get("topic"):
            raise RoadmapImportError(f"Topic {index} has no name")
        values.setdefault("id", index)
        values.setdefault("week", index)
        status = values.get("status") or (ACTIVE if index == 1 else LOCKED)
        if status not in STATUS_ORDER:
            raise RoadmapImportError(f"Topic {index} has unknown status {status!r}")
        values["status"] = status
        try:
            values["id"] = int(values["id"])
            values["week"] = int(values["week"])
        except (TypeError, ValueError) as e:
            raise RoadmapImportError(f"Topic {index} has a bad id or week: {e}") from e
        for field in TIMESTAMP_FIELDS:
            if field in values:
                values[field] = _timestamp(values[field], index, field)
        for field in SCORE_FIELDS:
            if field in values:
                values[field] = _score(values[field], index, field)
        items.append(RoadmapItem.from_dict(values))

    ids = [item.id for item in items]
    if len(set(ids)) != len(ids):
        raise RoadmapImportError("Roadmap topic ids are not unique")

    generated_at = None
    if isinstance(data, dict):
        generated_at = data.get("generatedAt") or data.get("generated_at")
        if isinstance(generated_at, (date, datetime)):
            generated_at = generated_at.isoformat()
    return RoadmapData(items=items, generated_at=generated_at or datetime.now().isoformat())


def import_roadmap(file_path: str) -> RoadmapData:
    roadmap = parse_roadmap(read_file_content(file_path))
    logger.info(f"Imported {len(roadmap.items)} topics from {Path(file_path).name}")
    return roadmap
