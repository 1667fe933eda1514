# Draft storage for import sessions, one JSON file per draft
import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .models import Draft

logger = logging.getLogger(__name__)

DRAFTS_DIR = Path(__file__).parent.parent.parent / "drafts"


def draft_path(draft_id: str) -> Path:
    return DRAFTS_DIR / f"{draft_id}.json"


def load_draft(draft_id: str) -> Optional[Draft]:
    """Load a draft from file, None if missing or unreadable"""
    if not draft_id.isalnum():
        return None
    path = draft_path(draft_id)
    if not path.exists():
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            return Draft.model_validate(json.load(f))
    except (json.JSONDecodeError, ValidationError):
        logger.warning("Ignoring corrupt draft file %s", path)
        return None


def save_draft(draft: Draft):
    """Save a draft to file"""
    DRAFTS_DIR.mkdir(parents=True, exist_ok=True)
    with open(draft_path(draft.id), "w", encoding="utf-8") as f:
        json.dump(draft.model_dump(mode="json"), f, indent=2)
