"""
Animation Library.

Saved animations keyed by id, plus the current selection used by playback.
Only animations that resolve onto the timeline are accepted.
"""
from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from robot_engines.animation_timeline.legacy import coerce_animation
from robot_engines.animation_timeline.models import AnimationDefinition, SaveResult
from robot_engines.animation_timeline.resolver import normalize_animation_start_deg, resolve_timeline
from robot_engines.common.errors import UnknownAnimationError

logger = logging.getLogger(__name__)

INDEX_FILE = "index.json"
PUBLISHED_PREFIX = "animations/"


def _index_entry_path(root: Path, entry: str) -> Path:
    name = entry.strip().lstrip("/")
    if name.startswith(PUBLISHED_PREFIX):
        name = name[len(PUBLISHED_PREFIX):]
    return root / name


class AnimationLibrary:

    def __init__(self):
        self._animations: Dict[str, AnimationDefinition] = {}
        self.selected_id: Optional[str] = None

    def save(self, animation: AnimationDefinition) -> SaveResult:
        """Validate, re-derive start angles and store; the saved one is selected."""
        resolution = resolve_timeline(animation)
        if not resolution.ok:
            logger.warning("Rejected animation %s (%s): %s", animation.id, animation.name, resolution.error)
            return SaveResult(ok=False, error=resolution.error)

        existing = self._animations.get(animation.id)
        stored = normalize_animation_start_deg(animation).model_copy(update={
            "created_at": existing.created_at if existing else animation.created_at,
            "updated_at": time.time() * 1000.0,
        })
        self._animations[stored.id] = stored
        self.selected_id = stored.id
        logger.info("Animation saved: %s (%s), %d nodes", stored.id, stored.name, len(stored.nodes))
        return SaveResult(ok=True, animation=stored)

    def import_json(self, payload: Any) -> SaveResult:
        """Parse an animation document (any supported version) and save it."""
        imported = coerce_animation(payload)
        if not imported.ok:
            logger.warning("Animation import failed: %s", imported.error)
            return SaveResult(ok=False, error=imported.error)
        return self.save(imported.animation)

    def load_directory(self, directory: Union[str, Path]) -> List[SaveResult]:
        """
        Load animation files from a folder.

        Uses index.json ({"files": [...]} or a plain list) when present,
        otherwise every *.json file in name order. Index entries may be
        published paths such as "/animations/wave.json". An unreadable or
        malformed index loads nothing.
        """
        root = Path(directory)
        index = root / INDEX_FILE
        if index.exists():
            try:
                listing = json.loads(index.read_text())
            except (OSError, ValueError) as exc:
                logger.warning("Skipping animation index %s: %s", index, exc)
                return []
            files = listing.get("files") if isinstance(listing, dict) else listing
            if not isinstance(files, list):
                logger.warning("Skipping animation index %s: expected a list of files", index)
                return []
            paths = [_index_entry_path(root, f) for f in files if isinstance(f, str) and f.strip()]
        else:
            paths = sorted(p for p in root.glob("*.json") if p.name != INDEX_FILE)

        results = []
        for path in paths:
            try:
                payload = json.loads(path.read_text())
            except (OSError, ValueError) as exc:
                logger.warning("Skipping animation file %s: %s", path, exc)
                continue
            results.append(self.import_json(payload))
        return results

    def get(self, animation_id: str) -> Optional[AnimationDefinition]:
        return self._animations.get(animation_id)

    def require(self, animation_id: str) -> AnimationDefinition:
        animation = self._animations.get(animation_id)
        if animation is None:
            raise UnknownAnimationError(f"Animation {animation_id} not found")
        return animation

    def delete(self, animation_id: str) -> None:
        if self._animations.pop(animation_id, None) is None:
            raise UnknownAnimationError(f"Animation {animation_id} not found")
        if self.selected_id == animation_id:
            self.selected_id = None
        logger.info("Animation deleted: %s", animation_id)

    def list(self) -> List[AnimationDefinition]:
        return sorted(self._animations.values(), key=lambda a: a.name)

    def select(self, animation_id: Optional[str]) -> None:
        if animation_id is not None and animation_id not in self._animations:
            raise UnknownAnimationError(f"Animation {animation_id} not found")
        self.selected_id = animation_id
