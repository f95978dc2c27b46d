"""Vocabulary catalog: seeded master list plus learner-added words."""
import json
import uuid
from pathlib import Path

from hana_vocab.db import CUSTOM_VOCAB_KEY, MASTER_VOCAB_KEY, load, save
from hana_vocab.models import LEVELS, POS_LABELS, Progress, VocabItem
from hana_vocab.stats import merge_vocab

CONTENT_DIR = Path(__file__).parent / "content"

SORT_KEYS = ("frequency", "mastery")


def load_seed_vocab() -> list[VocabItem]:
    """Read the bundled starter vocabulary from seed_vocab.json."""
    data = json.loads((CONTENT_DIR / "seed_vocab.json").read_text(encoding="utf-8"))
    return [VocabItem.from_dict(entry) for entry in data["vocab"]]


def _load_items(db_path: str, key: str) -> list[VocabItem]:
    raw = load(db_path, key)
    if not isinstance(raw, list):
        return []
    return [VocabItem.from_dict(entry) for entry in raw]


def get_master_vocab(db_path: str) -> list[VocabItem]:
    """Stored master list, falling back to the seed vocabulary when none is saved."""
    return _load_items(db_path, MASTER_VOCAB_KEY) or load_seed_vocab()


def save_master_vocab(db_path: str, items: list[VocabItem]) -> None:
    save(db_path, MASTER_VOCAB_KEY, [item.to_dict() for item in items])


def get_custom_vocab(db_path: str) -> list[VocabItem]:
    return _load_items(db_path, CUSTOM_VOCAB_KEY)


def add_custom_word(
    db_path: str,
    korean: str,
    meaning: str,
    meaning_en: str,
    pos: str = "명",
    level: str = "A",
    romanization: str | None = None,
) -> VocabItem:
    if not korean.strip():
        raise ValueError("Korean form is required")
    if pos not in POS_LABELS:
        raise ValueError(f"Unknown part of speech: {pos}")
    if level not in LEVELS:
        raise ValueError(f"Unknown level: {level}")
    item = VocabItem(
        id=f"custom_{uuid.uuid4().hex[:12]}",
        korean=korean.strip(),
        meaning=meaning.strip(),
        meaning_en=meaning_en.strip(),
        pos=pos,
        level=level,
        frequency=9999,
        romanization=romanization or None,
        tags=("custom",),
    )
    vocab = get_custom_vocab(db_path)
    vocab.append(item)
    save(db_path, CUSTOM_VOCAB_KEY, [v.to_dict() for v in vocab])
    return item


def get_all_vocab(db_path: str) -> list[VocabItem]:
    return merge_vocab(get_master_vocab(db_path), get_custom_vocab(db_path))


def filter_vocab(
    items: list[VocabItem],
    query: str = "",
    pos: str = "all",
    level: str = "all",
    sort_key: str = "frequency",
    order: str = "asc",
    progress: dict[str, Progress] | None = None,
) -> list[VocabItem]:
    """Search, filter and sort the library listing."""
    if sort_key not in SORT_KEYS:
        raise ValueError(f"Unknown sort key: {sort_key}")
    progress = progress or {}
    result = list(items)
    if query:
        q = query.lower()
        result = [
            v for v in result
            if q in v.korean or q in v.meaning.lower() or q in v.meaning_en.lower()
        ]
    if pos != "all":
        result = [v for v in result if v.pos == pos]
    if level != "all":
        result = [v for v in result if v.level == level]

    if sort_key == "frequency":
        key = lambda v: v.frequency
    else:
        key = lambda v: progress[v.id].mastery if v.id in progress else 0
    return sorted(result, key=key, reverse=(order == "desc"))
