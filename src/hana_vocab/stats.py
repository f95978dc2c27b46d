"""Mastery statistics and homonym grouping."""
from hana_vocab.models import Progress, VocabItem


def merge_vocab(master: list[VocabItem], custom: list[VocabItem]) -> list[VocabItem]:
    return [*master, *custom]


def build_homonym_map(vocab: list[VocabItem]) -> dict[str, list[VocabItem]]:
    """Group items by surface form, preserving catalog order within each group."""
    groups: dict[str, list[VocabItem]] = {}
    for item in vocab:
        groups.setdefault(item.korean, []).append(item)
    return groups


def homonym_index(item: VocabItem, homonym_map: dict[str, list[VocabItem]]) -> int | None:
    """1-based position of item within its homonym group, or None if it has no homonyms."""
    group = homonym_map.get(item.korean, [])
    if len(group) < 2:
        return None
    for i, other in enumerate(group, 1):
        if other.id == item.id:
            return i
    return None


def display_form(item: VocabItem, homonym_map: dict[str, list[VocabItem]]) -> str:
    index = homonym_index(item, homonym_map)
    return f"{item.korean}{index}" if index else item.korean


def get_mastery_stats(vocab: list[VocabItem], progress: dict[str, Progress]) -> dict:
    total = len(vocab)
    values = list(progress.values())
    mastered = sum(1 for p in values if p.mastery >= 5)
    proficient = sum(1 for p in values if 3 <= p.mastery < 5)
    learning = sum(1 for p in values if 0 < p.mastery < 3)
    seen = sum(1 for p in values if p.mastery > 0)
    return {
        "total": total,
        "mastered": mastered,
        "proficient": proficient,
        "learning": learning,
        "unseen": total - seen,
        "mastered_pct": round(mastered / (total or 1) * 100),
    }
