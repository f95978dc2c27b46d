"""Data classes for the vocabulary practice domain."""
from dataclasses import asdict, dataclass, field
from typing import Optional

# Part-of-speech tags used by the catalog.
POS_LABELS = {
    "感": ("Interjection", "感叹词"),
    "고": ("Proper noun", "固有名词"),
    "관": ("Determiner", "冠形词"),
    "대": ("Pronoun", "代词"),
    "동": ("Verb", "动词"),
    "명": ("Noun", "名词"),
    "보": ("Auxiliary", "补助用言"),
    "부": ("Adverb", "副词"),
    "불": ("Unclassified", "不可分析"),
    "수": ("Numeral", "数词"),
    "의": ("Dependent noun", "依存名词"),
    "형": ("Adjective", "形容词"),
}
LEVELS = ("A", "B", "C")

QUESTION_TYPES = ("audio_mc", "dictation", "handwriting", "flashcard")
MODES = ("flashcard", "endless")
INPUT_MODES = ("handwriting", "typing")
LANGUAGES = ("zh", "en")


@dataclass(frozen=True)
class VocabItem:
    id: str
    korean: str
    meaning: str
    meaning_en: str
    pos: str
    level: str
    frequency: int = 0
    romanization: Optional[str] = None
    example: Optional[str] = None
    tags: tuple = ()

    def localized_meaning(self, language: str) -> str:
        return self.meaning_en if language == "en" else self.meaning

    @classmethod
    def from_dict(cls, data: dict) -> "VocabItem":
        return cls(
            id=str(data["id"]),
            korean=data["korean"],
            meaning=data["meaning"],
            meaning_en=data.get("meaning_en", data.get("meaningEn", "")),
            pos=data.get("pos", "불"),
            level=data.get("level", "A"),
            frequency=int(data.get("frequency", 0)),
            romanization=data.get("romanization"),
            example=data.get("example"),
            tags=tuple(data.get("tags", ())),
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["tags"] = list(self.tags)
        return data


@dataclass
class Progress:
    id: str
    mastery: int = 0
    last_seen: int = 0  # ms since epoch
    next_review: int = 0  # ms since epoch
    interval: float = 1.0  # days

    @classmethod
    def from_dict(cls, data: dict) -> "Progress":
        return cls(
            id=str(data["id"]),
            mastery=int(data.get("mastery", 0)),
            last_seen=int(data.get("last_seen", 0)),
            next_review=int(data.get("next_review", 0)),
            interval=float(data.get("interval", 1.0)),
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class StreakEntry:
    date: str  # YYYY-MM-DD
    count: int = 0


@dataclass(frozen=True)
class Point:
    x: float
    y: float
    t: int = 0  # ms timestamp


@dataclass
class QuizQuestion:
    id: str
    type: str
    prompt: str
    answer: str
    target: VocabItem
    options: Optional[list] = None
    is_reversed: bool = False


@dataclass
class Session:
    id: str
    mode: str
    questions: list = field(default_factory=list)
    index: int = 0

    @property
    def current(self) -> Optional[QuizQuestion]:
        if 0 <= self.index < len(self.questions):
            return self.questions[self.index]
        return None


@dataclass
class Settings:
    input_mode: str = "handwriting"
    language: str = "zh"
