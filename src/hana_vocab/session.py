"""Quiz session generation for flashcard and endless modes."""
import logging
import random
import uuid

from hana_vocab.models import MODES, QuizQuestion, Session, Settings, VocabItem

logger = logging.getLogger(__name__)

POOL_SIZES = {"flashcard": 20, "endless": 15}
OPTION_COUNT = 4


def build_options(
    target: VocabItem, vocab: list[VocabItem], language: str, rng: random.Random
) -> list[str] | None:
    """Correct meaning plus three distractors from other items, shuffled.

    Returns None when the vocabulary has too few other items to fill the options.
    """
    others = [v for v in vocab if v.id != target.id]
    if len(others) < OPTION_COUNT - 1:
        return None
    options = [v.localized_meaning(language) for v in rng.sample(others, OPTION_COUNT - 1)]
    options.append(target.localized_meaning(language))
    rng.shuffle(options)
    return options


def _flashcard_question(item: VocabItem, index: int, settings: Settings, rng: random.Random) -> QuizQuestion:
    meaning = item.localized_meaning(settings.language)
    reversed_ = rng.random() < 0.5
    return QuizQuestion(
        id=f"fc_{item.id}_{index}_{uuid.uuid4().hex[:6]}",
        type="flashcard",
        prompt=meaning if reversed_ else item.korean,
        answer=item.korean if reversed_ else meaning,
        target=item,
        is_reversed=reversed_,
    )


def _endless_question(
    item: VocabItem, index: int, vocab: list[VocabItem], settings: Settings, rng: random.Random
) -> QuizQuestion:
    text_kind = "handwriting" if settings.input_mode == "handwriting" else "dictation"
    kind = rng.choice(["audio_mc", text_kind])
    options = None
    if kind == "audio_mc":
        options = build_options(item, vocab, settings.language, rng)
        if options is None:
            kind = text_kind
    return QuizQuestion(
        id=f"q_{item.id}_{index}_{uuid.uuid4().hex[:6]}",
        type=kind,
        prompt="" if kind == "audio_mc" else item.localized_meaning(settings.language),
        answer=item.korean,
        target=item,
        options=options,
    )


def start_session(
    mode: str,
    vocab: list[VocabItem],
    settings: Settings,
    rng: random.Random | None = None,
) -> Session:
    """Sample a pool from the merged vocabulary and build the session's questions."""
    if mode not in MODES:
        raise ValueError(f"Unknown quiz mode: {mode}")
    rng = rng or random.Random()
    pool = rng.sample(vocab, min(POOL_SIZES[mode], len(vocab)))

    questions = []
    for index, item in enumerate(pool):
        if mode == "flashcard":
            questions.append(_flashcard_question(item, index, settings, rng))
        else:
            questions.append(_endless_question(item, index, vocab, settings, rng))

    session = Session(id=uuid.uuid4().hex, mode=mode, questions=questions)
    logger.info("Started %s session %s with %d questions", mode, session.id, len(questions))
    return session
