"""Session state machine: drives one question at a time through a quiz session.

Flashcards are answered with gestures (tap to flip, swipe right for known,
left for unknown). Endless questions are answered by choosing an option,
typing, or drawing. Every answer records an outcome; a miss in endless mode
holds on the wrong state and then shows a correction card.

All timed transitions are awaited coroutines. Each transition bumps an epoch
counter so that work suspended across a transition (a recognizer call, a
delay) notices it is stale and drops its result. Speech runs as background
tasks that answers and gestures never wait on; closing the session cancels
them.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from hana_vocab.gestures import ANIMATING_EXIT, SWIPE_LEFT, SWIPE_RIGHT, TAP, SwipeTracker
from hana_vocab.models import POS_LABELS, QuizQuestion, Session, Settings
from hana_vocab.pad import HandwritingPad
from hana_vocab.recognizer import NullRecognizer, Recognizer
from hana_vocab.speech import SilentSpeaker, Speaker
from hana_vocab.verifier import check_choice, check_dictation, check_handwriting

logger = logging.getLogger(__name__)


@dataclass
class Timings:
    """Delays in seconds between an answer and the next visible state."""

    flashcard_exit: float = 0.3
    correct_advance: float = 0.6
    wrong_reveal: float = 0.45


@dataclass
class Correction:
    korean: str
    pos: str
    pos_label: str
    romanization: str
    meaning: str
    recognized: Optional[str]


class QuizEngine:
    def __init__(
        self,
        session: Session,
        settings: Settings,
        on_outcome: Callable[[str, int], object],
        speaker: Optional[Speaker] = None,
        recognizer: Optional[Recognizer] = None,
        on_complete: Optional[Callable[[], None]] = None,
        timings: Optional[Timings] = None,
        pad: Optional[HandwritingPad] = None,
    ):
        self.session = session
        self.settings = settings
        self.on_outcome = on_outcome
        self.speaker = speaker or SilentSpeaker()
        self.recognizer = recognizer or NullRecognizer()
        self.on_complete = on_complete
        self.timings = timings or Timings()
        self.pad = pad or HandwritingPad()
        self.swipe = SwipeTracker()
        self.closed = False
        self.completed = False
        self._epoch = 0
        self._speech_tasks: set[asyncio.Task] = set()
        self._reset_transient()

    def _reset_transient(self) -> None:
        self.answer_state = "idle"
        self.show_correction = False
        self.user_input = ""
        self.is_flipped = False
        self.is_analyzing = False
        self.recognized_text: Optional[str] = None
        self.pad.clear()
        self.swipe.reset()

    # -- session lifecycle -------------------------------------------------

    @property
    def current_question(self) -> Optional[QuizQuestion]:
        if self.closed or self.completed:
            return None
        return self.session.current

    @property
    def position(self) -> tuple[int, int]:
        return self.session.index + 1, len(self.session.questions)

    def _is_stale(self, epoch: int) -> bool:
        return self.closed or self.completed or epoch != self._epoch

    def _require_question(self) -> Optional[QuizQuestion]:
        """Current question; ends the session if the cursor points nowhere."""
        if self.closed or self.completed:
            return None
        question = self.session.current
        if question is None:
            logger.warning(
                "Session %s has no question at index %d; ending it",
                self.session.id, self.session.index,
            )
            self._finish()
        return question

    def _finish(self) -> None:
        self.completed = True
        self._epoch += 1
        logger.info("Session %s complete", self.session.id)
        if self.on_complete:
            self.on_complete()

    async def start(self) -> None:
        await self.present()

    async def present(self) -> None:
        question = self._require_question()
        if question is None:
            return
        if question.type == "audio_mc":
            self._speak(question.target.korean)
        elif question.type == "flashcard" and not question.is_reversed:
            self._speak(question.prompt)

    async def next_question(self) -> None:
        if self.closed or self.completed:
            return
        self._epoch += 1
        self._reset_transient()
        if self.session.index < len(self.session.questions) - 1:
            self.session.index += 1
            await self.present()
        else:
            self._finish()

    def close(self) -> None:
        """End the session immediately; pending results are ignored."""
        if self.closed:
            return
        self.closed = True
        self._epoch += 1
        self._cancel_speech()
        logger.info("Session %s closed at question %d", self.session.id, self.session.index + 1)

    def _speak(self, text: str) -> None:
        """Start speaking in the background; the caller never waits on audio."""
        task = asyncio.create_task(self._say(text))
        self._speech_tasks.add(task)
        task.add_done_callback(self._speech_tasks.discard)

    async def _say(self, text: str) -> None:
        try:
            await self.speaker.speak(text)
        except Exception as e:
            logger.warning("Speech failed for %r: %s", text, e)

    def _cancel_speech(self) -> None:
        for task in list(self._speech_tasks):
            task.cancel()

    async def wait_for_speech(self) -> None:
        """Wait until all audio started so far has finished playing."""
        if self._speech_tasks:
            await asyncio.gather(*self._speech_tasks, return_exceptions=True)

    async def replay_audio(self) -> None:
        question = self.current_question
        if question is not None:
            self._speak(question.target.korean)

    # -- answering ---------------------------------------------------------

    def _record(self, question: QuizQuestion, is_correct: bool) -> None:
        self.on_outcome(question.target.id, 1 if is_correct else -1)

    async def answer(self, is_correct: bool) -> None:
        question = self._require_question()
        if question is None:
            return
        epoch = self._epoch

        if self.session.mode == "endless":
            if self.answer_state != "idle":
                return
            self.answer_state = "correct" if is_correct else "wrong"
            self._record(question, is_correct)
            if is_correct:
                await asyncio.sleep(self.timings.correct_advance)
                if not self._is_stale(epoch):
                    await self.next_question()
            else:
                # Let the wrong state show before the correction card.
                await asyncio.sleep(self.timings.wrong_reveal)
                if not self._is_stale(epoch):
                    self.show_correction = True
            return

        if self.swipe.state != ANIMATING_EXIT:
            self.swipe.exit(is_correct)
        self._record(question, is_correct)
        await asyncio.sleep(self.timings.flashcard_exit)
        if not self._is_stale(epoch):
            await self.next_question()

    async def select_option(self, option: str) -> Optional[bool]:
        question = self.current_question
        if question is None or question.type != "audio_mc" or self.answer_state != "idle":
            return None
        is_correct = check_choice(question, option, self.settings.language)
        await self.answer(is_correct)
        return is_correct

    async def submit_dictation(self, text: Optional[str] = None) -> Optional[bool]:
        question = self.current_question
        if question is None or question.type != "dictation" or self.answer_state != "idle":
            return None
        if text is not None:
            self.user_input = text
        is_correct = check_dictation(question, self.user_input)
        await self.answer(is_correct)
        return is_correct

    @property
    def can_submit_handwriting(self) -> bool:
        return self.pad.has_strokes and not self.is_analyzing and self.answer_state == "idle"

    async def submit_handwriting(self) -> Optional[bool]:
        """Send the pad to the recognizer and grade the result.

        Returns None when the submission is refused (nothing drawn, already
        analyzing, already answered) or its result arrived after the question
        moved on.
        """
        question = self.current_question
        if question is None or question.type != "handwriting" or not self.can_submit_handwriting:
            return None
        epoch = self._epoch
        self.is_analyzing = True
        self.recognized_text = None
        image = self.pad.to_png()
        try:
            recognized = await self.recognizer.recognize(image)
        finally:
            if not self._is_stale(epoch):
                self.is_analyzing = False
        if self._is_stale(epoch):
            logger.debug("Dropping recognition result for a finished question")
            return None
        self.recognized_text = recognized
        is_correct = check_handwriting(question, recognized)
        await self.answer(is_correct)
        return is_correct

    def clear_pad(self) -> None:
        self.pad.clear()
        self.recognized_text = None

    def correction(self) -> Optional[Correction]:
        question = self.current_question
        if question is None or not self.show_correction:
            return None
        target = question.target
        en_label, zh_label = POS_LABELS.get(target.pos, (target.pos, target.pos))
        return Correction(
            korean=target.korean,
            pos=target.pos,
            pos_label=en_label if self.settings.language == "en" else zh_label,
            romanization=target.romanization or "",
            meaning=target.localized_meaning(self.settings.language),
            recognized=self.recognized_text,
        )

    async def continue_(self) -> None:
        if self.show_correction:
            await self.next_question()

    # -- flashcard gestures ------------------------------------------------

    def pointer_down(self, x: float, y: float) -> bool:
        question = self.current_question
        if question is None or self.session.mode != "flashcard":
            return False
        return self.swipe.down(x, y)

    def pointer_move(self, x: float, y: float) -> None:
        self.swipe.move(x, y)

    async def pointer_up(self, x: float, y: float) -> Optional[str]:
        result = self.swipe.up(x, y)
        if result == TAP:
            await self.flip()
        elif result in (SWIPE_RIGHT, SWIPE_LEFT):
            await self.answer(result == SWIPE_RIGHT)
        return result

    async def flip(self) -> None:
        question = self.current_question
        if question is None or question.type != "flashcard":
            return
        self.is_flipped = not self.is_flipped
        if self.is_flipped and question.is_reversed:
            self._speak(question.answer)
