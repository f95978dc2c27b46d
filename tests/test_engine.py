# tests/test_engine.py
"""Tests for the quiz session state machine."""
import asyncio

from hana_vocab.engine import QuizEngine, Timings
from hana_vocab.gestures import ANIMATING_EXIT, CANCEL, SWIPE_LEFT, SWIPE_RIGHT, TAP
from hana_vocab.models import QuizQuestion, Session, Settings

from conftest import make_item

ZERO = Timings(flashcard_exit=0, correct_advance=0, wrong_reveal=0)


class FakeSpeaker:
    def __init__(self):
        self.spoken = []

    async def speak(self, text):
        self.spoken.append(text)


class FakeRecognizer:
    def __init__(self, text="", gate=None):
        self.text = text
        self.gate = gate
        self.calls = 0
        self.images = []

    async def recognize(self, image_png):
        self.calls += 1
        self.images.append(image_png)
        if self.gate is not None:
            await self.gate.wait()
        return self.text

    async def close(self):
        pass


def flashcard(n, reversed_=False):
    item = make_item(n, korean=f"단어{n}", meaning=f"词{n}")
    prompt, answer = (item.meaning, item.korean) if reversed_ else (item.korean, item.meaning)
    return QuizQuestion(id=f"fc{n}", type="flashcard", prompt=prompt, answer=answer,
                        target=item, is_reversed=reversed_)


def multiple_choice(n):
    item = make_item(n)
    options = [item.meaning, "词98", "词99", "词97"]
    return QuizQuestion(id=f"mc{n}", type="audio_mc", prompt="", answer=item.korean,
                        target=item, options=options)


def dictation(n, korean=None):
    item = make_item(n, korean=korean)
    return QuizQuestion(id=f"d{n}", type="dictation", prompt=item.meaning, answer=item.korean, target=item)


def handwriting(n, korean=None):
    item = make_item(n, korean=korean, romanization="rom")
    return QuizQuestion(id=f"h{n}", type="handwriting", prompt=item.meaning, answer=item.korean, target=item)


def make_engine(questions, mode, settings=None, recognizer=None, timings=ZERO, speaker=None):
    outcomes = []
    completed = []
    engine = QuizEngine(
        Session(id="s1", mode=mode, questions=questions),
        settings or Settings(),
        on_outcome=lambda item_id, delta: outcomes.append((item_id, delta)),
        speaker=speaker or FakeSpeaker(),
        recognizer=recognizer or FakeRecognizer(),
        on_complete=lambda: completed.append(True),
        timings=timings,
    )
    return engine, outcomes, completed


def draw(engine):
    engine.pad.start_stroke(10, 10, t=0)
    engine.pad.extend_stroke(60, 80, t=5)
    engine.pad.end_stroke()


async def swipe(engine, dx, dy=0):
    engine.pointer_down(100, 100)
    engine.pointer_move(100 + dx, 100 + dy)
    return await engine.pointer_up(100 + dx, 100 + dy)


# --- Flashcard flow ---


def test_swipe_right_records_known_and_advances():
    async def scenario():
        engine, outcomes, _ = make_engine([flashcard(1), flashcard(2)], "flashcard")
        await engine.start()
        assert await swipe(engine, 80, 5) == SWIPE_RIGHT
        assert outcomes == [("w001", 1)]
        assert engine.current_question.id == "fc2"
    asyncio.run(scenario())


def test_swipe_left_records_unknown():
    async def scenario():
        engine, outcomes, _ = make_engine([flashcard(1), flashcard(2)], "flashcard")
        await engine.start()
        assert await swipe(engine, -90) == SWIPE_LEFT
        assert outcomes == [("w001", -1)]
    asyncio.run(scenario())


def test_tap_flips_without_recording():
    async def scenario():
        engine, outcomes, _ = make_engine([flashcard(1)], "flashcard")
        await engine.start()
        assert await swipe(engine, 3, 4) == TAP
        assert engine.is_flipped
        assert outcomes == []
        await swipe(engine, 0, 0)
        assert not engine.is_flipped
    asyncio.run(scenario())


def test_short_drag_springs_back():
    async def scenario():
        engine, outcomes, _ = make_engine([flashcard(1)], "flashcard")
        await engine.start()
        engine.pointer_down(0, 0)
        engine.pointer_move(40, 0)
        assert engine.swipe.offset == 40
        assert await engine.pointer_up(40, 0) == CANCEL
        assert engine.swipe.offset == 0
        assert outcomes == []
        assert not engine.is_flipped
    asyncio.run(scenario())


def test_forward_card_is_spoken_on_present():
    async def scenario():
        engine, _, _ = make_engine([flashcard(1), flashcard(2, reversed_=True)], "flashcard")
        await engine.start()
        await engine.wait_for_speech()
        assert engine.speaker.spoken == ["단어1"]
        await swipe(engine, 100)
        # reversed card prompts with the meaning, so nothing new is spoken
        await engine.wait_for_speech()
        assert engine.speaker.spoken == ["단어1"]
    asyncio.run(scenario())


def test_flipping_reversed_card_speaks_answer():
    async def scenario():
        engine, _, _ = make_engine([flashcard(1, reversed_=True)], "flashcard")
        await engine.start()
        await swipe(engine, 0)
        await engine.wait_for_speech()
        assert engine.speaker.spoken == ["단어1"]
        await swipe(engine, 0)  # flipping back is silent
        await engine.wait_for_speech()
        assert engine.speaker.spoken == ["단어1"]
    asyncio.run(scenario())


def test_advancing_resets_flip_and_offset():
    async def scenario():
        engine, _, _ = make_engine([flashcard(1), flashcard(2)], "flashcard")
        await engine.start()
        await swipe(engine, 0)
        assert engine.is_flipped
        await swipe(engine, 100)
        assert not engine.is_flipped
        assert engine.swipe.offset == 0
        assert engine.swipe.exit_direction is None
    asyncio.run(scenario())


def test_last_swipe_completes_session():
    async def scenario():
        engine, outcomes, completed = make_engine([flashcard(1)], "flashcard")
        await engine.start()
        await swipe(engine, 100)
        assert completed == [True]
        assert engine.completed
        assert engine.current_question is None
        assert outcomes == [("w001", 1)]
    asyncio.run(scenario())


def test_card_exit_animation_blocks_new_drags():
    async def scenario():
        timings = Timings(flashcard_exit=0.05, correct_advance=0, wrong_reveal=0)
        engine, outcomes, _ = make_engine([flashcard(1), flashcard(2)], "flashcard", timings=timings)
        await engine.start()
        task = asyncio.create_task(swipe(engine, 100))
        await asyncio.sleep(0)
        assert engine.swipe.state == ANIMATING_EXIT
        assert engine.pointer_down(0, 0) is False
        await task
        assert outcomes == [("w001", 1)]
        assert engine.current_question.id == "fc2"
    asyncio.run(scenario())


# --- Endless flow ---


def test_multiple_choice_correct_advances():
    async def scenario():
        engine, outcomes, _ = make_engine([multiple_choice(1), multiple_choice(2)], "endless")
        await engine.start()
        await engine.wait_for_speech()
        assert engine.speaker.spoken == ["단어1"]
        assert await engine.select_option("词1") is True
        assert outcomes == [("w001", 1)]
        assert engine.current_question.id == "mc2"
        await engine.wait_for_speech()
        assert engine.speaker.spoken == ["단어1", "단어2"]
    asyncio.run(scenario())


def test_multiple_choice_wrong_shows_correction():
    async def scenario():
        engine, outcomes, _ = make_engine([multiple_choice(1), multiple_choice(2)], "endless")
        await engine.start()
        assert await engine.select_option("词99") is False
        assert outcomes == [("w001", -1)]
        assert engine.answer_state == "wrong"
        assert engine.show_correction
        assert engine.current_question.id == "mc1"
        correction = engine.correction()
        assert correction.korean == "단어1"
        assert correction.meaning == "词1"
        assert correction.pos_label == "名词"
        assert correction.recognized is None
        await engine.continue_()
        assert engine.current_question.id == "mc2"
        assert not engine.show_correction
        assert engine.answer_state == "idle"
    asyncio.run(scenario())


def test_multiple_choice_uses_display_language():
    async def scenario():
        engine, outcomes, _ = make_engine([multiple_choice(1)], "endless", settings=Settings(language="en"))
        await engine.start()
        assert await engine.select_option("word 1") is True
        assert outcomes == [("w001", 1)]
    asyncio.run(scenario())


def test_wrong_answer_holds_before_correction():
    async def scenario():
        timings = Timings(flashcard_exit=0, correct_advance=0, wrong_reveal=0.05)
        engine, _, _ = make_engine([multiple_choice(1)], "endless", timings=timings)
        await engine.start()
        task = asyncio.create_task(engine.select_option("词99"))
        await asyncio.sleep(0)
        assert engine.answer_state == "wrong"
        assert not engine.show_correction
        await task
        assert engine.show_correction
    asyncio.run(scenario())


def test_second_answer_is_ignored():
    async def scenario():
        engine, outcomes, _ = make_engine([multiple_choice(1), multiple_choice(2)], "endless")
        await engine.start()
        assert await engine.select_option("词99") is False
        assert await engine.select_option("词1") is None
        assert outcomes == [("w001", -1)]
    asyncio.run(scenario())


def test_handwriting_resubmit_after_wrong_answer_is_noop():
    async def scenario():
        timings = Timings(flashcard_exit=0, correct_advance=0, wrong_reveal=0.05)
        recognizer = FakeRecognizer("틀림")
        engine, outcomes, _ = make_engine([handwriting(1, "사랑")], "endless",
                                          recognizer=recognizer, timings=timings)
        await engine.start()
        draw(engine)
        first = asyncio.create_task(engine.submit_handwriting())
        await asyncio.sleep(0)
        assert engine.answer_state == "wrong"
        assert not engine.can_submit_handwriting
        assert await engine.submit_handwriting() is None
        assert await first is False
        assert recognizer.calls == 1
        assert engine.recognized_text == "틀림"
        assert outcomes == [("w001", -1)]
    asyncio.run(scenario())


def test_dictation_resubmit_after_answer_is_noop():
    async def scenario():
        engine, outcomes, _ = make_engine([dictation(1, "물"), dictation(2)], "endless")
        await engine.start()
        assert await engine.submit_dictation("불") is False
        assert await engine.submit_dictation("물") is None
        assert outcomes == [("w001", -1)]
    asyncio.run(scenario())


def test_dictation_scenarios():
    async def scenario():
        questions = [dictation(1, "사랑"), dictation(2, "사랑"), dictation(3, "사랑")]
        engine, outcomes, _ = make_engine(questions, "endless")
        await engine.start()
        assert await engine.submit_dictation("사랑") is True
        assert await engine.submit_dictation("사랑 ") is True
        assert await engine.submit_dictation("사랑해") is False
        assert outcomes == [("w001", 1), ("w002", 1), ("w003", -1)]
    asyncio.run(scenario())


def test_dictation_uses_stored_input():
    async def scenario():
        engine, outcomes, _ = make_engine([dictation(1, "물"), dictation(2)], "endless")
        await engine.start()
        engine.user_input = "물"
        assert await engine.submit_dictation() is True
        assert engine.user_input == ""
    asyncio.run(scenario())


def test_handwriting_requires_strokes():
    async def scenario():
        recognizer = FakeRecognizer("사랑")
        engine, outcomes, _ = make_engine([handwriting(1, "사랑")], "endless", recognizer=recognizer)
        await engine.start()
        assert not engine.can_submit_handwriting
        assert await engine.submit_handwriting() is None
        assert recognizer.calls == 0
        assert outcomes == []
    asyncio.run(scenario())


def test_handwriting_correct_after_whitespace_normalization():
    async def scenario():
        recognizer = FakeRecognizer(" 사 랑 ")
        engine, outcomes, completed = make_engine([handwriting(1, "사랑")], "endless", recognizer=recognizer)
        await engine.start()
        draw(engine)
        assert await engine.submit_handwriting() is True
        assert recognizer.images[0][:8] == b"\x89PNG\r\n\x1a\n"
        assert outcomes == [("w001", 1)]
        assert completed == [True]
    asyncio.run(scenario())


def test_handwriting_wrong_shows_recognized_text():
    async def scenario():
        recognizer = FakeRecognizer("사람")
        engine, outcomes, _ = make_engine([handwriting(1, "사랑"), handwriting(2)], "endless", recognizer=recognizer)
        await engine.start()
        draw(engine)
        assert await engine.submit_handwriting() is False
        assert outcomes == [("w001", -1)]
        correction = engine.correction()
        assert correction.recognized == "사람"
        assert correction.romanization == "rom"
        await engine.continue_()
        assert not engine.pad.has_strokes
        assert engine.recognized_text is None
    asyncio.run(scenario())


def test_handwriting_empty_recognition_is_wrong():
    async def scenario():
        engine, outcomes, _ = make_engine([handwriting(1, "사랑")], "endless", recognizer=FakeRecognizer(""))
        await engine.start()
        draw(engine)
        assert await engine.submit_handwriting() is False
        assert engine.correction().recognized == ""
        assert outcomes == [("w001", -1)]
    asyncio.run(scenario())


def test_second_submit_while_analyzing_is_noop():
    async def scenario():
        gate = asyncio.Event()
        recognizer = FakeRecognizer("사랑", gate)
        engine, outcomes, _ = make_engine([handwriting(1, "사랑")], "endless", recognizer=recognizer)
        await engine.start()
        draw(engine)
        first = asyncio.create_task(engine.submit_handwriting())
        await asyncio.sleep(0)
        assert engine.is_analyzing
        assert not engine.can_submit_handwriting
        assert await engine.submit_handwriting() is None
        gate.set()
        assert await first is True
        assert recognizer.calls == 1
        assert outcomes == [("w001", 1)]
    asyncio.run(scenario())


def test_clear_pad_drops_strokes_and_result():
    engine, _, _ = make_engine([handwriting(1)], "endless")
    draw(engine)
    engine.recognized_text = "사"
    engine.clear_pad()
    assert not engine.pad.has_strokes
    assert engine.recognized_text is None


def test_transition_resets_typed_input():
    async def scenario():
        engine, _, _ = make_engine([dictation(1, "물"), dictation(2)], "endless")
        await engine.start()
        engine.user_input = "불"
        await engine.submit_dictation()
        assert engine.user_input == "불"
        await engine.continue_()
        assert engine.user_input == ""
        assert engine.answer_state == "idle"
    asyncio.run(scenario())


def test_gestures_ignored_in_endless_mode():
    engine, _, _ = make_engine([dictation(1)], "endless")
    assert engine.pointer_down(0, 0) is False


def test_wrong_question_kind_is_refused():
    async def scenario():
        engine, outcomes, _ = make_engine([dictation(1)], "endless")
        await engine.start()
        assert await engine.select_option("词1") is None
        assert await engine.submit_handwriting() is None
        assert outcomes == []
    asyncio.run(scenario())


def test_position_and_replay():
    async def scenario():
        engine, _, _ = make_engine([dictation(1), dictation(2)], "endless")
        await engine.start()
        assert engine.position == (1, 2)
        await engine.replay_audio()
        await engine.wait_for_speech()
        assert engine.speaker.spoken == ["단어1"]
    asyncio.run(scenario())


# --- Background speech ---


class GatedSpeaker:
    """Speaker whose playback lasts until the test opens the gate."""

    def __init__(self):
        self.gate = asyncio.Event()
        self.started = []
        self.finished = []

    async def speak(self, text):
        self.started.append(text)
        await self.gate.wait()
        self.finished.append(text)


def test_tap_does_not_wait_for_speech():
    async def scenario():
        speaker = GatedSpeaker()
        engine, _, _ = make_engine([flashcard(1, reversed_=True)], "flashcard", speaker=speaker)
        await engine.start()
        assert await asyncio.wait_for(swipe(engine, 0), timeout=1) == TAP
        assert engine.is_flipped
        await asyncio.sleep(0)
        assert speaker.started == ["단어1"]
        assert speaker.finished == []
        speaker.gate.set()
        await engine.wait_for_speech()
        assert speaker.finished == ["단어1"]
    asyncio.run(scenario())


def test_correct_answer_advances_while_next_audio_plays():
    async def scenario():
        speaker = GatedSpeaker()
        engine, outcomes, _ = make_engine([multiple_choice(1), multiple_choice(2)], "endless", speaker=speaker)
        await engine.start()
        assert await asyncio.wait_for(engine.select_option("词1"), timeout=1) is True
        assert engine.current_question.id == "mc2"
        await asyncio.sleep(0)
        assert speaker.started == ["단어1", "단어2"]
        assert speaker.finished == []
        assert outcomes == [("w001", 1)]
        speaker.gate.set()
        await engine.wait_for_speech()
    asyncio.run(scenario())


def test_close_cancels_pending_speech():
    async def scenario():
        speaker = GatedSpeaker()
        engine, _, _ = make_engine([multiple_choice(1)], "endless", speaker=speaker)
        await engine.start()
        await asyncio.sleep(0)
        assert speaker.started == ["단어1"]
        engine.close()
        speaker.gate.set()
        await engine.wait_for_speech()
        assert speaker.finished == []
    asyncio.run(scenario())


class BrokenSpeaker:
    async def speak(self, text):
        raise RuntimeError("no audio device")


def test_speech_failure_does_not_break_session():
    async def scenario():
        engine, outcomes, _ = make_engine([multiple_choice(1)], "endless", speaker=BrokenSpeaker())
        await engine.start()
        await engine.wait_for_speech()
        assert await engine.select_option("词1") is True
        assert outcomes == [("w001", 1)]
    asyncio.run(scenario())


# --- Cancellation and malformed sessions ---


def test_close_ignores_late_recognition():
    async def scenario():
        gate = asyncio.Event()
        recognizer = FakeRecognizer("사랑", gate)
        engine, outcomes, completed = make_engine([handwriting(1, "사랑")], "endless", recognizer=recognizer)
        await engine.start()
        draw(engine)
        task = asyncio.create_task(engine.submit_handwriting())
        await asyncio.sleep(0)
        engine.close()
        gate.set()
        assert await task is None
        assert outcomes == []
        assert completed == []
        assert engine.recognized_text is None
        assert engine.current_question is None
    asyncio.run(scenario())


def test_close_during_wrong_delay_skips_correction():
    async def scenario():
        timings = Timings(flashcard_exit=0, correct_advance=0, wrong_reveal=0.05)
        engine, outcomes, _ = make_engine([multiple_choice(1)], "endless", timings=timings)
        await engine.start()
        task = asyncio.create_task(engine.select_option("词99"))
        await asyncio.sleep(0)
        engine.close()
        await task
        assert outcomes == [("w001", -1)]
        assert not engine.show_correction
    asyncio.run(scenario())


def test_close_during_flashcard_exit_does_not_advance():
    async def scenario():
        timings = Timings(flashcard_exit=0.05, correct_advance=0, wrong_reveal=0)
        engine, _, completed = make_engine([flashcard(1), flashcard(2)], "flashcard", timings=timings)
        await engine.start()
        task = asyncio.create_task(swipe(engine, 100))
        await asyncio.sleep(0)
        engine.close()
        await task
        assert engine.session.index == 0
        assert completed == []
    asyncio.run(scenario())


def test_empty_session_ends_instead_of_raising():
    async def scenario():
        engine, outcomes, completed = make_engine([], "endless")
        await engine.start()
        assert completed == [True]
        await engine.answer(True)
        assert outcomes == []
    asyncio.run(scenario())


def test_actions_after_completion_are_ignored():
    async def scenario():
        engine, outcomes, completed = make_engine([dictation(1, "물")], "endless")
        await engine.start()
        await engine.submit_dictation("물")
        assert completed == [True]
        assert await engine.submit_dictation("물") is None
        await engine.next_question()
        assert outcomes == [("w001", 1)]
        assert completed == [True]
    asyncio.run(scenario())
