"""Tap/swipe classification for flashcards.

SwipeTracker is a small state machine:

    idle --down--> dragging --up(tap|cancel)--> idle
                            --up(swipe)------> animating_exit --reset--> idle

Release is classified on displacement from the pointer-down point: under
TAP_DISTANCE is a tap, a horizontal move beyond SWIPE_THRESHOLD is a swipe,
anything in between springs back.
"""
import math
from dataclasses import dataclass

TAP_DISTANCE = 8.0
SWIPE_THRESHOLD = 65.0
EXIT_TRANSLATE = 800.0
EXIT_ROTATION = 35.0
DRAG_ROTATION_FACTOR = 0.08

IDLE = "idle"
DRAGGING = "dragging"
ANIMATING_EXIT = "animating_exit"

TAP = "tap"
SWIPE_RIGHT = "swipe_right"
SWIPE_LEFT = "swipe_left"
CANCEL = "cancel"


def classify_release(dx: float, dy: float) -> str:
    if math.hypot(dx, dy) < TAP_DISTANCE:
        return TAP
    if abs(dx) > SWIPE_THRESHOLD:
        return SWIPE_RIGHT if dx > 0 else SWIPE_LEFT
    return CANCEL


@dataclass
class CardTransform:
    translate_x: float
    rotation: float
    animated: bool


class SwipeTracker:
    def __init__(self):
        self.reset()

    def reset(self) -> None:
        self.state = IDLE
        self.offset = 0.0
        self.exit_direction = None
        self._start = None

    def down(self, x: float, y: float) -> bool:
        """Begin a drag. Ignored while a card is flying off-screen."""
        if self.state != IDLE:
            return False
        self._start = (x, y)
        self.offset = 0.0
        self.state = DRAGGING
        return True

    def move(self, x: float, y: float) -> None:
        if self.state != DRAGGING:
            return
        self.offset = x - self._start[0]

    def up(self, x: float, y: float) -> str | None:
        """Finish a drag and return TAP, SWIPE_RIGHT, SWIPE_LEFT or CANCEL."""
        if self.state != DRAGGING:
            return None
        dx = x - self._start[0]
        dy = y - self._start[1]
        self._start = None
        result = classify_release(dx, dy)
        if result in (SWIPE_RIGHT, SWIPE_LEFT):
            self.exit(result == SWIPE_RIGHT)
        else:
            self.state = IDLE
            self.offset = 0.0
        return result

    def exit(self, rightward: bool) -> None:
        self.state = ANIMATING_EXIT
        self.exit_direction = "right" if rightward else "left"

    def transform(self) -> CardTransform:
        if self.state == ANIMATING_EXIT:
            sign = 1 if self.exit_direction == "right" else -1
            return CardTransform(sign * EXIT_TRANSLATE, sign * EXIT_ROTATION, True)
        return CardTransform(self.offset, self.offset * DRAG_ROTATION_FACTOR, self.state != DRAGGING)
