"""
Constant-dt Clock

Decouples the model from the display frame rate. Elapsed wall-clock time is
accumulated, and once more than one frame period has accumulated the clock
fires step_emitter with a constant dt. All step methods in the model are
tuned for that constant dt.
"""

import math

from .constants import DT, FRAMES_PER_SECOND
from .observable import Emitter


class ConstantStepClock:
    """
    Fires step_emitter(dt) at most once per accumulate_time call.

    Args:
        frames_per_second: Rate at which steps are emitted
        dt: Constant dt passed to listeners
    """

    def __init__(self, frames_per_second: float = FRAMES_PER_SECOND, dt: float = DT):
        if not (frames_per_second > 0):
            raise ValueError(f"invalid frames_per_second: {frames_per_second}")
        if not (math.isfinite(dt) and dt > 0):
            raise ValueError(f"invalid dt: {dt}")
        self.frames_per_second = frames_per_second
        self.seconds_per_frame = 1.0 / frames_per_second
        self.dt = dt
        self.accumulated_time = 0.0
        self.step_emitter = Emitter()

    def accumulate_time(self, seconds: float) -> bool:
        """
        Add elapsed time.

        Returns:
            True if a step was emitted
        """
        if not (math.isfinite(seconds) and seconds >= 0):
            raise ValueError(f"invalid elapsed time: {seconds}")
        self.accumulated_time += seconds
        if self.accumulated_time > self.seconds_per_frame:
            self.accumulated_time -= self.seconds_per_frame
            self.step_once()
            return True
        return False

    def step_once(self):
        self.step_emitter.emit(self.dt)

    def reset(self):
        self.accumulated_time = 0.0
