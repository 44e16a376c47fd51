"""Routing of the audio output to a board pin."""

from __future__ import annotations

from mbsim.pins import SPEAKER_PIN, Board, Pin, PinMode


class AudioRouter:
    """Keeps track of which pin, if any, carries the audio output.

    ``output_pin`` is the number of the pin the simulated audio hardware
    drives, or -1 when audio goes to no pin.
    """

    def __init__(self, board: Board) -> None:
        self.board = board
        self.routed: Pin | None = None
        self.output_pin = -1
        board.on_audio_release(self.free)

    def select(self, pin: Pin | None, mode: PinMode = PinMode.AUDIO_PLAY) -> None:
        """Route audio to ``pin`` (or to no pin for None), acquiring it in ``mode``."""
        selected: Pin | None
        if pin is None:
            selected = None
        elif pin is self.board.pins.get(SPEAKER_PIN):
            raise ValueError("pin_speaker not allowed")
        elif not isinstance(pin, Pin):
            raise TypeError("expecting a pin")
        else:
            selected = pin

        if selected is not self.routed:
            if self.routed is not None:
                self.board.free(self.routed)
            self.routed = selected
            if selected is None:
                self.output_pin = -1
            else:
                self.board.acquire(selected, mode)
                self.output_pin = selected.number
        elif selected is not None:
            # Keep the recorded mode in step with what the pin is used for.
            self.board.set_mode(selected, mode)

    def free(self) -> None:
        """Release the routed pin, if any, and disconnect the audio output."""
        if self.routed is not None:
            self.board.free(self.routed)
            self.routed = None
            self.output_pin = -1