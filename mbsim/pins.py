"""Board pins, their acquisition modes and a simulated pin-level hardware layer."""

from __future__ import annotations

import enum
from collections.abc import Callable
from typing import Any


class PinMode(enum.Enum):
    """What a pin is currently used for; the value is the mode's name."""

    UNUSED = "unused"
    WRITE_ANALOG = "write_analog"
    READ_DIGITAL = "read_digital"
    WRITE_DIGITAL = "write_digital"
    DISPLAY = "display"
    BUTTON = "button"
    MUSIC = "music"
    AUDIO_PLAY = "audio"
    TOUCH = "touch"
    I2C = "i2c"
    SPI = "spi"


# Modes that cannot be released by acquiring the pin for something else.
_LOCKED_MODES = frozenset(
    {PinMode.DISPLAY, PinMode.BUTTON, PinMode.I2C, PinMode.SPI}
)
_AUDIO_MODES = frozenset({PinMode.MUSIC, PinMode.AUDIO_PLAY})


_DIGITAL_METHODS = frozenset(
    {
        "write_digital",
        "read_digital",
        "write_analog",
        "set_analog_period",
        "set_analog_period_microseconds",
        "get_analog_period_microseconds",
        "get_pull",
        "set_pull",
        "get_mode",
    }
)
_TOUCH_METHODS = frozenset(
    {"touch_calibrate", "is_touched", "was_touched", "get_touches", "set_touch_mode"}
)


class PinKind(enum.Enum):
    """The capabilities of a pin; the value is the type name."""

    DIGITAL = "MicroBitDigitalPin"
    ANALOG_DIGITAL = "MicroBitAnalogDigitalPin"
    TOUCH = "MicroBitTouchPin"
    TOUCH_ONLY = "MicroBitTouchOnlyPin"

    @property
    def methods(self) -> frozenset[str]:
        """Names of the pin operations this kind of pin supports."""
        if self is PinKind.DIGITAL:
            return _DIGITAL_METHODS
        if self is PinKind.ANALOG_DIGITAL:
            return _DIGITAL_METHODS | {"read_analog"}
        if self is PinKind.TOUCH:
            return _DIGITAL_METHODS | {"read_analog"} | _TOUCH_METHODS
        return _TOUCH_METHODS


class Pin:
    """A single board pin with simulated electrical state."""

    PULL_UP = 0
    PULL_DOWN = 1
    NO_PULL = 2

    RESISTIVE = 0
    CAPACITIVE = 1

    DEFAULT_ANALOG_PERIOD_US = 20000

    def __init__(
        self, board: Board, number: int, kind: PinKind, initial_mode: PinMode
    ) -> None:
        self.board = board
        self.number = number
        self.kind = kind
        self.initial_mode = initial_mode
        # Simulated hardware state.
        self.output = 0
        self.input_level = 0
        self.pull = self.NO_PULL
        self.analog_output = 0
        self.analog_input = 0
        self.analog_period_us = self.DEFAULT_ANALOG_PERIOD_US
        self.touch_mode = self.CAPACITIVE if number == 30 else self.RESISTIVE
        self.calibrations = 0
        self._touched = False
        self._was_touched = False
        self._touches = 0

    def __repr__(self) -> str:
        return f"<{self.kind.value} {self.number}>"

    def _require(self, method: str) -> None:
        if method not in self.kind.methods:
            raise AttributeError(
                f"'{self.kind.value}' object has no attribute '{method}'"
            )

    @property
    def touched(self) -> bool:
        """Whether the pin is being touched right now."""
        return self._touched

    @touched.setter
    def touched(self, value: bool) -> None:
        value = bool(value)
        if value and not self._touched:
            self._was_touched = True
            self._touches += 1
        self._touched = value

    def get_mode(self) -> str:
        """Return the name of the pin's current mode."""
        self._require("get_mode")
        return self.board.get_mode(self).value

    def write_digital(self, value: Any) -> None:
        """Drive the pin high (1) or low (0)."""
        self._require("write_digital")
        val = int(value)
        if val >> 1:
            raise ValueError("value must be 0 or 1")
        self.board.acquire(self, PinMode.WRITE_DIGITAL)
        self.output = val

    def read_digital(self) -> int:
        """Return the digital level on the pin."""
        self._require("read_digital")
        self.board.acquire(self, PinMode.READ_DIGITAL)
        return self.input_level

    def set_pull(self, pull: Any) -> None:
        """Set the pull resistor; this puts the pin into digital read mode."""
        self._require("set_pull")
        pull = int(pull)
        self.board.acquire(self, PinMode.READ_DIGITAL)
        self.pull = pull

    def get_pull(self) -> int:
        """Return the pull setting; only valid in digital read or button mode."""
        self._require("get_pull")
        mode = self.board.get_mode(self)
        if mode not in (PinMode.READ_DIGITAL, PinMode.BUTTON):
            self.board.mode_error(self)
        return self.pull

    def write_analog(self, value: Any) -> None:
        """Output a PWM duty cycle from 0 to 1023; 0 releases the pin."""
        self._require("write_analog")
        if isinstance(value, float):
            set_value = int(value + 0.5)
        else:
            set_value = int(value)
        if set_value < 0 or set_value > 1023:
            raise ValueError("value must be between 0 and 1023")
        self.board.acquire(self, PinMode.WRITE_ANALOG)
        self.analog_output = set_value
        if set_value == 0:
            self.board.acquire(self, PinMode.UNUSED)

    def read_analog(self) -> int:
        """Return the analog level on the pin, from 0 to 1023."""
        self._require("read_analog")
        self.board.acquire(self, PinMode.UNUSED)
        return self.analog_input

    def _set_period_us(self, period: int) -> None:
        if period <= 0:
            raise ValueError("invalid period")
        self.analog_period_us = period

    def set_analog_period(self, period: Any) -> None:
        """Set the PWM period in milliseconds."""
        self._require("set_analog_period")
        self._set_period_us(int(period) * 1000)

    def set_analog_period_microseconds(self, period: Any) -> None:
        """Set the PWM period in microseconds."""
        self._require("set_analog_period_microseconds")
        self._set_period_us(int(period))

    def get_analog_period_microseconds(self) -> int:
        """Return the PWM period in microseconds."""
        self._require("get_analog_period_microseconds")
        return self.analog_period_us

    def _enter_touch(self) -> None:
        mode = self.board.get_mode(self)
        if mode not in (PinMode.TOUCH, PinMode.BUTTON):
            self.board.acquire(self, PinMode.TOUCH)

    def is_touched(self) -> bool:
        """Whether the pin is touched now."""
        self._require("is_touched")
        self._enter_touch()
        return self._touched

    def was_touched(self) -> bool:
        """Whether the pin was touched since the last call."""
        self._require("was_touched")
        self._enter_touch()
        result = self._was_touched
        self._was_touched = False
        return result

    def get_touches(self) -> int:
        """Return the number of touches since the last call."""
        self._require("get_touches")
        self._enter_touch()
        result = self._touches
        self._touches = 0
        return result

    def set_touch_mode(self, mode: Any) -> None:
        """Select resistive or capacitive touch sensing."""
        self._require("set_touch_mode")
        self._enter_touch()
        self.touch_mode = int(mode)

    def touch_calibrate(self) -> None:
        """Recalibrate touch sensing on this pin."""
        self._require("touch_calibrate")
        self.calibrations += 1


_PIN_LAYOUT: tuple[tuple[int, PinKind, PinMode], ...] = (
    (0, PinKind.TOUCH, PinMode.UNUSED),
    (1, PinKind.TOUCH, PinMode.UNUSED),
    (2, PinKind.TOUCH, PinMode.UNUSED),
    (3, PinKind.ANALOG_DIGITAL, PinMode.DISPLAY),
    (4, PinKind.ANALOG_DIGITAL, PinMode.DISPLAY),
    (5, PinKind.DIGITAL, PinMode.BUTTON),
    (6, PinKind.DIGITAL, PinMode.DISPLAY),
    (7, PinKind.DIGITAL, PinMode.DISPLAY),
    (8, PinKind.DIGITAL, PinMode.UNUSED),
    (9, PinKind.DIGITAL, PinMode.UNUSED),
    (10, PinKind.ANALOG_DIGITAL, PinMode.DISPLAY),
    (11, PinKind.DIGITAL, PinMode.BUTTON),
    (12, PinKind.DIGITAL, PinMode.UNUSED),
    (13, PinKind.DIGITAL, PinMode.UNUSED),
    (14, PinKind.DIGITAL, PinMode.UNUSED),
    (15, PinKind.DIGITAL, PinMode.UNUSED),
    (16, PinKind.DIGITAL, PinMode.UNUSED),
    (19, PinKind.DIGITAL, PinMode.I2C),
    (20, PinKind.DIGITAL, PinMode.I2C),
    (30, PinKind.TOUCH_ONLY, PinMode.UNUSED),
    (31, PinKind.DIGITAL, PinMode.UNUSED),
)

LOGO_PIN = 30
SPEAKER_PIN = 31


class Board:
    """The set of pins on a board and the bookkeeping of their modes."""

    def __init__(self, audio_busy: Callable[[], bool] | None = None) -> None:
        self._audio_busy = audio_busy or (lambda: False)
        self._audio_release: Callable[[], None] | None = None
        self._modes: dict[int, PinMode] = {}
        self.pins: dict[int, Pin] = {
            number: Pin(self, number, kind, mode) for number, kind, mode in _PIN_LAYOUT
        }

    def on_audio_release(self, callback: Callable[[], None] | None) -> None:
        """Register what to call when an idle audio or music pin is taken over."""
        self._audio_release = callback

    def pin(self, number: int) -> Pin:
        """Return the pin with the given number."""
        try:
            return self.pins[number]
        except KeyError:
            raise ValueError(f"no pin {number}") from None

    def get_mode(self, pin: Pin) -> PinMode:
        """Return the pin's current mode, falling back to its initial mode."""
        return self._modes.get(pin.number, pin.initial_mode)

    def set_mode(self, pin: Pin, mode: PinMode) -> None:
        """Record a mode; setting UNUSED reverts the pin to its initial mode."""
        if mode is PinMode.UNUSED:
            self._modes.pop(pin.number, None)
        else:
            self._modes[pin.number] = mode

    def free(self, pin: Pin | None) -> None:
        """Release a pin back to the unused state."""
        if pin is not None:
            self.set_mode(pin, PinMode.UNUSED)

    def mode_error(self, pin: Pin) -> None:
        """Raise the error for a pin whose current mode forbids the operation."""
        mode = self.get_mode(pin)
        raise ValueError(f"Pin {pin.number} in {mode.value} mode")

    def _release(self, pin: Pin, mode: PinMode) -> None:
        if mode in _LOCKED_MODES:
            self.mode_error(pin)
        elif mode in _AUDIO_MODES:
            if self._audio_busy():
                self.mode_error(pin)
            elif self._audio_release is not None:
                self._audio_release()

    def can_be_acquired(self, pin: Pin) -> bool:
        """Whether the pin's current mode can be released."""
        return self.get_mode(pin) not in _LOCKED_MODES

    def acquire(self, pin: Pin, mode: PinMode) -> bool:
        """Switch a pin to a new mode; return whether the mode changed."""
        current = self.get_mode(pin)
        # A button behaves as a digital input, so reading it keeps the mode.
        if current is PinMode.BUTTON and mode is PinMode.READ_DIGITAL:
            return False
        if current is mode:
            return False
        self._release(pin, current)
        self.set_mode(pin, mode)
        return True

    def acquire_and_free(
        self, old_pin: Pin | None, new_pin: Pin, mode: PinMode
    ) -> Pin:
        """Acquire ``new_pin`` and free ``old_pin`` if it differs; return the pin in use."""
        self.acquire(new_pin, mode)
        if old_pin is not new_pin:
            self.free(old_pin)
        return new_pin