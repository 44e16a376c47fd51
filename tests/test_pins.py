import pytest

from mbsim.pins import Board, Pin, PinKind, PinMode


@pytest.fixture
def board():
    return Board()


def test_initial_modes(board):
    assert board.pin(0).get_mode() == "unused"
    assert board.pin(3).get_mode() == "display"
    assert board.pin(5).get_mode() == "button"
    assert board.pin(19).get_mode() == "i2c"


def test_unknown_pin(board):
    with pytest.raises(ValueError):
        board.pin(17)


def test_pin_kinds(board):
    assert board.pin(0).kind is PinKind.TOUCH
    assert board.pin(3).kind is PinKind.ANALOG_DIGITAL
    assert board.pin(8).kind is PinKind.DIGITAL
    assert board.pin(30).kind is PinKind.TOUCH_ONLY


def test_write_digital_sets_mode_and_output(board):
    pin = board.pin(0)
    pin.write_digital(1)
    assert pin.get_mode() == "write_digital"
    assert pin.output == 1


@pytest.mark.parametrize("value", [2, -1, 5])
def test_write_digital_rejects_bad_values(board, value):
    with pytest.raises(ValueError, match="value must be 0 or 1"):
        board.pin(0).write_digital(value)


def test_display_pin_cannot_be_taken(board):
    with pytest.raises(ValueError, match="Pin 3 in display mode"):
        board.pin(3).write_digital(1)


def test_read_digital_on_button_keeps_mode(board):
    pin = board.pin(5)
    pin.input_level = 1
    assert pin.read_digital() == 1
    assert pin.get_mode() == "button"


def test_get_pull_requires_read_mode(board):
    pin = board.pin(8)
    with pytest.raises(ValueError, match="unused mode"):
        pin.get_pull()
    pin.set_pull(Pin.PULL_UP)
    assert pin.get_mode() == "read_digital"
    assert pin.get_pull() == Pin.PULL_UP


def test_write_analog_rounds_floats(board):
    pin = board.pin(1)
    pin.write_analog(511.6)
    assert pin.analog_output == 512
    assert pin.get_mode() == "write_analog"


@pytest.mark.parametrize("value", [-1, 1024, 1023.6])
def test_write_analog_range(board, value):
    with pytest.raises(ValueError, match="between 0 and 1023"):
        board.pin(1).write_analog(value)


def test_write_analog_zero_releases_pin(board):
    pin = board.pin(1)
    pin.write_analog(100)
    pin.write_analog(0)
    assert pin.get_mode() == "unused"


def test_read_analog(board):
    pin = board.pin(2)
    pin.analog_input = 700
    pin.write_digital(0)
    assert pin.read_analog() == 700
    assert pin.get_mode() == "unused"


def test_read_analog_missing_on_digital_pin(board):
    with pytest.raises(AttributeError, match="read_analog"):
        board.pin(8).read_analog()


def test_touch_only_pin_has_no_digital(board):
    with pytest.raises(AttributeError, match="write_digital"):
        board.pin(30).write_digital(1)


def test_touch_state(board):
    pin = board.pin(0)
    assert pin.is_touched() is False
    assert pin.get_mode() == "touch"
    pin.touched = True
    assert pin.is_touched() is True
    assert pin.was_touched() is True
    assert pin.was_touched() is False
    pin.touched = False
    pin.touched = True
    assert pin.get_touches() == 2
    assert pin.get_touches() == 0


def test_set_touch_mode(board):
    pin = board.pin(1)
    pin.set_touch_mode(Pin.CAPACITIVE)
    assert pin.touch_mode == Pin.CAPACITIVE
    assert pin.get_mode() == "touch"


def test_touch_calibrate_keeps_mode(board):
    pin = board.pin(30)
    pin.touch_calibrate()
    assert pin.calibrations == 1
    assert board.get_mode(pin) is PinMode.UNUSED


def test_analog_period(board):
    pin = board.pin(0)
    pin.set_analog_period(20)
    assert pin.get_analog_period_microseconds() == 20 * 1000
    pin.set_analog_period_microseconds(500)
    assert pin.get_analog_period_microseconds() == 500
    with pytest.raises(ValueError, match="invalid period"):
        pin.set_analog_period_microseconds(0)


def test_free_reverts_to_initial_mode(board):
    pin = board.pin(3)
    board.set_mode(pin, PinMode.WRITE_DIGITAL)
    board.free(pin)
    assert board.get_mode(pin) is PinMode.DISPLAY


def test_acquire_reports_change(board):
    pin = board.pin(8)
    assert board.acquire(pin, PinMode.WRITE_DIGITAL) is True
    assert board.acquire(pin, PinMode.WRITE_DIGITAL) is False


def test_can_be_acquired(board):
    assert board.can_be_acquired(board.pin(0)) is True
    assert board.can_be_acquired(board.pin(3)) is False
    assert board.can_be_acquired(board.pin(19)) is False


def test_acquire_and_free(board):
    old, new = board.pin(13), board.pin(8)
    board.acquire(old, PinMode.SPI)
    result = board.acquire_and_free(old, new, PinMode.SPI)
    assert result is new
    assert board.get_mode(new) is PinMode.SPI
    assert board.get_mode(old) is PinMode.UNUSED


def test_audio_pin_busy_raises():
    board = Board(audio_busy=lambda: True)
    pin = board.pin(0)
    board.set_mode(pin, PinMode.MUSIC)
    with pytest.raises(ValueError, match="Pin 0 in music mode"):
        pin.write_digital(1)


def test_audio_pin_idle_calls_release():
    board = Board(audio_busy=lambda: False)
    released = []
    board.on_audio_release(lambda: released.append(True))
    pin = board.pin(0)
    board.set_mode(pin, PinMode.AUDIO_PLAY)
    pin.write_digital(1)
    assert released == [True]
    assert pin.get_mode() == "write_digital"