import pytest

from mbsim.audiorouting import AudioRouter
from mbsim.pins import SPEAKER_PIN, Board, PinMode


@pytest.fixture
def board():
    return Board(audio_busy=lambda: False)


@pytest.fixture
def router(board):
    return AudioRouter(board)


def test_initially_unrouted(router):
    assert router.routed is None
    assert router.output_pin == -1


def test_select_none_keeps_output_disconnected(router):
    router.select(None)
    assert router.routed is None
    assert router.output_pin == -1


def test_select_pin_acquires_it(board, router):
    pin = board.pin(0)
    router.select(pin)
    assert router.routed is pin
    assert router.output_pin == 0
    assert board.get_mode(pin) is PinMode.AUDIO_PLAY
    assert pin.get_mode() == "audio"


def test_select_speaker_rejected(board, router):
    with pytest.raises(ValueError, match="pin_speaker not allowed"):
        router.select(board.pin(SPEAKER_PIN))


def test_select_non_pin_rejected(router):
    with pytest.raises(TypeError, match="expecting a pin"):
        router.select("pin0")


def test_switching_pins_frees_previous(board, router):
    router.select(board.pin(0))
    router.select(board.pin(1))
    assert board.get_mode(board.pin(0)) is PinMode.UNUSED
    assert board.get_mode(board.pin(1)) is PinMode.AUDIO_PLAY
    assert router.output_pin == 1


def test_reselecting_same_pin_updates_mode(board, router):
    pin = board.pin(0)
    router.select(pin)
    router.select(pin, PinMode.MUSIC)
    assert board.get_mode(pin) is PinMode.MUSIC
    assert router.routed is pin


def test_free_releases_pin(board, router):
    pin = board.pin(2)
    router.select(pin)
    router.free()
    assert router.routed is None
    assert router.output_pin == -1
    assert board.get_mode(pin) is PinMode.UNUSED


def test_select_none_after_pin_frees_it(board, router):
    pin = board.pin(0)
    router.select(pin)
    router.select(None)
    assert router.routed is None
    assert router.output_pin == -1
    assert board.get_mode(pin) is PinMode.UNUSED


def test_idle_audio_pin_can_be_taken_over(board, router):
    pin = board.pin(0)
    router.select(pin)
    pin.write_digital(1)
    assert router.routed is None
    assert router.output_pin == -1
    assert board.get_mode(pin) is PinMode.WRITE_DIGITAL


def test_busy_audio_pin_cannot_be_taken_over():
    board = Board(audio_busy=lambda: True)
    router = AudioRouter(board)
    pin = board.pin(0)
    router.select(pin)
    with pytest.raises(ValueError, match="Pin 0 in audio mode"):
        pin.write_digital(1)
    assert router.routed is pin


def test_display_pin_cannot_carry_audio(board, router):
    with pytest.raises(ValueError, match="display"):
        router.select(board.pin(3))