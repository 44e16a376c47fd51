# mbsim

A pure-Python model of some runtime pieces of a small educational
microcontroller board. You can use it to exercise code that drives the
board's pins, serial port, file system and data log without the board.
It needs nothing outside the standard library.

## What it covers

- `mbsim.pins`: `Board`, `Pin`, `PinMode` and `PinKind`.
  - `Board` holds the board's pins. Pins 0–16, 19 and 20 are there, with
    30 as the logo and 31 as the speaker. `Board` also tracks the mode
    each pin is in.
  - `Board.acquire` switches a pin to a new mode. A pin held by the
    display, a button, I2C or SPI refuses this with a `ValueError` such
    as `Pin 3 in display mode`.
  - A pin in music or audio mode is refused while the `audio_busy`
    callback returns true.
  - Each `Pin` keeps simulated electrical state. That covers the output
    level, input level, pull, analog output, analog input, PWM period
    and touch state. Set `pin.touched = True` to simulate a touch.
  - A pin offers only the operations its `PinKind` supports. Any other
    operation raises `AttributeError`.
- `mbsim.audiorouting`: `AudioRouter` routes the audio output to one
  pin, or to none.
  - It acquires the pin in audio mode and frees the pin that was routed
    before.
  - `output_pin` holds the routed pin's number, or -1 when no pin is
    routed.
  - It refuses the speaker pin.
- `mbsim.uart`: `UART`, a serial port model.
  - Queue incoming bytes with `feed()`. Read them back with `read`,
    `readinto` or `readline`.
  - Bytes passed to `write` are collected in `output`.
  - `init` sets the baud rate, framing and pins, and works out the
    inter-character timeout.
- `mbsim.flash`: `ChunkStore` and `Chunk`. Flash pages are simulated
  and split into numbered chunks.
  - Programming can only clear bits. Erasing a page sets them again.
  - The store uses a randomised start index for wear levelling.
  - It reclaims whole pages of freed chunks, and sweeps the store when
    no erased chunk is left.
- `mbsim.filesystem`: `FlashFileSystem` and `FileHandle`. This is a
  flat file system built on `ChunkStore`.
  - Files are opened with mode `"r"` or `"w"`, optionally with `"b"` or
    `"t"`. Text mode is the default.
  - `FlashFileSystem` also offers `remove`, `listdir`, `ilistdir`,
    `size`, `stat` and `exists`.
  - Handles work as context managers.
- `mbsim.datalog`: `DataLog` and `Timestamp`. The log holds rows of
  labelled values and has a capacity in bytes.
  - A timestamp column is added automatically.
  - With mirroring on, each row is also recorded as a CSV line.
  - A full log raises `OSError(ENOSPC)`.
- `mbsim.antigravity`: an easter egg.
  - `decode_rle` expands the run-length encoded text.
  - `comic_text` returns the comic.
  - `lift_pixels` moves lit pixels of a grid up one row.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Examples

Pins:

```python
from mbsim.pins import Board

board = Board(audio_busy=lambda: False)
p0 = board.pin(0)
p0.write_digital(1)
print(p0.get_mode())        # write_digital

try:
    board.pin(3).write_digital(1)
except ValueError as exc:
    print(exc)              # Pin 3 in display mode
```

Audio routing:

```python
from mbsim.audiorouting import AudioRouter
from mbsim.pins import Board

board = Board()
router = AudioRouter(board)
router.select(board.pin(0))
print(router.output_pin, board.pin(0).get_mode())   # 0 audio
router.free()
```

Serial port:

```python
from mbsim.pins import Board
from mbsim.uart import UART

uart = UART(Board())
uart.init(baudrate=115200)
uart.feed(b"hello\nworld")
print(uart.readline())      # b'hello\n'
uart.write("ok")
print(bytes(uart.output))   # b'ok'
```

Flash file system:

```python
from mbsim.filesystem import FlashFileSystem

fs = FlashFileSystem(pages=8, chunks_per_page=8, seed=1)
with fs.open("notes.txt", "w") as f:
    f.write("hello")
with fs.open("notes.txt") as f:
    print(f.read())
print(fs.listdir(), fs.size("notes.txt"))
fs.remove("notes.txt")
```

Data logging:

```python
from mbsim.datalog import DataLog, Timestamp

log = DataLog(capacity=4096)
log.set_labels("temperature", "light", timestamp=Timestamp.SECONDS)
log.add({"temperature": 21, "light": 130})
log.add(temperature=22, light=128)
for row in log.rows():
    print(row)
```

## Command

```
mbsim-antigravity [--interval MS] [--image ROWS]
```

This prints the antigravity comic. It then runs five animation steps,
`--interval` milliseconds apart (200 by default). Each step moves the
lit pixels of an image up one row. At the end it prints the final image.

The image is given as rows of brightness digits separated by `:`. The
default is `00000:00000:00000:00000:99999`.

## What it does not do

- It does not synthesise or play sound.
  - There are no sound effects, built-in sounds or audio frames.
  - `AudioRouter` only records which pin audio is routed to.
- It does not model the SPI bus, the display or the I2C bus.
- It talks to no hardware. Pins, flash and the serial port are all
  in-memory state.
- The data log is kept in memory and is not written anywhere.