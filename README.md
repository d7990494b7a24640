# beeframe

beeframe decodes fixed-layout binary frames. The frames can come from a
serial link or from a recorded raw file. You describe a frame as an ordered
list of fields: one or more header bytes, then typed data fields, then an
optional checksum. beeframe finds frames in the byte stream and verifies
them. It decodes the values and writes them out as CSV. It can also
aggregate the values over one-second and ten-second windows.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Protocols (`beeframe.protocol`)

A protocol is a list of `FieldSpec` rows. Each row has these attributes:

* `name`
* `type`
* `data`
* `accum_check`
* `curve1`, `curve2`, `curve3`

Two row names have a special meaning:

* `frame_header` marks a header byte. Its `data` holds the byte in hex, for
  example `0xAA`.
* `frame_check` marks the checksum. Its `data` holds the checksum name.

Every other row is a data field. Its `type` is one of these `DataType` names:

`char`, `uchar`, `short`, `ushort`, `3bytes`, `int`, `uint`, `float`, `double`

`DataType.size()` gives the width of each type in bytes. The checksum names
are the `ChecksumType` values:

`none`, `add8`, `add8_0`, `xor8`, `xor8_0`, `add16`, `crc16_xmodem`

`ChecksumType.length()` gives the width of each checksum. An empty checksum
name means `none`. To turn a name into its enum member, call
`parse_data_type(text)` or `parse_checksum_type(text)`. Both raise
`ValueError` on an unknown name.

A `ProtocolFile` holds:

* the fields;
* `little_endian`, which is true by default;
* `hz`, the frame rate, which is 200 by default.

`write_protocol_ini(protocol, path)` stores a protocol as an INI file. The
file has one `Data_NNNN` section per row and an `Other` section that holds
`endian` and `hz`. `load_protocol_ini(path)` reads the file back. It raises
`FileNotFoundError` when the file is missing.

## Frame layout and decoding (`beeframe.frame`)

`build_layout(fields)` checks a protocol and returns a `FrameLayout`. The
protocol must follow these rules:

* the first row is a header row;
* all header rows are contiguous at the start;
* a checksum row, if there is one, is the last row;
* there is at least one header byte and at least one data field.

If any rule is broken, `build_layout` raises `ProtocolError`, which is a
subclass of `ValueError`.

The layout reports the length of each part of the frame:

* `header_length`
* `data_length`
* `check_length`
* `frame_length`

`charts` lists, for each of three charts, the names of the fields marked with
`curve1`, `curve2` or `curve3`. Each chart holds at most three names.

```python
from beeframe.frame import FrameParser, build_layout, format_record
from beeframe.protocol import load_protocol_ini

protocol = load_protocol_ini("protocol.ini")
layout = build_layout(protocol.fields)
parser = FrameParser(layout, protocol.little_endian)

parser.feed(chunk)              # bytes from a port or a file
for nav in parser.frames():     # every complete, valid frame buffered so far
    print(format_record(nav), end="")
```

`FrameParser` handles the buffer as follows:

* It drops any bytes that come before a header.
* If the buffer ends with a partial header, it keeps that partial header.
* If a checksum fails, it skips past that header and searches again.

`next_frame()` returns a single frame, or `None` when no complete frame is
buffered. `decode(payload)` decodes the data part of a frame and returns a
list of `NavField` objects, each with its `value` and `raw` bytes set.

`decode_value(data_type, raw, little_endian)` decodes one field. A `3bytes`
field is read as a signed integer.

`format_record(fields, nav=False, header=False)` returns one CSV line ending
in CRLF:

* with `header=True`, it writes a line of field names first;
* floating-point values get six decimals by default;
* with `nav=True`, they are written at full precision instead.

## Checksums (`beeframe.checksum`)

`compute_checksum(kind, header, payload, little_endian)` returns the checksum
bytes as they appear on the wire. `verify_checksum(kind, header, payload,
check, little_endian)` tests a received checksum against them.

* Only the `_0` variants include the header bytes in the checksum.
* The 16-bit checksums are written in the frame's byte order.

`crc16_xmodem(data)` computes CRC-16/XMODEM:

```python
from beeframe.checksum import crc16_xmodem
assert crc16_xmodem(b"123456789") == 0x31C3
```

## Aggregation (`beeframe.aggregate`)

`Aggregator(hz, seconds=1)` collects decoded frames into windows of
`hz * seconds` frames. Pass each frame to `add(fields)`. When a frame
completes a window, `add` returns a `WindowResult`; otherwise it returns
`None`.

Inside a window the fields are combined as follows:

* A field marked for accumulation is summed over the window. When `seconds`
  is greater than 1, the sum is then divided by `seconds`.
* Every other field keeps the value from the latest frame.

A `WindowResult` gives the values in two ways:

* `values` lists all the values in field order.
* `curve_values(chart)` lists only the values of the fields plotted on chart
  0, 1 or 2.

`reset()` starts counting from zero again. `format_value(value, data_type)`
writes floating-point values with six decimals and integers as they are.

## Replaying recordings (`beeframe.replay`)

`replay_file(parser, raw_path, hz, out_dir=None, progress=None)` decodes a
recorded raw file and writes three files into `out_dir`:

* `data.raw`, a copy of the input;
* `navFile.csv`, one line per decoded frame;
* `oneSecFile.csv`, the one-second aggregates, filled only when `hz` is
  positive.

If `out_dir` is not given, the files go to `data/<timestamp>`. If `progress`
is given, it is called with the percentage of the file read so far.

The function returns a `ReplayResult`. It holds the output directory and the
counts of frames, windows and bytes read.

## Serial link (`beeframe.serialport`)

`SerialSettings` describes a connection:

* `port`: a port name or a pyserial URL;
* `baudrate`: 115200 by default;
* `data_bits`: 5 to 8;
* `stop_bits`: a `StopBits` member;
* `parity`: a `Parity` member.

`SerialLink(settings)` opens the port without flow control. You can use it
as a context manager. Its methods:

* `read_available()` returns only the bytes already received and never
  blocks.
* `send(data)` writes data and returns the number of bytes written.

`list_ports()` names the ports on the machine. `parse_hex_command(text)`
turns a string such as `"AA0102"` into bytes. It raises `ValueError` when the
string is empty, contains characters that are not hex digits, or has an odd
number of digits.

## Editing a protocol (`beeframe.editor`)

`ProtocolTable` holds the rows of a protocol while you edit it. Its methods:

* `add_row(name=None)` adds a data row. Without a name the row is called
  `name_<n>`.
* `add_header(value="0xAA")` adds a header row.
* `add_checksum(kind)` adds the checksum row.
* `delete_row(index)` removes a row.
* `move_row(source, target=None)` moves a row to `target`, or to the end
  when `target` is `None`.
* `clear()` removes every row.

`led_style(size, color)` returns the style sheet text for a round status
indicator. The colour is grey (0), red (1) or green (2).

## Command line

```
beeframe --help
beeframe check protocol.ini
beeframe replay protocol.ini recording.raw --out results
beeframe capture protocol.ini --port /dev/ttyUSB0 --save-raw --save-1s --save-10s --frames 1000
beeframe send --port /dev/ttyUSB0 AA55
beeframe ports
```

The subcommands:

* `check` validates a protocol and prints its frame layout.
* `replay` decodes a raw file, as `replay_file` does.
* `capture` reads from a serial port and prints each one-second aggregate.
  * `--save-raw` saves `data.raw` and `navFile.csv`.
  * `--save-1s` saves `oneSecFile.csv`.
  * `--save-10s` saves `tenSecFile.csv`.
  * `--command` sends a hex command after the port opens.
  * `--duration`, `--frames` or Ctrl-C stop the capture.
* `send` writes a hex command to a port.
* `ports` lists the serial ports.

`check`, `replay` and `capture` take these options:

* `--hz` overrides the frame rate in the protocol file. The rate must be
  between 1 and 2000.

`capture` and `send` take these port options:

* `--port`
* `--baudrate`
* `--data-bits`
* `--stop-bits` (`1`, `1.5`, `2`)
* `--parity` (`none`, `odd`, `even`, `space`, `mark`)

The global option `-v` turns on progress logging. Errors are printed to
standard error and give exit status 1.

## What it does not do

* There is no graphical window. Protocols are edited in code through
  `ProtocolTable`, or directly in the INI file.
* Nothing draws charts. `FrameLayout.charts` and
  `WindowResult.curve_values` only say which values belong on which chart.
* A data row's `data` text is kept as `NavField.script` but is never run.
  Field values are always the decoded wire values.