# tracefile.py
"""
Plain-text access traces, one record per line:

    I 0x00400000
    D 0x7fffe0c8

Blank lines and lines starting with '#' are ignored.
"""

KINDS = ("I", "D")


class TraceFormatError(ValueError):
    pass


def parse_line(line, lineno=0):
    """Return (kind, addr) for a record line, or None for blank/comment lines."""
    text = line.split("#", 1)[0].strip()
    if not text:
        return None
    fields = text.split()
    if len(fields) != 2:
        raise TraceFormatError(f"line {lineno}: expected '<kind> <address>', got {line.strip()!r}")
    kind, raw_addr = fields[0].upper(), fields[1]
    if kind not in KINDS:
        raise TraceFormatError(f"line {lineno}: unknown access kind {fields[0]!r}")
    try:
        addr = int(raw_addr, 16)
    except ValueError:
        raise TraceFormatError(f"line {lineno}: bad address {raw_addr!r}") from None
    if not 0 <= addr <= 0xFFFFFFFF:
        raise TraceFormatError(f"line {lineno}: address {raw_addr} does not fit in 32 bits")
    return kind, addr


def read_trace(path):
    with open(path, "r") as f:
        for lineno, line in enumerate(f, start=1):
            record = parse_line(line, lineno)
            if record is not None:
                yield record


def write_trace(path, records):
    with open(path, "w") as f:
        for kind, addr in records:
            f.write(f"{kind} {addr:#010x}\n")
