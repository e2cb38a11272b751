"""Command-line driver that replays a branch trace through the predictor."""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from typing import Iterable, TextIO

from branchsim.predictor import BranchPredictor, ShareMode, Stats

_WORD_MASK = 0xFFFFFFFF
_TOKEN_SPLIT = re.compile(r"[ \n]+")
_C_INTEGER = re.compile(r"\s*([+-]?)(0[xX][0-9a-fA-F]+|0[0-7]*|[1-9][0-9]*)")

_HISTORY_KINDS = {"local_history": False, "global_history": True}
_TABLE_KINDS = {"local_tables": False, "global_tables": True}
_SHARE_KINDS = {
    "using_share_lsb": ShareMode.LSB,
    "using_share_mid": ShareMode.MID,
    "not_using_share": ShareMode.NONE,
}

_CONFIG_ERROR = "Error in input file: cannot read config"
_TRACE_ERROR = "Error in input file: bad trace"


class TraceError(Exception):
    """A trace file that cannot be simulated; carries the exit status."""

    def __init__(self, message: str, code: int) -> None:
        super().__init__(message)
        self.code = code


@dataclass(frozen=True)
class Config:
    """Predictor parameters from the first line of a trace."""

    btb_size: int
    history_size: int
    tag_size: int
    fsm_state: int
    global_history: bool
    global_table: bool
    share: ShareMode


@dataclass(frozen=True)
class Branch:
    """One resolved branch from a trace."""

    pc: int
    taken: bool
    target: int


def _parse_c_int(text: str) -> int:
    """Read a leading integer with C base-0 rules; 0 if none is present."""
    match = _C_INTEGER.match(text)
    if match is None:
        return 0
    sign, digits = match.groups()
    if digits[:2] in ("0x", "0X"):
        value = int(digits[2:], 16)
    elif len(digits) > 1 and digits.startswith("0"):
        value = int(digits[1:], 8)
    else:
        value = int(digits)
    return -value if sign == "-" else value


def _tokens(line: str) -> list[str]:
    return [token for token in _TOKEN_SPLIT.split(line) if token]


def parse_config(line):
    """Parse the configuration line of a trace."""
    fields = _tokens(line)
    if len(fields) < 7:
        raise TraceError(_CONFIG_ERROR, 3)
    btb_size, history_size, tag_size, fsm_state = (
        _parse_c_int(text) for text in fields[:4])
    if btb_size == 0 or history_size == 0:
        raise TraceError(_CONFIG_ERROR, 4)
    try:
        global_history = _HISTORY_KINDS[fields[4]]
    except KeyError:
        raise TraceError(_CONFIG_ERROR, 5) from None
    try:
        global_table = _TABLE_KINDS[fields[5]]
    except KeyError:
        raise TraceError(_CONFIG_ERROR, 6) from None
    try:
        share = _SHARE_KINDS[fields[6]]
    except KeyError:
        raise TraceError(_CONFIG_ERROR, 7) from None
    return Config(btb_size, history_size, tag_size, fsm_state,
                  global_history, global_table, share)


def parse_branch(line):
    """Parse one trace line of the form '<pc> <T|N> <target>'."""
    fields = _tokens(line)
    if len(fields) < 3:
        raise TraceError(_TRACE_ERROR, 9)
    pc = _parse_c_int(fields[0]) & _WORD_MASK
    target = _parse_c_int(fields[2]) & _WORD_MASK
    if fields[1] == "T":
        taken = True
    elif fields[1] == "N":
        taken = False
    else:
        raise TraceError(_TRACE_ERROR, 9)
    return Branch(pc, taken, target)


def _make_predictor(config: Config) -> BranchPredictor:
    try:
        return BranchPredictor(
            config.btb_size, config.history_size, config.tag_size,
            config.fsm_state, config.global_history, config.global_table,
            config.share)
    except ValueError as exc:
        raise TraceError("Predictor init failed", 8) from exc


def run_trace(lines, out):
    """Simulate a trace, writing each prediction and the final stats to out."""
    stream = iter(lines)
    header = next(stream, None)
    if header is None:
        raise TraceError(_CONFIG_ERROR, 3)
    predictor = _make_predictor(parse_config(header))

    for line in stream:
        if line.startswith("\n"):
            break
        branch = parse_branch(line)
        predicted, dst = predictor.predict(branch.pc)
        out.write(f"0x{branch.pc:x} {'T' if predicted else 'N'} 0x{dst:x}\n")
        predictor.update(branch.pc, branch.target, branch.taken, dst)

    stats: Stats = predictor.stats()
    out.write(f"flush_num: {stats.flush_num}, br_num: {stats.br_num}, "
              f"size: {stats.size}b\n")
    return stats


def main(argv=None):
    """Run the simulator on the trace file named on the command line."""
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        print("Usage: branchsim <trace filename>", file=sys.stderr)
        return 1
    try:
        trace: TextIO = open(args[0], "r")
    except OSError:
        print("cannot open trace file", file=sys.stderr)
        return 2
    with trace:
        try:
            run_trace(trace, sys.stdout)
        except TraceError as exc:
            sys.stdout.flush()
            print(exc, file=sys.stderr)
            return exc.code
    return 0


if __name__ == "__main__":
    sys.exit(main())