"""Branch target buffer with two-bit counters and configurable sharing."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum

_WORD_MASK = 0xFFFFFFFF
_MAX_HISTORY_BITS = 8

# Two-bit counter states.
_SNT, _WNT, _WT, _ST = 0, 1, 2, 3


class ShareMode(IntEnum):
    """How the branch address is folded into the counter-table index."""

    NONE = 0
    LSB = 1
    MID = 2


_SHARE_SHIFT = {ShareMode.LSB: 2, ShareMode.MID: 16}


@dataclass(frozen=True)
class Stats:
    """Simulation counters and the theoretical predictor size in bits."""

    flush_num: int
    br_num: int
    size: int


@dataclass
class _BtbLine:
    table: list[int] | None
    valid: bool = False
    tag: int = 0
    target: int = 0
    history: int = 0
    pc: int = 0
    _: None = field(default=None, repr=False)


def _saturate(state: int, taken: bool) -> int:
    if taken:
        return min(state + 1, _ST)
    return max(state - 1, _SNT)


class BranchPredictor:
    """Two-level branch predictor backed by a direct-mapped BTB.

    Histories and counter tables may each be per-entry (local) or shared
    by all branches (global).
    """

    def __init__(self, btb_size, history_size, tag_size, fsm_state,
                 global_history, global_table, share):
        if btb_size < 1:
            raise ValueError("btb_size must be at least 1")
        if not 0 <= history_size <= _MAX_HISTORY_BITS:
            raise ValueError(
                f"history_size must be between 0 and {_MAX_HISTORY_BITS}")
        if not _SNT <= fsm_state <= _ST:
            raise ValueError("fsm_state must be between 0 and 3")
        self._index_bits = btb_size.bit_length() - 1
        if tag_size < 0 or tag_size + 2 + self._index_bits > 32:
            raise ValueError("tag_size does not fit in a 32-bit address")

        self.btb_size = btb_size
        self.history_size = history_size
        self.tag_size = tag_size
        self.fsm_state = fsm_state
        self.global_history = bool(global_history)
        self.global_table = bool(global_table)
        self.share = ShareMode(share)

        self._hist_mask = (1 << history_size) - 1
        self._table_len = 1 << history_size
        self._history_register = 0
        self._shared_table = (
            self._fresh_table() if self.global_table else None)
        self._lines = [
            _BtbLine(table=None if self.global_table else self._fresh_table())
            for _ in range(btb_size)
        ]
        self._updates = 0
        self._flushes = 0

    def _fresh_table(self) -> list[int]:
        return [self.fsm_state] * self._table_len

    def btb_index(self, pc):
        """Return the BTB line that a branch address maps to."""
        return (pc >> 2) & ((1 << self._index_bits) - 1)

    def tag_of(self, pc):
        """Return the tag bits of a branch address."""
        return ((pc & _WORD_MASK) >> (2 + self._index_bits)) & (
            (1 << self.tag_size) - 1)

    def fsm_index(self, pc, history):
        """Return the counter-table index for an address and a history."""
        history &= 0xFF
        if self.share is ShareMode.NONE:
            return history & self._hist_mask
        shift = _SHARE_SHIFT[self.share]
        return history ^ (((pc & _WORD_MASK) >> shift) & self._hist_mask)

    def _table_for(self, line: _BtbLine) -> list[int]:
        if self._shared_table is not None:
            return self._shared_table
        assert line.table is not None
        return line.table

    def _history_for(self, line: _BtbLine) -> int:
        return self._history_register if self.global_history else line.history

    def _hit(self, pc: int) -> tuple[_BtbLine, int, bool]:
        line = self._lines[self.btb_index(pc)]
        tag = self.tag_of(pc)
        return line, tag, line.valid and line.tag == tag

    def predict(self, pc):
        """Return (taken, destination) predicted for the branch at pc."""
        fallthrough = (pc + 4) & _WORD_MASK
        line, _, hit = self._hit(pc)
        if not hit:
            return False, fallthrough
        state = self._table_for(line)[self.fsm_index(pc, self._history_for(line))]
        if state in (_WT, _ST):
            return True, line.target
        return False, fallthrough

    def update(self, pc, target_pc, taken, pred_dst):
        """Train the predictor with the resolved outcome of a branch."""
        self._updates += 1
        taken = bool(taken)
        target_pc &= _WORD_MASK
        line, tag, hit = self._hit(pc)
        if not hit:
            if not self.global_history:
                line.history = 0
            if not self.global_table:
                line.table = self._fresh_table()

        table = self._table_for(line)
        slot = self.fsm_index(pc, self._history_for(line))
        table[slot] = _saturate(table[slot], taken)

        actual = target_pc if taken else (pc + 4) & _WORD_MASK
        if (pred_dst & _WORD_MASK) != actual:
            self._flushes += 1

        line.tag = tag
        line.target = target_pc
        line.valid = True
        line.pc = pc & _WORD_MASK

        bit = 1 if taken else 0
        if self.global_history:
            self._history_register = (
                (self._history_register << 1) | bit) & self._hist_mask
        else:
            line.history = ((line.history << 1) | bit) & self._hist_mask

    def stats(self):
        """Return flush and branch counts and the predictor size in bits."""
        entry = self.tag_size + 31
        counters = 2 * (1 << self.history_size)
        hist = self.history_size
        btb = self.btb_size
        if self.global_history and self.global_table:
            size = hist + counters + btb * entry
        elif self.global_history:
            size = hist + btb * (entry + counters)
        elif self.global_table:
            size = btb * (entry + hist) + counters
        else:
            size = btb * (entry + hist + counters)
        return Stats(flush_num=self._flushes, br_num=self._updates, size=size)