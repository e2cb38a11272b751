# branchsim

A trace-driven simulator of a branch target buffer (BTB) paired with
two-bit saturating-counter predictors. Histories can be local (one per BTB
entry) or global (one shared register). Counter tables can be local (one per
BTB entry) or global (one shared table). The table index can take the branch
address into account: it is the history XORed with address bits starting at
bit 2 (lsb sharing) or at bit 16 (mid sharing).

## Install

    pip install .

## Command line

    branchsim trace.txt

The first line of the trace file configures the predictor:

    <btb size> <history size> <tag size> <initial fsm state> <local_history|global_history> <local_tables|global_tables> <not_using_share|using_share_lsb|using_share_mid>

- The BTB size is the number of direct-mapped entries. The index bits are
  taken from the address just above its two lowest bits.
- The history size is in bits, from 1 to 8.
- The tag size is in bits. Tag, index and the two low bits must fit in
  32 bits.
- The initial FSM state is one of these:
  - 0, strongly not taken
  - 1, weakly not taken
  - 2, weakly taken
  - 3, strongly taken

Every following line is one resolved branch:

    <pc> <T|N> <target>

Numbers follow C conventions. They may be decimal, hexadecimal with a `0x`
prefix, or octal with a leading `0`.

For each branch the program prints three things:

- the address
- the prediction (`T` or `N`)
- the predicted destination

The predicted destination is the stored target when the prediction is taken.
Otherwise it is `pc + 4`. After the prediction the predictor is trained with
the real outcome. A branch whose real destination differs from the predicted
one counts as a flush. An empty line ends the trace early. At the end the
program prints a summary:

    flush_num: <flushes>, br_num: <branches>, size: <bits>b

The size is the theoretical storage of the predictor in bits. It counts:

- each BTB entry: its tag, 30 target bits and a valid bit
- each history register
- the 2-bit counter tables

Exit status:

| Status | Meaning |
| --- | --- |
| 0 | Success |
| 1 | No trace file given |
| 2 | The file cannot be opened |
| 3 | The configuration line is missing or has too few fields |
| 4 | The BTB size or the history size is zero |
| 5 | Unknown history kind |
| 6 | Unknown table kind |
| 7 | Unknown share mode |
| 8 | The predictor rejects the configuration |
| 9 | A malformed branch line |

The error message goes to standard error. Predictions printed before the
error stay on standard output.

## Library

```python
from branchsim.predictor import BranchPredictor, ShareMode

bp = BranchPredictor(
    btb_size=4, history_size=2, tag_size=8, fsm_state=1,
    global_history=False, global_table=False, share=ShareMode.NONE,
)
taken, dst = bp.predict(0x1230)
bp.update(0x1230, 0x2000, True, dst)
print(bp.stats())   # Stats(flush_num=..., br_num=..., size=...)
```

`BranchPredictor` raises `ValueError` for an invalid configuration. It also
exposes the address helpers `btb_index`, `tag_of` and `fsm_index`.

`branchsim.cli` drives a simulation from any iterable of trace lines:

- `parse_config` parses a configuration line into a `Config`.
- `parse_branch` parses a branch line into a `Branch`.
- `run_trace(lines, out)` writes the output to `out` and returns the final
  `Stats`.

Malformed input raises `TraceError`. Its `code` attribute holds the exit
status listed above.