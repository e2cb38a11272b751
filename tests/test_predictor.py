import pytest

from branchsim.predictor import BranchPredictor, ShareMode, Stats


def make(btb=4, hist=2, tag=8, fsm=1, gh=False, gt=False, share=ShareMode.NONE):
    return BranchPredictor(btb, hist, tag, fsm, gh, gt, share)


CONFIGS = [(False, False), (False, True), (True, False), (True, True)]


def test_btb_index_maps_word_addresses():
    p = make(btb=16)
    for k in range(16):
        assert p.btb_index(4 * k) == k


def test_btb_index_aliases_every_btb_size_words():
    p = make(btb=8)
    for pc in (0x0, 0x1234, 0xABCDEF0):
        assert p.btb_index(pc) == p.btb_index(pc + 4 * 8)


def test_tag_of_takes_bits_above_index():
    p = make(btb=4, tag=8)
    for t in range(256):
        assert p.tag_of(0x10 * t) == t
    assert p.tag_of(0x10 * 256) == 0


def test_tag_of_with_zero_tag_size():
    p = make(btb=4, tag=0)
    assert p.tag_of(0xFFFFFFFF) == 0


def test_fsm_index_none_uses_history_only():
    p = make(hist=3, share=ShareMode.NONE)
    for h in range(8):
        assert p.fsm_index(0xFFFFFFFC, h) == h


def test_fsm_index_lsb_uses_low_pc_bits():
    p = make(hist=3, share=ShareMode.LSB)
    for k in range(8):
        assert p.fsm_index(k << 2, 0) == k
        assert p.fsm_index(k << 2, 5) == k ^ 5


def test_fsm_index_mid_uses_bit_sixteen():
    p = make(hist=3, share=ShareMode.MID)
    for k in range(8):
        assert p.fsm_index((k << 16) | 0xFFFC, 0) == k
        assert p.fsm_index(k << 16, 3) == k ^ 3


@pytest.mark.parametrize("gh,gt", CONFIGS)
def test_unknown_branch_predicts_fallthrough(gh, gt):
    p = make(gh=gh, gt=gt)
    pc = 0x1000
    assert p.predict(pc) == (False, pc + 4)


@pytest.mark.parametrize("gh,gt", CONFIGS)
def test_taken_branch_predicted_after_training(gh, gt):
    p = make(fsm=2, gh=gh, gt=gt)
    pc, target = 0x1000, 0x2000
    taken, dst = p.predict(pc)
    p.update(pc, target, True, dst)
    assert p.predict(pc) == (True, target)


@pytest.mark.parametrize("gh,gt", CONFIGS)
def test_weak_not_taken_needs_more_training(gh, gt):
    p = make(hist=0, fsm=0, gh=gh, gt=gt)
    pc, target = 0x40, 0x80
    p.update(pc, target, True, pc + 4)
    assert p.predict(pc) == (False, pc + 4)
    p.update(pc, target, True, pc + 4)
    assert p.predict(pc) == (True, target)


def test_counter_saturates_at_strongly_taken():
    p = make(hist=0, fsm=3)
    pc, target = 0x100, 0x200
    for _ in range(5):
        p.update(pc, target, True, target)
    p.update(pc, target, False, target)
    assert p.predict(pc) == (True, target)
    p.update(pc, target, False, target)
    assert p.predict(pc) == (False, pc + 4)


def test_tag_mismatch_replaces_entry():
    p = make(btb=4, fsm=2)
    a, c = 0x0, 0x10
    assert p.btb_index(a) == p.btb_index(c)
    p.update(a, 0x500, True, a + 4)
    assert p.predict(a) == (True, 0x500)
    p.update(c, 0x600, False, c + 4)
    assert p.predict(a) == (False, a + 4)


@pytest.mark.parametrize("gt,expected", [(False, False), (True, True)])
def test_global_table_is_shared_between_branches(gt, expected):
    p = make(btb=4, hist=1, fsm=0, gh=True, gt=gt)
    a, b = 0x0, 0x4
    for _ in range(3):
        p.update(a, 0x900, True, a + 4)
    assert p.predict(a)[0] is True
    p.update(b, 0x700, True, b + 4)
    assert p.predict(b) == ((True, 0x700) if expected else (False, b + 4))


def test_flush_counted_on_misprediction_only():
    p = make(fsm=2)
    pc, target = 0x1000, 0x2000
    _, dst = p.predict(pc)
    p.update(pc, target, True, dst)
    assert p.stats().flush_num == 1
    _, dst = p.predict(pc)
    p.update(pc, target, True, dst)
    s = p.stats()
    assert s.flush_num == 1
    assert s.br_num == 2


def test_not_taken_fallthrough_is_not_flushed():
    p = make()
    pc = 0x3000
    _, dst = p.predict(pc)
    p.update(pc, 0x4000, False, dst)
    assert p.stats().flush_num == 0


def test_wrong_target_is_flushed():
    p = make(fsm=3)
    pc = 0x1000
    p.update(pc, 0x2000, True, pc + 4)
    _, dst = p.predict(pc)
    assert dst == 0x2000
    p.update(pc, 0x3000, True, dst)
    assert p.stats().flush_num == 2
    assert p.predict(pc) == (True, 0x3000)


def test_br_num_counts_updates():
    p = make()
    for n in range(7):
        p.update(4 * n, 0x100, n % 2 == 0, 4 * n + 4)
    assert p.stats().br_num == 7


def test_size_local_local():
    p = BranchPredictor(16, 3, 20, 1, False, False, ShareMode.NONE)
    assert p.stats() == Stats(flush_num=0, br_num=0, size=1120)


def test_size_global_global():
    p = BranchPredictor(16, 3, 20, 1, True, True, ShareMode.NONE)
    assert p.stats().size == 835


@pytest.mark.parametrize("gh,gt", CONFIGS)
def test_size_grows_with_btb(gh, gt):
    small = make(btb=4, gh=gh, gt=gt).stats().size
    large = make(btb=8, gh=gh, gt=gt).stats().size
    assert large > small


def test_stats_can_be_read_repeatedly():
    p = make()
    p.update(0x10, 0x20, True, 0x14)
    expected = Stats(flush_num=1, br_num=1, size=196)
    assert p.stats() == expected
    assert p.stats() == expected


@pytest.mark.parametrize(
    "kwargs",
    [
        {"btb": 0},
        {"hist": 9},
        {"hist": -1},
        {"fsm": 4},
        {"tag": 40},
        {"share": 3},
    ],
)
def test_invalid_configuration_raises(kwargs):
    with pytest.raises(ValueError):
        make(**kwargs)