from upyserial.raw_repl import RawRepl


def make():
    writes = []
    return RawRepl(writes.append), writes


def test_enter_sends_cr_ctrl_a():
    repl, writes = make()
    repl.enter()
    assert writes == [b"\r\x01"]
    assert repl.active


def test_exit_sends_eot_ctrl_b():
    repl, writes = make()
    repl.enter()
    repl.exit()
    assert writes[-1] == b"\x04\x02"
    assert not repl.active


def test_interrupt_sends_cr_ctrl_c():
    repl, writes = make()
    repl.interrupt()
    assert writes == [b"\r\x03"]
    assert not repl.active


def test_soft_reset_interrupts_then_sends_bare_eot():
    repl, writes = make()
    repl.soft_reset()
    assert writes == [b"\r\x03", b"\x04"]
