import logging

logger = logging.getLogger(__name__)

CR = b"\r"
CTRL_A = b"\x01"  # enter raw REPL
CTRL_B = b"\x02"  # exit raw REPL (friendly REPL)
CTRL_C = b"\x03"  # interrupt
CTRL_D = b"\x04"  # end of transmission / soft reset


class RawRepl:
    """Raw REPL mode switching over a write-only channel.

    The device never acknowledges these writes, so `active` records what was
    last requested, not what the board is known to be in.
    """

    def __init__(self, write):
        self._write = write
        self.active = False

    def enter(self):
        self._write(CR + CTRL_A)
        self.active = True
        logger.debug("raw REPL: enter")

    def exit(self):
        self._write(CTRL_D + CTRL_B)
        self.active = False
        logger.debug("raw REPL: exit")

    def interrupt(self):
        self._write(CR + CTRL_C)

    def soft_reset(self):
        self.interrupt()
        self._write(CTRL_D)
        logger.debug("soft reset requested")
