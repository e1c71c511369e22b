"""Error conditions raised by the ledger engine."""


class InvalidState(ValueError):
    """A seed value or balance the engine cannot work with.

    Raised instead of silently treating the value as zero, which would
    corrupt every later period built on top of it.
    """


class BalanceMismatch(InvalidState):
    """The running balance and the period summary disagree on the closing balance."""

    def __init__(self, running_closing, summary_closing):
        self.running_closing = running_closing
        self.summary_closing = summary_closing
        super().__init__(
            f"Closing balance mismatch: running balance gives {running_closing}, "
            f"summary gives {summary_closing}"
        )
