"""Progress display for conformance runs.

A run can check hundreds of cases; CaseProgress draws a progressbar2 bar
with a running failure count. Writes to stdout so the bar interleaves with
the loguru console handler.
"""

import sys

import progressbar


class CaseProgress:
    """Context manager reporting per-case progress.

    Args:
        total: Number of cases in the run.
        desc: Label shown before the counter.
        enabled: When False every method is a no-op, so callers don't need
            separate code paths for quiet runs.

    Example:
        >>> with CaseProgress(len(cases), "Conformance") as progress:
        ...     for case in cases:
        ...         progress.advance(failed=not check(case))
    """

    def __init__(self, total: int, desc: str = "", enabled: bool = True) -> None:
        self.total = total
        self.desc = desc
        self.enabled = enabled
        self.done = 0
        self.failed = 0
        self._bar = None

    def __enter__(self) -> "CaseProgress":
        if self.enabled:
            widgets = [
                f"{self.desc}: " if self.desc else "",
                progressbar.Counter(),
                f"/{self.total} ",
                progressbar.Bar(),
                " ",
                progressbar.Variable("failed", format="failed={formatted_value}"),
                " ",
                progressbar.ETA(),
            ]
            self._bar = progressbar.ProgressBar(
                max_value=self.total, widgets=widgets, fd=sys.stdout
            )
            self._bar.start()
        return self

    def advance(self, failed: bool = False) -> None:
        """Mark one case done."""
        self.done += 1
        if failed:
            self.failed += 1
        if self._bar is not None:
            self._bar.update(self.done, failed=self.failed)

    def __exit__(self, exc_type, exc, tb) -> None:
        # finish even on error so the terminal isn't left mid-line
        if self._bar is not None:
            self._bar.finish()
            self._bar = None
