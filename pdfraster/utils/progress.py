"""Progress reporting for page-by-page conversions."""

from __future__ import annotations

from typing import Protocol

from tqdm import tqdm


class ProgressReporter(Protocol):
    """Receives one ``increment`` per finished page, in page order."""

    def start(self, total: int) -> None: ...

    def increment(self, page_number: int | None = None) -> None: ...

    def close(self) -> None: ...


class TqdmProgressReporter:
    """tqdm bar counting pages, showing the last page written as a postfix."""

    def __init__(self, desc: str) -> None:
        self._desc = desc
        self._pbar: tqdm | None = None

    @property
    def completed(self) -> int:
        return self._pbar.n if self._pbar is not None else 0

    def start(self, total: int) -> None:
        self._pbar = tqdm(total=total, desc=self._desc, unit="page", leave=False)

    def increment(self, page_number: int | None = None) -> None:
        if self._pbar is None:
            return
        if page_number is not None:
            self._pbar.set_postfix(page=page_number, refresh=False)
        self._pbar.update(1)

    def close(self) -> None:
        if self._pbar is not None:
            self._pbar.close()
            self._pbar = None


__all__ = ["ProgressReporter", "TqdmProgressReporter"]
