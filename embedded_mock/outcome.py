"""Single-assignment futures used for engine startup."""

from __future__ import annotations

import logging
from concurrent.futures import Future, InvalidStateError
from typing import Any


log = logging.getLogger("embedded_mock.outcome")


class OnceFuture(Future):
    """A ``Future`` that settles once and ignores later attempts.

    ``Future.set_result`` already refuses a second assignment by raising
    ``InvalidStateError``; ``resolve``/``reject`` turn that into a ``False``
    return so a late completion can never replace the first value.
    Cancellation is not supported.
    """

    def resolve(self, value: Any) -> bool:
        try:
            self.set_result(value)
        except InvalidStateError:
            log.debug("Ignoring late result for already settled %r", self)
            return False
        return True

    def reject(self, exc: BaseException) -> bool:
        try:
            self.set_exception(exc)
        except InvalidStateError:
            log.debug("Ignoring late failure %r for already settled %r", exc, self)
            return False
        return True

    def cancel(self) -> bool:
        return False


class StartOutcome(OnceFuture):
    """Resolves to a ``MockEngine`` or fails with ``EngineStartError``."""
