"""OpenTelemetry spans around resource loading.

Span names:

- ``refdata.initialize``    one per :meth:`ResourceService.initialize`
- ``refdata.reload_all``    one per :meth:`StoreRegistry.reload_all`
- ``refdata.store.reload``  one per store reload, tagged with the type name

Without a configured SDK the tracer is a no-op.
"""
import logging
from collections.abc import Mapping
from contextlib import contextmanager
from typing import Any, Iterator

from opentelemetry import trace
from opentelemetry.trace import Span, SpanKind, Status, StatusCode, Tracer

logger = logging.getLogger(__name__)

TRACER_NAME = "refdata"

SPAN_INITIALIZE = "refdata.initialize"
SPAN_RELOAD_ALL = "refdata.reload_all"
SPAN_STORE_RELOAD = "refdata.store.reload"

_SCALARS = (bool, str, int, float)


def get_tracer() -> Tracer:
    return trace.get_tracer(TRACER_NAME)


def _set(current: Span, key: str, value: Any) -> None:
    if value is None:
        return
    if isinstance(value, (list, tuple)):
        value = [str(v) for v in value]
    elif not isinstance(value, _SCALARS):
        value = str(value)
    try:
        current.set_attribute(key, value)
    except Exception:
        # a rejected attribute must not fail the reload
        logger.debug("Span attribute %s rejected", key, exc_info=True)


def record_report(current: Span, report: Any) -> None:
    """Tag ``current`` with the outcome of a batch reload.

    ``report`` is a :class:`~refdata.registry.ReloadReport`; failed type names
    go into ``refdata.failed_types`` and the span is marked as an error when
    any type failed.
    """
    _set(current, "refdata.loaded", len(report.loaded))
    _set(current, "refdata.failed", len(report.failed))
    if report.failed:
        _set(current, "refdata.failed_types", sorted(report.failed))
        current.set_status(Status(StatusCode.ERROR, description=f"{len(report.failed)} resource types failed"))


@contextmanager
def span(name: str, *, attributes: Mapping[str, Any] | None = None) -> Iterator[Span]:
    """Run the block inside span ``name``.

    An exception escaping the block is recorded on the span and re-raised::

        with span(SPAN_STORE_RELOAD, attributes={"refdata.type": "Item"}) as s:
            s.set_attribute("refdata.records", count)
    """
    with get_tracer().start_as_current_span(
        name, kind=SpanKind.INTERNAL, record_exception=False, set_status_on_exception=False
    ) as current:
        for key, value in (attributes or {}).items():
            _set(current, key, value)
        try:
            yield current
        except Exception as err:
            current.record_exception(err)
            current.set_status(Status(StatusCode.ERROR, description=str(err)))
            _set(current, "refdata.error", type(err).__name__)
            raise


__all__ = [
    "SPAN_INITIALIZE",
    "SPAN_RELOAD_ALL",
    "SPAN_STORE_RELOAD",
    "TRACER_NAME",
    "get_tracer",
    "record_report",
    "span",
]
