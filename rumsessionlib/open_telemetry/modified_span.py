from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.util.types import Attributes


class ModifiedReadableSpan(ReadableSpan):
    """
    A finished span with a replacement attribute mapping.

    Carries every other field of the original span unchanged. The original span is
    never mutated.
    """

    def __init__(self, original: ReadableSpan, attributes: Attributes) -> None:
        super().__init__(
            name=original.name,
            context=original.context,
            parent=original.parent,
            resource=original.resource,
            attributes=attributes,
            events=original.events,
            links=original.links,
            kind=original.kind,
            status=original.status,
            start_time=original.start_time,
            end_time=original.end_time,
            instrumentation_scope=original.instrumentation_scope,
        )
        self._original = original

    @property
    def original(self) -> ReadableSpan:
        return self._original

    # events and links are copied as plain tuples, which lose the bounded-list counters
    @property
    def dropped_events(self) -> int:
        return self._original.dropped_events

    @property
    def dropped_links(self) -> int:
        return self._original.dropped_links
