"""
Event sinks.
"""

from evosim.events import (
    SimEvent, EventCategory, EventLevel, NullEventSink, PrintEventSink, MemoryEventSink
)


def _event(tick, category=EventCategory.POPULATION, level=EventLevel.INFO, message="msg"):
    return SimEvent(tick=tick, category=category, message=message, level=level)


def test_memory_sink_is_bounded():
    sink = MemoryEventSink(max_events=5)
    for t in range(12):
        sink.record(_event(t))
    assert len(sink) == 5
    assert [e.tick for e in sink.get_recent(3)] == [9, 10, 11]
    sink.clear()
    assert len(sink) == 0


def test_memory_sink_filters():
    sink = MemoryEventSink()
    sink.record(_event(1, EventCategory.COMBAT, EventLevel.INFO))
    sink.record(_event(2, EventCategory.COMBAT, EventLevel.DEBUG))
    sink.record(_event(3, EventCategory.FEEDING, EventLevel.INFO))
    sink.record(_event(4, EventCategory.COMBAT, EventLevel.INFO))

    assert [e.tick for e in sink.get_events(category=EventCategory.COMBAT)] == [1, 2, 4]
    assert [e.tick for e in sink.get_events(level=EventLevel.INFO)] == [1, 3, 4]
    assert [e.tick for e in sink.get_events(category=EventCategory.COMBAT, limit=1)] == [4]


def test_print_sink_format_and_filtering(capsys):
    sink = PrintEventSink(min_level=EventLevel.INFO, categories=[EventCategory.POPULATION])
    sink.record(_event(120, EventCategory.POPULATION, EventLevel.WARNING, "crowded"))
    sink.record(_event(121, EventCategory.POPULATION, EventLevel.DEBUG, "hidden"))
    sink.record(_event(122, EventCategory.COMBAT, EventLevel.CRITICAL, "other category"))

    out = capsys.readouterr().out.strip().splitlines()
    assert out == ["[WARN] t=120 population: crowded"]


def test_null_sink_accepts_everything():
    NullEventSink().record(_event(0))


def test_event_to_dict():
    event = SimEvent(tick=5, category=EventCategory.CARRION, message="decayed",
                     level=EventLevel.DEBUG, data={'energy': 3.0})
    assert event.to_dict() == {
        'tick': 5, 'category': 'carrion', 'level': 'debug',
        'message': 'decayed', 'data': {'energy': 3.0},
    }
