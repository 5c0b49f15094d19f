"""Tests for stream accumulation."""

from trustle.streaming import StreamBuffer


def test_text_grows_with_each_chunk():
    buffer = StreamBuffer(["Alpha ", "", "beta"])
    seen = []
    for chunk in buffer:
        seen.append((chunk, buffer.text))

    assert seen == [("Alpha ", "Alpha "), ("beta", "Alpha beta")]
    assert buffer.text == "Alpha beta"


def test_drain_is_single_use():
    buffer = StreamBuffer(iter(["a", "b"]))
    seen = []
    assert buffer.drain(seen.append) == "ab"
    assert seen == ["a", "b"]
    assert buffer.drain() == "ab"
