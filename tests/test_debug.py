from minnow.debug import debug, debug_str, reset_debug_handler, set_debug_handler


def test_custom_handler_receives_formatted_message():
    captured = []
    set_debug_handler(captured.append)
    try:
        debug("value={} name={}", 3, "x")
    finally:
        reset_debug_handler()
    assert captured == ["value=3 name=x"]


def test_keyword_formatting():
    captured = []
    set_debug_handler(captured.append)
    try:
        debug("{a}-{b}", a=1, b=2)
    finally:
        reset_debug_handler()
    assert captured == ["1-2"]


def test_debug_str_passes_message_unchanged():
    captured = []
    set_debug_handler(captured.append)
    try:
        debug_str("raw {message}")
    finally:
        reset_debug_handler()
    assert captured == ["raw {message}"]


def test_default_handler_writes_to_stderr(capsys):
    reset_debug_handler()
    debug_str("hello")
    assert capsys.readouterr().err == "DEBUG: hello\n"


def test_reset_stops_custom_handler(capsys):
    captured = []
    set_debug_handler(captured.append)
    reset_debug_handler()
    debug("after {}", "reset")
    assert captured == []
    assert capsys.readouterr().err == "DEBUG: after reset\n"