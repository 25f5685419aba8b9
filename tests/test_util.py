import threading

from znet.util import get_fiber_id, get_thread_id, to_lower


def test_to_lower_level_name():
    assert to_lower("ERROR") == "error"


def test_to_lower_mixed_case_and_digits():
    assert to_lower("Root.Log_2") == "root.log_2"


def test_to_lower_is_idempotent():
    text = "Some MIXED Text 123"
    assert to_lower(to_lower(text)) == to_lower(text)


def test_to_lower_leaves_non_ascii_untouched():
    assert to_lower("ÄBC") == "Äbc"


def test_fiber_id_is_zero():
    assert get_fiber_id() == 0


def test_thread_id_matches_native_id():
    assert get_thread_id() == threading.get_native_id()


def test_thread_id_differs_between_threads():
    seen = []
    worker = threading.Thread(target=lambda: seen.append(get_thread_id()))
    worker.start()
    worker.join()
    assert seen == [worker.native_id]
    assert get_thread_id() == threading.main_thread().native_id