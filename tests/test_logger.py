import pytest

from world3.utils.logger import logs


def test_catch_returns_result():
    @logs.catch(msg="should not fail")
    def ok(x):
        return x + 1

    assert ok(1) == 2
    assert ok.__name__ == "ok"


def test_catch_reraises():
    """catch 只记录日志，异常继续向上抛出"""

    @logs.catch(msg="boom")
    def bad():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        bad()


def test_warning_echoes_to_console(capsys):
    logs.warning("careful")
    assert "careful" in capsys.readouterr().out
