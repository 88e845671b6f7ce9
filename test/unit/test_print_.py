import pytest

####

import kcode.print_ as print_module


@pytest.mark.parametrize("printer", ["print_error", "print_warning"])
def test_only_master_prints(printer, monkeypatch, capsys):
    monkeypatch.setattr(print_module, "master", False)
    try:
        getattr(print_module, printer)("bad input")
    except SystemExit:
        pass
    assert capsys.readouterr().out == ""


def test_error_exits_on_every_rank(monkeypatch, capsys):
    for is_master in [True, False]:
        monkeypatch.setattr(print_module, "master", is_master)
        with pytest.raises(SystemExit):
            print_module.print_error("bad input")
    assert "[ERROR]: bad input" in capsys.readouterr().out
