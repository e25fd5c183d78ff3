import os

from todo_app import theme


def test_theme_file_exists():
    assert os.path.isfile(theme.THEME_FILE)


def test_set_theme():
    try:
        theme.set_theme(page_title="Tasks")
    except Exception as e:
        assert False, f"set_theme raised an exception: {e}"


def test_missing_stylesheet_is_reported(tmp_path, caplog):
    assert theme._read_css(str(tmp_path / "nope.css")) is None
    assert "theme file not found" in caplog.text
    assert theme._read_css(theme.THEME_FILE)
