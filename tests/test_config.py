import pytest

from coachreserve.config import DEFAULT_SITE_URL, load_config


def test_load_config_with_app_section():
    cfg = load_config(
        {
            "supabase": {"url": "https://abc.supabase.co", "anon_key": "anon"},
            "app": {"site_url": "https://book.example.com/", "log_level": "debug"},
        }
    )

    assert cfg.supabase.url == "https://abc.supabase.co"
    assert cfg.supabase.anon_key == "anon"
    assert cfg.app.site_url == "https://book.example.com"
    assert cfg.app.redirect_url == "https://book.example.com/"
    assert cfg.app.log_level == "DEBUG"


def test_app_section_is_optional():
    cfg = load_config({"supabase": {"url": "https://abc.supabase.co", "anon_key": "anon"}})

    assert cfg.app.site_url == DEFAULT_SITE_URL
    assert cfg.app.redirect_url == "http://localhost:8501/"
    assert cfg.app.log_level == "INFO"


def test_missing_supabase_section_raises():
    with pytest.raises(KeyError):
        load_config({"app": {}})
