from listingstamp.config import DEFAULT_CONFIG, get_config_path, load_config, write_default_config


def test_load_config_merges_and_clamps(tmp_path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(
        "preview_scale: 5\n"
        "output_format: JPG\n"
        "default_logos:\n"
        "  primary_logo: https://cdn.example.com/brand.png\n",
        encoding="utf-8",
    )
    cfg = load_config(path)
    assert cfg["preview_scale"] == 1.0
    assert cfg["output_format"] == "jpeg"
    assert cfg["default_logos"] == {"primary_logo": "https://cdn.example.com/brand.png", "secondary_logo": None}
    assert cfg["template"] == DEFAULT_CONFIG["template"]


def test_missing_config_uses_defaults(tmp_path) -> None:
    cfg = load_config(tmp_path / "absent.yaml")
    assert cfg["export_resolution"] == 1080
    assert cfg["debounce_ms"] == 350


def test_config_path_env_override_and_init(tmp_path, monkeypatch) -> None:
    target = tmp_path / "nested" / "listingstamp.yaml"
    monkeypatch.setenv("LISTINGSTAMP_CONFIG", str(target))
    assert get_config_path() == target
    written = write_default_config()
    assert written == target
    assert load_config()["template"] == "navy_header"
