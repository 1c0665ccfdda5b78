from streamrelay.config import Settings, _resolve_env_file


def test_allowlist_parses_csv_values():
    settings = Settings(allowed_hosts=' pixeldrain.dev, GoFile.io ,,', allowed_hosts_file='')
    assert settings.allowlist == frozenset({'pixeldrain.dev', 'gofile.io'})


def test_allowlist_defaults_cover_media_hosts():
    settings = Settings(allowed_hosts_file='')
    assert 'pixeldrain.dev' in settings.allowlist
    assert 'files002.tusdrive.top' in settings.allowlist
    assert len(settings.allowlist) == 8


def test_allowlist_merges_hosts_file(tmp_path):
    hosts = tmp_path / 'hosts.txt'
    hosts.write_text('# trusted mirrors\nmirror.example.net\n\ncdn.example.org  # eu\n')
    settings = Settings(allowed_hosts='pixeldrain.dev', allowed_hosts_file=str(hosts))
    assert settings.allowlist == frozenset({'pixeldrain.dev', 'mirror.example.net', 'cdn.example.org'})


def test_empty_allowlist_warns(caplog):
    settings = Settings(allowed_hosts=' ', allowed_hosts_file='')
    assert settings.allowlist == frozenset()
    with caplog.at_level('WARNING', logger='config'):
        settings.warn_insecure_defaults()
    assert 'Allowlist is empty' in caplog.text


def test_settings_read_from_environment(monkeypatch):
    monkeypatch.setenv('ALLOWED_HOSTS', 'a.example.com')
    monkeypatch.setenv('UPSTREAM_READ_TIMEOUT_S', '12.5')
    settings = Settings()
    assert settings.allowlist == frozenset({'a.example.com'})
    assert settings.upstream_read_timeout_s == 12.5


def test_env_file_override_resolves_relative_to_project_root(monkeypatch):
    monkeypatch.setenv('STREAM_RELAY_ENV_FILE', 'deploy/relay.env')
    path = _resolve_env_file()
    assert path.is_absolute()
    assert path.parts[-2:] == ('deploy', 'relay.env')
