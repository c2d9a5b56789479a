from toolserver.scripts import run_server


class _FakeServer:
    def __init__(self):
        self.transports = []

    def run(self, transport):
        self.transports.append(transport)


def test_main_prints_banner_to_stderr_and_runs_stdio(registry, monkeypatch, capsys):
    server = _FakeServer()
    monkeypatch.setattr("toolserver.mcp.server.get_registry", lambda: registry)
    monkeypatch.setattr("toolserver.mcp.server.build_server", lambda reg, settings: server)

    run_server.main()

    captured = capsys.readouterr()
    assert server.transports == ["stdio"]
    assert run_server.BANNER in captured.err
    assert run_server.BANNER not in captured.out


class _RecordingLogger:
    def __init__(self):
        self.events = []

    def info(self, event, **fields):
        self.events.append((event, fields))


def test_startup_event_lists_env_file_candidates(registry, monkeypatch):
    logger = _RecordingLogger()
    monkeypatch.setattr("toolserver.mcp.server.get_registry", lambda: registry)
    monkeypatch.setattr("toolserver.mcp.server.build_server", lambda reg, settings: _FakeServer())
    monkeypatch.setattr("toolserver.core.logging_config.get_logger", lambda *args: logger)
    monkeypatch.setattr(
        "toolserver.scripts.run_server.env_file_candidates",
        lambda: ("/etc/toolserver/.env", ".env"),
    )

    run_server.main()

    event, fields = logger.events[0]
    assert event == "server_starting"
    assert fields["env_candidates"] == ["/etc/toolserver/.env", ".env"]
    assert logger.events[-1] == ("server_shutdown", {})
