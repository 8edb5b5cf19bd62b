import run_api


def test_main_trusts_only_configured_proxies(monkeypatch):
    calls = []
    monkeypatch.setattr(run_api, "_port_available", lambda host, port: True)
    monkeypatch.setattr(run_api.uvicorn, "run", lambda target, **kw: calls.append((target, kw)))

    assert run_api.main([]) == 0
    target, kwargs = calls[0]
    assert target == "api.server:app"
    assert kwargs["proxy_headers"] is True
    assert kwargs["forwarded_allow_ips"] == "127.0.0.1"


def test_main_exits_without_credential(monkeypatch):
    from app.config import Settings

    monkeypatch.setattr(run_api, "get_settings", lambda: Settings(OPENAI_API_KEY=""))
    calls = []
    monkeypatch.setattr(run_api.uvicorn, "run", lambda *a, **kw: calls.append(a))
    assert run_api.main([]) == 1
    assert calls == []
