import httpx
import pytest

from xads import auth, cli
from xads.client import XAdsClient
from xads.errors import OAuthFlowError


def write_env(tmp_path, content: str):
    env_file = tmp_path / ".env"
    env_file.write_text(content, encoding="utf-8")
    return env_file


FULL_ENV = "X_API_KEY=ck\nX_API_SECRET=cs\nX_ACCESS_TOKEN=at\nX_ACCESS_TOKEN_SECRET=ats\n"


def patch_transport(monkeypatch, handler) -> None:
    def client_factory(settings):
        return XAdsClient(settings, http_client=httpx.Client(transport=httpx.MockTransport(handler)))

    monkeypatch.setattr(auth, "XAdsClient", client_factory)


def test_status_prints_api_errors_and_fails(tmp_path, monkeypatch, capsys) -> None:
    env_file = write_env(tmp_path, FULL_ENV)
    patch_transport(monkeypatch, lambda request: httpx.Response(200, json={"errors": [{"message": "Rate limit", "code": 88}]}))

    exit_code = cli.main(["--env-file", str(env_file), "auth", "status"])

    assert exit_code == 1
    err = capsys.readouterr().err
    assert "Error: Rate limit (code: 88)" in err
    assert "x-ads auth" in err


def test_status_success(tmp_path, monkeypatch, capsys) -> None:
    env_file = write_env(tmp_path, FULL_ENV + "X_AD_ACCOUNT_ID=a2\n")
    patch_transport(monkeypatch, lambda request: httpx.Response(200, json={"data": [{"id": "a1", "name": "One"}, {"id": "a2", "name": "Two"}]}))

    exit_code = cli.main(["--env-file", str(env_file), "auth", "status"])

    assert exit_code == 0
    out = capsys.readouterr().out
    assert "Accounts: 2 ad accounts accessible" in out
    assert " *a2" in out


def test_status_reports_missing_configuration(tmp_path, capsys) -> None:
    env_file = write_env(tmp_path, "X_API_KEY=ck\n")

    exit_code = cli.main(["--env-file", str(env_file), "auth", "status"])

    assert exit_code == 1
    err = capsys.readouterr().err
    assert "Missing required environment variables: X_API_SECRET, X_ACCESS_TOKEN, X_ACCESS_TOKEN_SECRET" in err


@pytest.mark.parametrize("argv", [["auth"], ["auth", "login"]])
def test_login_is_default(tmp_path, monkeypatch, argv) -> None:
    env_file = write_env(tmp_path, "X_API_KEY=ck\nX_API_SECRET=cs\n")
    seen = []
    monkeypatch.setattr(cli, "run_auth", seen.append)

    assert cli.main(["--env-file", str(env_file), *argv]) == 0
    assert seen[0].consumer_key == "ck"
    assert seen[0].env_file == env_file


def test_login_failure_exits_non_zero(tmp_path, monkeypatch, capsys) -> None:
    env_file = write_env(tmp_path, "X_API_KEY=ck\nX_API_SECRET=cs\n")

    def failing(settings):
        raise OAuthFlowError("Failed to get request token", 401, "Could not authenticate you.")

    monkeypatch.setattr(cli, "run_auth", failing)

    assert cli.main(["--env-file", str(env_file), "auth"]) == 1
    assert "Failed to get request token: 401 Could not authenticate you." in capsys.readouterr().err


def test_interrupt_returns_130(tmp_path, monkeypatch) -> None:
    env_file = write_env(tmp_path, "X_API_KEY=ck\nX_API_SECRET=cs\n")

    def interrupted(settings):
        raise KeyboardInterrupt

    monkeypatch.setattr(cli, "run_auth", interrupted)

    assert cli.main(["--env-file", str(env_file), "auth", "login"]) == 130


def test_version(capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--version"])
    assert excinfo.value.code == 0
    assert "x-ads 0.1.0" in capsys.readouterr().out


def test_login_reports_unwritable_credential_file(tmp_path, monkeypatch, capsys) -> None:
    env_file = write_env(tmp_path, "X_API_KEY=ck\nX_API_SECRET=cs\n")

    def failing(settings):
        raise PermissionError(13, "Permission denied", str(settings.env_file))

    monkeypatch.setattr(cli, "run_auth", failing)

    assert cli.main(["--env-file", str(env_file), "auth", "login"]) == 1
    assert "Permission denied" in capsys.readouterr().err
