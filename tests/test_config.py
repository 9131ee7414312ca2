import pytest

from lightpack import Lightpack, LightpackConfig, load_config
from lightpack.cli import build_parser, resolve_config, run

from .conftest import fake_controller


def test_load_config(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("lightpack:\n  host: 192.168.1.20\n  port: '3637'\n  api_key: 1234\n")
    config = load_config(path)
    assert config == LightpackConfig(host="192.168.1.20", port=3637, api_key="1234")

    lp = config.session()
    assert isinstance(lp, Lightpack)
    assert (lp.host, lp.port, lp.api_key) == ("192.168.1.20", 3637, "1234")


def test_load_config_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("other: {}\n")
    assert load_config(path) == LightpackConfig()


def test_load_config_rejects_unknown_keys(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("lightpack:\n  hostname: x\n")
    with pytest.raises(ValueError):
        load_config(path)


def test_config_rejects_bad_port():
    with pytest.raises(ValueError):
        LightpackConfig(port=70000)


def test_cli_flags_override_config(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("lightpack:\n  host: 10.0.0.1\n  api_key: abc\n")
    args = build_parser().parse_args(["--config", str(path), "--port", "4000", "--traffic", "colour", "1", "2", "3", "--led", "0"])
    config = resolve_config(args)
    assert config == LightpackConfig(host="10.0.0.1", port=4000, api_key="abc", print_traffic=True)
    assert args.rgb == [1, 2, 3]
    assert args.led == 0


@pytest.mark.asyncio
async def test_cli_run_against_controller(capsys):
    replies = {"lock": "ok", "unlock": "ok", "setbrightness": "ok"}
    async with fake_controller(replies) as ctl:
        args = build_parser().parse_args(["--host", ctl.host, "--port", str(ctl.port), "brightness", "40"])
        assert await run(args) == 0
    assert ctl.received == ["lock", "setbrightness:40", "unlock"]


@pytest.mark.asyncio
async def test_cli_run_reports_protocol_errors(capsys):
    async with fake_controller({"getprofiles": "authorization required"}) as ctl:
        args = build_parser().parse_args(["--host", ctl.host, "--port", str(ctl.port), "profiles"])
        assert await run(args) == 1
    assert "AuthenticationRequiredError" in capsys.readouterr().out
