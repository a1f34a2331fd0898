"""
Tests for the command-line interface.

测试命令行接口。
"""

import json
import logging
import sys
from pathlib import Path
from typing import Iterator

import pytest
import yaml
from loguru import logger as loguru_logger
from typer.testing import CliRunner

from hotconf.main import cli


@pytest.fixture(autouse=True)
def restore_logging() -> Iterator[None]:
    """命令结束后恢复日志输出"""
    yield
    loguru_logger.remove()
    loguru_logger.add(sys.stderr)
    logging.basicConfig(handlers=[logging.NullHandler()], force=True)


class TestMainCLI:
    """测试主CLI功能"""

    def setup_method(self) -> None:
        """测试前设置"""
        self.runner = CliRunner()

    def test_cli_help_command(self) -> None:
        """测试CLI帮助命令"""
        result = self.runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Hot-reloadable" in result.output

    def test_drivers_command(self) -> None:
        """测试列出驱动"""
        result = self.runner.invoke(cli, ["drivers"])
        assert result.exit_code == 0
        names = result.stdout.split()
        assert {"file", "database", "rest"} <= set(names)

    def test_parse_command(self) -> None:
        """测试解析命令"""
        result = self.runner.invoke(cli, ["parse", r"host=localhost;pass=a\;b;"])
        assert result.exit_code == 0
        assert json.loads(result.stdout) == {"host": "localhost", "pass": "a;b"}

    def test_parse_command_text_output(self) -> None:
        """测试解析命令的文本输出"""
        result = self.runner.invoke(cli, ["parse", "a=1;b=2;", "--output", "text"])
        assert result.exit_code == 0
        assert result.stdout.splitlines()[:2] == ["a=1", "b=2"]

    def test_parse_command_error(self) -> None:
        """测试解析失败"""
        result = self.runner.invoke(cli, ["parse", "key=value;pass=abc=wrong;"])
        assert result.exit_code == 1
        assert "Parse failed" in result.output

    def test_show_command(self, tmp_path: Path) -> None:
        """测试显示配置"""
        path = tmp_path / "app.yaml"
        path.write_text("server:\n  host: h\n  port: 1\n")

        result = self.runner.invoke(cli, ["show", str(path), "--section", "server"])

        assert result.exit_code == 0
        assert json.loads(result.stdout) == {"host": "h", "port": 1}

    def test_show_command_yaml_output(self, tmp_path: Path) -> None:
        """测试以 YAML 输出"""
        path = tmp_path / "app.json"
        path.write_text('{"a": {"b": 1}}')

        result = self.runner.invoke(cli, ["show", str(path), "-o", "yaml"])

        assert result.exit_code == 0
        assert yaml.safe_load(result.stdout) == {"a": {"b": 1}}

    def test_show_command_missing_file(self, tmp_path: Path) -> None:
        """测试显示不存在的文件"""
        result = self.runner.invoke(cli, ["show", str(tmp_path / "missing.json")])
        assert result.exit_code == 1
        assert "Cannot show" in result.output

    def test_convert_command(self, tmp_path: Path) -> None:
        """测试格式转换"""
        source = tmp_path / "app.json"
        target = tmp_path / "app.yaml"
        source.write_text('{"server": {"port": 8080}}')

        result = self.runner.invoke(cli, ["convert", str(source), str(target)])

        assert result.exit_code == 0
        assert yaml.safe_load(target.read_text()) == {"server": {"port": 8080}}

    def test_convert_command_unknown_target(self, tmp_path: Path) -> None:
        """测试转换到未知格式"""
        source = tmp_path / "app.json"
        source.write_text("{}")

        result = self.runner.invoke(cli, ["convert", str(source), str(tmp_path / "app.ini")])

        assert result.exit_code == 1
        assert "Conversion failed" in result.output

    def test_watch_command(self, tmp_path: Path) -> None:
        """测试监控命令"""
        path = tmp_path / "app.json"
        path.write_text('{"server": {"port": 8080}}')

        result = self.runner.invoke(cli, [
            "watch", "--props", f"fileName={path};eventDelay=50ms;",
            "--section", "server", "--duration", "0.1",
        ])

        assert result.exit_code == 0
        assert json.loads(result.stdout) == {"port": 8080}

    def test_watch_command_env_props(self, tmp_path: Path) -> None:
        """测试通过环境变量传递属性"""
        path = tmp_path / "app.json"
        path.write_text('{"a": 1}')

        result = self.runner.invoke(
            cli, ["watch", "--duration", "0.1"],
            env={"HOTCONF_PROPS": f"fileName={path};", "HOTCONF_DRIVER": "file"})

        assert result.exit_code == 0
        assert json.loads(result.stdout) == {"a": 1}

    def test_watch_command_unknown_driver(self) -> None:
        """测试未知驱动"""
        result = self.runner.invoke(
            cli, ["watch", "--driver", "etcd", "--props", "a=b;", "--duration", "0"])
        assert result.exit_code == 1
        assert "Cannot connect driver etcd" in result.output
