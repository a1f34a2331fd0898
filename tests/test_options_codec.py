"""
Tests for JSON, HJSON and YAML documents.

测试 JSON、HJSON 和 YAML 文档的读写。
"""

import io
import json
from pathlib import Path

import pytest
import yaml

from hotconf.core.exceptions import FormatError
from hotconf.core.options import Options
from hotconf.core.options.codec import (
    FORMAT_HJSON,
    FORMAT_JSON,
    FORMAT_YAML,
    from_file,
    from_reader,
    from_text,
    normalize_format,
    to_file,
    to_text,
)


class TestNormalizeFormat:
    """测试格式名称解析"""

    def test_explicit_formats(self) -> None:
        """测试显式格式"""
        assert normalize_format("json") == FORMAT_JSON
        assert normalize_format("HJSON") == FORMAT_HJSON
        assert normalize_format("yml") == FORMAT_YAML

    def test_inferred_from_extension(self) -> None:
        """测试根据扩展名推断"""
        assert normalize_format("", "conf/app.json") == FORMAT_JSON
        assert normalize_format("", "app.hjson") == FORMAT_HJSON
        assert normalize_format("", "app.YML") == FORMAT_YAML
        assert normalize_format(None, Path("app.yaml")) == FORMAT_YAML

    def test_explicit_wins_over_extension(self) -> None:
        """测试显式格式优先"""
        assert normalize_format("hjson", "app.json") == FORMAT_HJSON

    def test_unsupported(self) -> None:
        """测试不支持的格式"""
        with pytest.raises(FormatError):
            normalize_format("xml")
        with pytest.raises(FormatError):
            normalize_format("", "app.txt")
        with pytest.raises(FormatError):
            normalize_format("")


class TestDecode:
    """测试文档解码"""

    def test_from_text_json(self) -> None:
        """测试 JSON 文本"""
        options = from_text('{"server": {"port": 8080}}', FORMAT_JSON)
        assert options.get_int("server.port") == 8080

    def test_from_text_hjson(self) -> None:
        """测试 HJSON 宽松语法"""
        text = """
        # comment
        {
          name: service
          port: 8080
          tags: ["a", "b"]
        }
        """
        options = from_text(text, FORMAT_HJSON)
        assert options.get_string("name") == "service"
        assert options.get_int("port") == 8080
        assert options.get_string_array("tags") == ["a", "b"]
        assert type(options.get_object("tags")) is list

    def test_from_text_yaml(self) -> None:
        """测试 YAML 文本"""
        options = from_text("server:\n  host: h\n  debug: true\n", FORMAT_YAML)
        assert options.get_string("server.host") == "h"
        assert options.get_bool("server.debug") is True

    def test_empty_yaml_is_empty(self) -> None:
        """测试空 YAML 文档"""
        assert from_text("", FORMAT_YAML).is_empty()

    def test_invalid_json(self) -> None:
        """测试非法 JSON"""
        with pytest.raises(FormatError):
            from_text("{not json", FORMAT_JSON)

    def test_invalid_yaml(self) -> None:
        """测试非法 YAML"""
        with pytest.raises(FormatError):
            from_text("a: [1, 2", FORMAT_YAML)

    def test_top_level_must_be_object(self) -> None:
        """测试顶层必须是对象"""
        with pytest.raises(FormatError):
            from_text("[1, 2]", FORMAT_JSON)

    def test_from_reader_bytes(self) -> None:
        """测试二进制流"""
        options = from_reader(io.BytesIO(b'{"a": 1}'), FORMAT_JSON)
        assert options.get_int("a") == 1

    def test_from_reader_text(self) -> None:
        """测试文本流"""
        options = from_reader(io.StringIO("a: 1\n"), FORMAT_YAML)
        assert options.get_int("a") == 1

    def test_from_reader_invalid_utf8(self) -> None:
        """测试非 UTF-8 内容"""
        with pytest.raises(FormatError):
            from_reader(io.BytesIO(b"{\"a\": \"\xff\"}"), FORMAT_JSON)


class TestFiles:
    """测试文件读写"""

    def test_from_file_records_path(self, tmp_path: Path) -> None:
        """测试记录文件路径"""
        path = tmp_path / "app.json"
        path.write_text('{"a": 1}')
        options = from_file(path)
        assert options.file_path == str(path)
        assert options.get_int("a") == 1

    def test_from_file_missing(self, tmp_path: Path) -> None:
        """测试文件不存在"""
        with pytest.raises(OSError):
            from_file(tmp_path / "missing.json")

    def test_from_file_invalid_utf8(self, tmp_path: Path) -> None:
        """测试读取非 UTF-8 文件"""
        path = tmp_path / "bin.json"
        path.write_bytes(b"\xff\xfe")
        with pytest.raises(FormatError):
            from_file(path)

    def test_yaml_dates_render_as_text(self, tmp_path: Path) -> None:
        """测试 YAML 日期按 ISO 文本输出"""
        path = tmp_path / "c.yaml"
        path.write_text("when: 2024-01-01\nstamp: 2024-01-01 10:30:00\n")
        options = from_file(path)

        assert options.to_dict() == {"when": "2024-01-01", "stamp": "2024-01-01T10:30:00"}
        assert json.loads(options.as_json())["when"] == "2024-01-01"
        assert yaml.safe_load(to_text(options, "yaml"))["when"] == "2024-01-01"

        to_file(options, path)
        assert from_file(path).get_string("when") == "2024-01-01"

    def test_to_file_json(self, tmp_path: Path) -> None:
        """测试写入 JSON 文件"""
        path = tmp_path / "out.json"
        to_file(Options({"b": 2, "a": {"c": "x"}}), path)
        assert json.loads(path.read_text()) == {"a": {"c": "x"}, "b": 2}
        assert [p.name for p in tmp_path.iterdir()] == ["out.json"]

    def test_to_file_yaml(self, tmp_path: Path) -> None:
        """测试写入 YAML 文件"""
        path = tmp_path / "out.yaml"
        to_file(Options({"server": {"port": 1}}), path)
        assert yaml.safe_load(path.read_text()) == {"server": {"port": 1}}

    def test_to_file_replaces_existing(self, tmp_path: Path) -> None:
        """测试覆盖已有文件"""
        path = tmp_path / "out.hjson"
        path.write_text("{old: 1}")
        to_file(Options({"new": 2}), path)
        options = from_file(path)
        assert options == Options({"new": 2})

    def test_to_text(self) -> None:
        """测试渲染文本"""
        assert json.loads(to_text(Options({"a": 1}))) == {"a": 1}
        assert yaml.safe_load(to_text(Options({"a": 1}), "yaml")) == {"a": 1}
