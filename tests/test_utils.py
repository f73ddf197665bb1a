"""Unit tests for netscaffold.utils.

Tests cover:
- run_command (real subprocesses: echo, exit codes, timeout)
- format_command
- Identifier and case helpers
- File-system helpers
- format_duration
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from netscaffold.utils import (
    ensure_dir,
    format_command,
    format_duration,
    is_identifier,
    list_source_files,
    run_command,
    to_camel_case,
    to_pascal_case,
    write_text,
)


# ---------------------------------------------------------------------------
# run_command
# ---------------------------------------------------------------------------


class TestRunCommand:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_list_command_captures_stdout(self):
        code, out, err = await run_command([sys.executable, "-c", "print('hello')"])
        assert code == 0
        assert out == "hello"
        assert err == ""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_nonzero_exit_code(self):
        code, _, err = await run_command(
            [sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(3)"]
        )
        assert code == 3
        assert err == "boom"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_timeout_returns_minus_one(self):
        code, _, err = await run_command(
            [sys.executable, "-c", "import time; time.sleep(5)"], timeout=1
        )
        assert code == -1
        assert "timed out" in err

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_cwd_is_used(self, tmp_path: Path):
        code, out, _ = await run_command(
            [sys.executable, "-c", "import os; print(os.getcwd())"], cwd=tmp_path
        )
        assert code == 0
        assert Path(out).resolve() == tmp_path.resolve()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_executable_raises(self):
        with pytest.raises(FileNotFoundError):
            await run_command(["definitely-not-a-real-binary-xyz"])


class TestFormatCommand:
    @pytest.mark.unit
    def test_string_passthrough(self):
        assert format_command("dotnet --version") == "dotnet --version"

    @pytest.mark.unit
    def test_quotes_arguments_with_spaces(self):
        assert format_command(["dotnet", "new", "--output", "My App"]) == 'dotnet new --output "My App"'


# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------


class TestIdentifiers:
    @pytest.mark.unit
    @pytest.mark.parametrize("name", ["Product", "_private", "Order2", "a"])
    def test_valid(self, name: str):
        assert is_identifier(name)

    @pytest.mark.unit
    @pytest.mark.parametrize("name", ["", "2Fast", "Bad-Name", "With Space", "Drop;Table"])
    def test_invalid(self, name: str):
        assert not is_identifier(name)

    @pytest.mark.unit
    def test_to_camel_case(self):
        assert to_camel_case("ProductName") == "productName"
        assert to_camel_case("") == ""

    @pytest.mark.unit
    def test_to_pascal_case(self):
        assert to_pascal_case("order-item") == "OrderItem"
        assert to_pascal_case("order_item") == "OrderItem"
        assert to_pascal_case("orderItem") == "OrderItem"


# ---------------------------------------------------------------------------
# File system
# ---------------------------------------------------------------------------


class TestFileSystem:
    @pytest.mark.unit
    def test_ensure_dir_creates_parents(self, tmp_path: Path):
        result = ensure_dir(tmp_path / "a" / "b")
        assert result.is_dir()

    @pytest.mark.unit
    def test_write_text_creates_parents(self, tmp_path: Path):
        target = tmp_path / "x" / "y" / "File.cs"
        write_text(target, "class X {}")
        assert target.read_text(encoding="utf-8") == "class X {}"

    @pytest.mark.unit
    def test_list_source_files_skips_build_output(self, tmp_path: Path):
        write_text(tmp_path / "Data" / "Context.cs", "")
        write_text(tmp_path / "Repo.cs", "")
        write_text(tmp_path / "bin" / "Debug" / "Gen.cs", "")
        write_text(tmp_path / "obj" / "Assembly.cs", "")
        write_text(tmp_path / "notes.txt", "")

        assert list_source_files(tmp_path) == ["Data/Context.cs", "Repo.cs"]

    @pytest.mark.unit
    def test_list_source_files_missing_root(self, tmp_path: Path):
        assert list_source_files(tmp_path / "missing") == []


class TestFormatDuration:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        "seconds,expected",
        [(3.7, "3.7s"), (65.2, "1m 5s"), (3661.0, "1h 1m 1s"), (-1, "0.0s")],
    )
    def test_format(self, seconds: float, expected: str):
        assert format_duration(seconds) == expected
