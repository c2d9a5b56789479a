"""Filesystem tools."""

from __future__ import annotations

import json
import os
from pathlib import Path

from pydantic import BaseModel, Field

from ...core.exceptions import HandlerFault
from ...core.types import ToolResult
from ..catalog import catalog
from ..encoder import error_result, text_result
from .utils import existing_path


class ReadFileInput(BaseModel):
    path: str = Field(..., description="Path to the file to read")


class WriteFileInput(BaseModel):
    path: str = Field(..., description="Path to the file to write")
    content: str = Field(..., description="Content to write to the file")
    append: bool = Field(False, description="Whether to append to file (default: false)")


class ListDirectoryInput(BaseModel):
    path: str = Field(
        ".",
        description="Path to the directory to list (default: current directory)",
    )


class FileInfoInput(BaseModel):
    path: str = Field(..., description="Path to check")


class CreateDirectoryInput(BaseModel):
    path: str = Field(..., description="Path of directory to create")
    parents: bool = Field(
        False,
        description="Create parent directories if they don't exist (default: false)",
    )


@catalog.tool(
    name="read_file",
    description="Reads the contents of a file and returns it as text",
    args_model=ReadFileInput,
)
def read_file(args: ReadFileInput) -> str:
    path = existing_path(args.path, "File does not exist")
    if not path.is_file():
        raise HandlerFault(f"Path is not a file: {args.path}")
    # Line endings are returned untouched; undecodable bytes become U+FFFD.
    with open(path, encoding="utf-8", errors="replace", newline="") as handle:
        return handle.read()


@catalog.tool(
    name="write_file",
    description="Writes content to a file. Can either overwrite or append to existing files",
    args_model=WriteFileInput,
)
def write_file(args: WriteFileInput) -> str:
    mode = "a" if args.append else "w"
    with open(args.path, mode, encoding="utf-8", newline="") as handle:
        handle.write(args.content)
    verb = "appended to" if args.append else "wrote"
    return f"Successfully {verb} file: {args.path}"


@catalog.tool(
    name="list_directory",
    description="Lists the contents of a directory",
    args_model=ListDirectoryInput,
)
def list_directory(args: ListDirectoryInput) -> str:
    """
    One line per entry, sorted by name: ``<name>[/] (<size> bytes)``.
    """

    directory = existing_path(args.path, "Directory does not exist")
    if not directory.is_dir():
        raise HandlerFault(f"Path is not a directory: {args.path}")

    lines = []
    for entry in sorted(directory.iterdir(), key=lambda p: p.name):
        suffix = "/" if entry.is_dir() else ""
        lines.append(f"{entry.name}{suffix} ({_size(entry)} bytes)")
    return "\n".join(lines)


@catalog.tool(
    name="file_info",
    description="Checks if a file or directory exists and returns detailed information about it",
    args_model=FileInfoInput,
)
def file_info(args: FileInfoInput) -> str:
    """
    Report existence, type, permissions and size as a JSON object.

    A missing path is not a failure: every flag is simply false.
    """

    path = Path(args.path)
    is_file = path.is_file()
    return json.dumps(
        {
            "exists": path.exists(),
            "is-file": is_file,
            "is-directory": path.is_dir(),
            "readable": os.access(path, os.R_OK),
            "writable": os.access(path, os.W_OK),
            "size": _size(path) if is_file else 0,
        }
    )


@catalog.tool(
    name="create_directory",
    description="Creates a new directory",
    args_model=CreateDirectoryInput,
)
def create_directory(args: CreateDirectoryInput) -> ToolResult:
    # Failure to create is reported in the result, not raised.
    try:
        Path(args.path).mkdir(parents=args.parents, exist_ok=False)
    except OSError:
        return error_result(f"Failed to create directory: {args.path}")
    return text_result(f"Successfully created directory: {args.path}")


def _size(path: Path) -> int:
    try:
        return path.stat().st_size
    except OSError:
        return 0
