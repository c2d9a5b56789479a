import json


def test_read_file_returns_content(invoke, tmp_path):
    target = tmp_path / "notes.txt"
    target.write_text("line one\nline two\n", encoding="utf-8")

    result = invoke("read_file", path=str(target))

    assert result.is_error is False
    assert result.text == "line one\nline two\n"


def test_read_file_missing_path(invoke, tmp_path):
    missing = tmp_path / "missing.txt"

    result = invoke("read_file", path=str(missing))

    assert result.is_error is True
    assert result.text == f"Error: File does not exist: {missing}"


def test_read_file_on_directory_is_an_error(invoke, tmp_path):
    result = invoke("read_file", path=str(tmp_path))

    assert result.is_error is True
    assert result.text == f"Error: Path is not a file: {tmp_path}"


def test_read_file_without_path_is_an_error(invoke):
    result = invoke("read_file")

    assert result.is_error is True
    assert result.text.startswith("Error: ")
    assert "path" in result.text


def test_write_then_append_concatenates(invoke, tmp_path):
    target = tmp_path / "log.txt"

    first = invoke("write_file", path=str(target), content="hello ")
    second = invoke("write_file", path=str(target), content="world", append=True)

    assert first.text == f"Successfully wrote file: {target}"
    assert second.text == f"Successfully appended to file: {target}"
    assert invoke("read_file", path=str(target)).text == "hello world"


def test_write_overwrites_by_default(invoke, tmp_path):
    target = tmp_path / "data.txt"
    target.write_text("old content")

    invoke("write_file", path=str(target), content="new")

    assert target.read_text() == "new"


def test_write_into_missing_directory_is_an_error(invoke, tmp_path):
    result = invoke("write_file", path=str(tmp_path / "nope" / "file.txt"), content="x")

    assert result.is_error is True
    assert result.text.startswith("Error: ")


def test_list_directory_reports_sizes(invoke, tmp_path, monkeypatch):
    (tmp_path / "a.txt").write_bytes(b"0123456789")
    monkeypatch.chdir(tmp_path)

    result = invoke("list_directory", path=".")

    assert result.is_error is False
    assert "a.txt (10 bytes)" in result.text.splitlines()


def test_list_directory_marks_subdirectories_and_sorts(invoke, tmp_path):
    (tmp_path / "b.txt").write_text("b")
    (tmp_path / "a_dir").mkdir()

    lines = invoke("list_directory", path=str(tmp_path)).text.splitlines()

    assert lines[0].startswith("a_dir/ (")
    assert lines[1] == "b.txt (1 bytes)"


def test_list_directory_defaults_to_current_directory(invoke, tmp_path, monkeypatch):
    (tmp_path / "only.txt").write_text("abc")
    monkeypatch.chdir(tmp_path)

    assert invoke("list_directory").text == "only.txt (3 bytes)"


def test_list_directory_errors(invoke, tmp_path):
    missing = tmp_path / "missing"
    file_path = tmp_path / "file.txt"
    file_path.write_text("x")

    assert invoke("list_directory", path=str(missing)).text == (
        f"Error: Directory does not exist: {missing}"
    )
    not_dir = invoke("list_directory", path=str(file_path))
    assert not_dir.is_error is True
    assert not_dir.text == f"Error: Path is not a directory: {file_path}"


def test_file_info_for_existing_file(invoke, tmp_path):
    target = tmp_path / "info.txt"
    target.write_text("12345")

    result = invoke("file_info", path=str(target))
    payload = json.loads(result.text)

    assert result.is_error is False
    assert payload == {
        "exists": True,
        "is-file": True,
        "is-directory": False,
        "readable": True,
        "writable": True,
        "size": 5,
    }


def test_file_info_for_missing_path_does_not_fault(invoke, tmp_path):
    result = invoke("file_info", path=str(tmp_path / "ghost"))
    payload = json.loads(result.text)

    assert result.is_error is False
    assert payload["exists"] is False
    assert payload["size"] == 0


def test_file_info_for_directory_has_zero_size(invoke, tmp_path):
    payload = json.loads(invoke("file_info", path=str(tmp_path)).text)

    assert payload["is-directory"] is True
    assert payload["size"] == 0


def test_create_directory(invoke, tmp_path):
    target = tmp_path / "new"

    result = invoke("create_directory", path=str(target))

    assert result.is_error is False
    assert result.text == f"Successfully created directory: {target}"
    assert target.is_dir()


def test_create_directory_with_parents(invoke, tmp_path):
    target = tmp_path / "a" / "b" / "c"

    without_parents = invoke("create_directory", path=str(target))
    with_parents = invoke("create_directory", path=str(target), parents=True)

    assert without_parents.is_error is True
    assert without_parents.text == f"Error: Failed to create directory: {target}"
    assert with_parents.is_error is False
    assert target.is_dir()


def test_create_existing_directory_fails_as_result(invoke, tmp_path):
    result = invoke("create_directory", path=str(tmp_path))

    assert result.is_error is True
    assert result.text == f"Error: Failed to create directory: {tmp_path}"


def test_write_then_read_keeps_line_endings(invoke, tmp_path):
    target = tmp_path / "mixed.txt"

    invoke("write_file", path=str(target), content="a\r\nb\rc")
    invoke("write_file", path=str(target), content="\r\nd", append=True)

    assert target.read_bytes() == b"a\r\nb\rc\r\nd"
    assert invoke("read_file", path=str(target)).text == "a\r\nb\rc\r\nd"


def test_read_file_replaces_undecodable_bytes(invoke, tmp_path):
    target = tmp_path / "latin1.txt"
    target.write_bytes(b"caf\xe9 au lait")

    result = invoke("read_file", path=str(target))

    assert result.is_error is False
    assert result.text == "caf� au lait"
