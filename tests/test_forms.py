"""Tests for lynx.http.forms — urlencoded and multipart parsing."""

import pytest

from lynx.http.forms import FormData, UploadFile, is_form_content_type, parse_form_data


class TestIsFormContentType:
    def test_form_types(self) -> None:
        assert is_form_content_type("application/x-www-form-urlencoded")
        assert is_form_content_type("multipart/form-data; boundary=x")

    def test_other_types(self) -> None:
        assert not is_form_content_type("application/json")
        assert not is_form_content_type(None)


class TestParseFormData:
    def test_urlencoded(self) -> None:
        form = parse_form_data(b"name=Ann&tag=a&tag=b&empty=", "application/x-www-form-urlencoded")
        assert form["name"] == "Ann"
        assert form.get_list("tag") == ["a", "b"]
        assert form["empty"] == ""
        assert form.to_dict() == {"name": "Ann", "tag": ["a", "b"], "empty": ""}

    def test_multipart_missing_boundary(self) -> None:
        with pytest.raises(ValueError, match="boundary"):
            parse_form_data(b"", "multipart/form-data")

    def test_unsupported_type(self) -> None:
        with pytest.raises(ValueError, match="Unsupported"):
            parse_form_data(b"{}", "application/json")

    def test_multiple_files_same_field(self) -> None:
        body = (
            b"--b\r\n"
            b'Content-Disposition: form-data; name="docs"; filename="a.txt"\r\n'
            b"Content-Type: text/plain\r\n\r\n"
            b"A\r\n"
            b"--b\r\n"
            b'Content-Disposition: form-data; name="docs"; filename="b.txt"\r\n\r\n'
            b"BB\r\n"
            b"--b--\r\n"
        )
        form = parse_form_data(body, "multipart/form-data; boundary=b")
        files = form.get_files("docs")
        assert [f.filename for f in files] == ["a.txt", "b.txt"]
        assert files[1].content_type == "application/octet-stream"
        assert files[1].size == 2
        assert form.files["docs"] is files[0]


class TestUploadFile:
    async def test_read(self) -> None:
        upload = UploadFile("x.bin", "application/octet-stream", 3, b"abc")
        assert await upload.read() == b"abc"
        assert repr(upload) == "UploadFile('x.bin', 'application/octet-stream', 3 bytes)"

    def test_form_data_empty(self) -> None:
        assert FormData().files == {}
