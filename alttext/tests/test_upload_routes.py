import io
from dataclasses import replace

import pytest
from werkzeug.datastructures import FileStorage

from alttext.gateway.server import create_app

PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x01"


def _upload(client, data=PNG_BYTES, filename="red.png"):
    return client.post(
        "/upload",
        data={"image": (io.BytesIO(data), filename)},
        content_type="multipart/form-data",
    )


def test_home_page(client):
    response = client.get("/")
    assert response.status_code == 200
    body = response.get_data(as_text=True)
    assert 'hx-post="/upload"' in body
    assert 'name="image"' in body
    assert "OpenAI" in body


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.get_json() == {"status": "ok", "provider": "openai"}


def test_upload_openai_success(client, mock_post, make_response):
    mock_post.return_value = make_response({"choices": [{"text": "A red square"}]})

    response = _upload(client)

    assert response.status_code == 200
    assert response.content_type.startswith("text/html")
    body = response.get_data(as_text=True)
    assert "Generated Alt Text: A red square" in body
    assert "hx-get='/'" in body
    assert mock_post.call_count == 1


def test_upload_empty_choices_is_generic_failure(client, mock_post, make_response):
    mock_post.return_value = make_response({"choices": []})

    response = _upload(client)

    assert response.status_code == 500
    body = response.get_data(as_text=True)
    assert body == "Failed to generate alt text"
    assert "choices" not in body


def test_upload_provider_error_is_not_exposed(client, mock_post, make_response):
    mock_post.return_value = make_response({"error": {"message": "invalid api key sk-test"}}, status_code=401)

    response = _upload(client)

    assert response.status_code == 500
    assert "sk-test" not in response.get_data(as_text=True)


def test_upload_rejects_non_multipart(client, mock_post):
    response = client.post("/upload", json={"image": "abc"})

    assert response.status_code == 400
    assert "Content-Type isn't multipart/form-data" in response.get_data(as_text=True)
    mock_post.assert_not_called()


def test_upload_requires_post(client, mock_post):
    response = client.get("/upload")
    assert response.status_code == 405
    mock_post.assert_not_called()


def test_upload_missing_image_field(client, mock_post):
    response = client.post(
        "/upload",
        data={"other": (io.BytesIO(PNG_BYTES), "red.png")},
        content_type="multipart/form-data",
    )

    assert response.status_code == 400
    assert response.get_data(as_text=True) == "Failed to read image file"
    mock_post.assert_not_called()


def test_upload_empty_file(client, mock_post):
    response = _upload(client, data=b"")

    assert response.status_code == 400
    mock_post.assert_not_called()


def test_upload_unsupported_format(client, mock_post):
    response = _upload(client, data=b"%PDF-1.7 not an image", filename="doc.pdf")

    assert response.status_code == 400
    assert "Unsupported image format" in response.get_data(as_text=True)
    mock_post.assert_not_called()


def test_upload_too_large(settings, mock_post):
    app = create_app(replace(settings, max_upload_bytes=16))
    client = app.test_client()

    response = _upload(client, data=PNG_BYTES + b"\x00" * 32)

    assert response.status_code == 413
    mock_post.assert_not_called()


def test_upload_escapes_alt_text(client, mock_post, make_response):
    mock_post.return_value = make_response({"choices": [{"text": "<script>alert(1)</script>"}]})

    response = _upload(client)

    body = response.get_data(as_text=True)
    assert "<script>" not in body
    assert "&lt;script&gt;" in body


def test_upload_missing_credential(settings, mock_post):
    app = create_app(replace(settings, openai_api_key=None))
    client = app.test_client()

    response = _upload(client)

    assert response.status_code == 500
    assert response.get_data(as_text=True) == "Failed to generate alt text"
    mock_post.assert_not_called()


@pytest.mark.parametrize("content_type", [
    "multipart/form-data",
    "multipart/form-data; boundary=xyz",
])
def test_multipart_content_type_accepted(content_type):
    from alttext.upload_service.routes import has_multipart_content_type

    assert has_multipart_content_type(content_type)


@pytest.mark.parametrize("content_type", ["", "application/json", "multipart/mixed", "text/plain"])
def test_multipart_content_type_rejected(content_type):
    from alttext.upload_service.routes import has_multipart_content_type

    assert not has_multipart_content_type(content_type)


def test_upload_anthropic_success(settings, mock_post, make_response):
    app = create_app(replace(settings, provider="anthropic"))
    client = app.test_client()
    mock_post.return_value = make_response({"content": [{"type": "text", "text": "A small red square"}]})

    response = _upload(client)

    assert response.status_code == 200
    assert "Generated Alt Text: A small red square" in response.get_data(as_text=True)
    body = mock_post.call_args.kwargs["json"]
    assert body["messages"][0]["content"][1]["source"]["media_type"] == "image/png"


def test_upload_read_failure(client, mock_post, mocker):
    mocker.patch.object(FileStorage, "read", side_effect=OSError("disk"), create=True)

    response = _upload(client)

    assert response.status_code == 500
    assert response.get_data(as_text=True) == "Failed to read image content"
    mock_post.assert_not_called()


def test_upload_request_over_content_length(settings, mock_post):
    app = create_app(replace(settings, max_upload_bytes=16))
    client = app.test_client()

    response = _upload(client, data=PNG_BYTES + b"\x00" * (70 * 1024))

    assert response.status_code == 413
    mock_post.assert_not_called()
