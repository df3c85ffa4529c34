"""Tests for script execution and info endpoints.

Run with: uv run pytest heartwood/api/routers/tests/test_scripts_router.py
"""

import pytest

from heartwood.services.tests.fakes import write_script
from heartwood.services.tgdf import to_tagged, unwrap_response

TYPED_SCRIPT = '''
info = {
    "description": "Greets a person",
    "input": {
        "type": "object",
        "required": ["name"],
        "properties": {"name": {"type": "string"}, "age": {"type": "number"}},
    },
    "options": {"style": {"type": "string", "enum": ["formal", "casual"]}},
    "output": {"type": "object", "description": "Greeting"},
}


def run(input, options):
    style = options.get("style", "casual")
    return {"greeting": f"Hello {input['name']}", "style": style}
'''

ASYNC_SCRIPT = '''
import asyncio


async def run(input, options):
    await asyncio.sleep(0)
    return {"doubled": input["n"] * 2, "async": True}
'''

FAILING_SCRIPT = '''
def run(input, options):
    raise ValueError("cannot handle this")
'''

SLOW_SCRIPT = '''
import asyncio


async def run(input, options):
    await asyncio.sleep(10)
'''


def error_body(response) -> dict:
    envelope_type, data = unwrap_response(response.json())
    assert envelope_type == "error"
    return data


# =============================================================================
# Test: POST /api/{script_name}
# =============================================================================


@pytest.mark.unit
class TestExecuteScript:
    """End-to-end script calls with TGDF negotiation."""

    def test_default_script_tagged_response(self, client):
        response = client.post("/api/default", json={"input": {"a": 1}})

        assert response.status_code == 200
        body = response.json()
        assert list(body) == ["response"]
        fields = body["response"]["data"]["object"]
        assert set(fields) == {"message", "processedAt", "originalData"}
        assert fields["message"] == {"text": 'Processed {"a": 1}'}
        assert list(fields["processedAt"]) == ["instant"]
        # A one-key object is passed through as if already tagged
        assert fields["originalData"] == {"a": 1}

    def test_default_script_multi_key_input(self, client):
        response = client.post("/api/default", json={"input": {"a": 1, "b": "x"}})
        fields = response.json()["response"]["data"]["object"]
        assert fields["originalData"] == {"object": {"a": {"number": "1"}, "b": {"text": "x"}}}

    def test_tagged_input_untagged(self, client):
        tagged = to_tagged({"a": 1, "b": [True, False]})
        response = client.post("/api/default", json={"input": tagged})

        _, data = unwrap_response(response.json())
        assert data["originalData"] == {"a": 1, "b": {"0": True, "1": False}}

    def test_single_key_input_kept_as_object(self, client):
        response = client.post("/api/default", json={"input": {"name": {"first": "Ada"}}})

        assert response.status_code == 200
        fields = response.json()["response"]["data"]["object"]
        assert fields["message"] == {"text": 'Processed {"name": {"first": "Ada"}}'}

    def test_vocabulary_tagged_single_key_input_untagged(self, client):
        response = client.post(
            "/api/default", json={"input": {"object": {"a": {"number": "1"}}}}
        )

        fields = response.json()["response"]["data"]["object"]
        assert fields["message"] == {"text": 'Processed {"a": 1}'}

    def test_raw_mode(self, client):
        response = client.post(
            "/api/default", json={"input": {"a": 1}}, headers={"x-use-tgdf": "false"}
        )

        data = response.json()
        assert data["originalData"] == {"a": 1}
        assert data["processedAt"].endswith("Z")

    def test_raw_mode_keeps_tagged_input(self, client):
        tagged = {"object": {"a": {"number": "1"}}}
        response = client.post("/api/default?tgdf=false", json={"input": tagged})
        assert response.json()["originalData"] == tagged

    def test_custom_overrides_builtin(self, client, custom_dir):
        write_script(custom_dir, "default", "def run(input, options):\n    return {'from': 'custom', 'ok': True}\n")

        response = client.post("/api/default?tgdf=false", json={"input": {}})

        assert response.json() == {"from": "custom", "ok": True}

    def test_async_script(self, client, custom_dir):
        write_script(custom_dir, "double", ASYNC_SCRIPT)
        response = client.post("/api/double?tgdf=false", json={"input": {"n": 21}})
        assert response.json() == {"doubled": 42, "async": True}

    def test_options_passed(self, client, custom_dir):
        write_script(custom_dir, "greet", TYPED_SCRIPT)
        response = client.post(
            "/api/greet?tgdf=false",
            json={"input": {"name": "Ada"}, "options": {"style": "formal"}},
        )
        assert response.json() == {"greeting": "Hello Ada", "style": "formal"}

    def test_missing_input(self, client):
        response = client.post("/api/default", json={"options": {}})
        assert response.status_code == 400
        assert error_body(response)["error"] == 'Missing "input" in request body'

    def test_body_not_an_object(self, client):
        response = client.post("/api/default", json=[1, 2])
        assert response.status_code == 400
        assert error_body(response)["error"] == "Invalid request"


# =============================================================================
# Test: Validation
# =============================================================================


@pytest.mark.unit
class TestValidation:
    """Input and options are checked against the script's descriptor."""

    def test_input_errors(self, client, custom_dir):
        write_script(custom_dir, "greet", TYPED_SCRIPT)

        response = client.post("/api/greet", json={"input": {"age": "old"}})

        assert response.status_code == 400
        data = error_body(response)
        assert data["error"] == "Input validation failed"
        assert data["statusCode"] == 400
        assert list(data["validation"].values()) == [
            "Missing required field: name",
            "Property age: Expected number, got string",
        ]

    def test_option_errors_prefixed(self, client, custom_dir):
        write_script(custom_dir, "greet", TYPED_SCRIPT)

        response = client.post(
            "/api/greet?tgdf=false",
            json={"input": {"name": "Ada"}, "options": {"style": "rude"}},
        )

        assert response.status_code == 400
        assert response.json()["validation"] == [
            "Options: Property style: Value must be one of [formal, casual], got rude"
        ]

    def test_unknown_options_allowed(self, client, custom_dir):
        write_script(custom_dir, "greet", TYPED_SCRIPT)
        response = client.post(
            "/api/greet?tgdf=false",
            json={"input": {"name": "Ada"}, "options": {"extra": 1}},
        )
        assert response.status_code == 200

    def test_default_info_requires_object(self, client, custom_dir):
        write_script(custom_dir, "bare", "def run(input, options):\n    return input\n")
        response = client.post("/api/bare?tgdf=false", json={"input": "text"})
        assert response.status_code == 400
        assert response.json()["validation"] == ["Expected input to be an object, got string"]


# =============================================================================
# Test: Errors
# =============================================================================


@pytest.mark.unit
class TestErrors:
    """Error statuses and envelopes."""

    def test_not_found_names_both_directories(self, client, custom_dir, settings):
        response = client.post("/api/ghost", json={"input": {}})

        assert response.status_code == 404
        data = error_body(response)
        assert data["statusCode"] == 404
        assert "Custom directory:" in data["error"]
        assert "Builtin directory:" in data["error"]
        assert str(custom_dir / "ghost.py") in data["error"]
        assert str(settings.builtin_dir / "ghost.py") in data["error"]

    def test_not_found_raw(self, client):
        response = client.post("/api/ghost", json={"input": {}}, headers={"x-use-tgdf": "false"})
        assert response.status_code == 404
        assert response.json()["error"].startswith('Script "ghost" not found.')

    def test_path_separator_rejected(self, client):
        response = client.post("/api/a%5Cb", json={"input": {}})
        assert response.status_code == 400
        assert error_body(response)["error"] == "Invalid script name: Path separators are not allowed"

    def test_script_failure(self, client, custom_dir):
        write_script(custom_dir, "fail", FAILING_SCRIPT)

        response = client.post("/api/fail", json={"input": {}})

        assert response.status_code == 500
        data = error_body(response)
        assert data["error"] == "Script loading or execution failed"
        assert data["details"] == "cannot handle this"

    def test_load_failure(self, client, custom_dir):
        write_script(custom_dir, "broken", "import not_a_real_module_xyz\n")
        response = client.post("/api/broken?tgdf=false", json={"input": {}})
        assert response.status_code == 500
        assert response.json()["details"].startswith("Failed to load script from custom directory")

    def test_timeout(self, client, custom_dir, registry):
        write_script(custom_dir, "slow", SLOW_SCRIPT)
        registry.timeout = 0.05

        response = client.post("/api/slow?tgdf=false", json={"input": {}})

        assert response.status_code == 504


# =============================================================================
# Test: GET /api/{script_name}
# =============================================================================


@pytest.mark.unit
class TestExecuteViaQuery:
    """Query parameters become the input object."""

    def test_query_input(self, client, custom_dir):
        write_script(custom_dir, "greet", TYPED_SCRIPT)
        response = client.get("/api/greet?name=Ada&age=&tgdf=false")
        assert response.status_code == 400
        assert response.json()["validation"] == ["Property age: Expected number, got string"]

    def test_query_strings_passed(self, client):
        response = client.get("/api/default", params={"a": "1", "b": "2"})
        _, data = unwrap_response(response.json())
        assert data["originalData"] == {"a": "1", "b": "2"}

    def test_tgdf_param_not_in_input(self, client):
        response = client.get("/api/default?x=1&y=2&tgdf=false")
        assert response.json()["originalData"] == {"x": "1", "y": "2"}


# =============================================================================
# Test: /api/{script_name}/info
# =============================================================================


@pytest.mark.unit
class TestScriptInfo:
    """Descriptors as script_info envelopes."""

    def test_info_envelope(self, client):
        response = client.get("/api/default/info")

        envelope_type, data = unwrap_response(response.json())
        assert envelope_type == "script_info"
        assert data["description"].startswith("Echoes its input")

    def test_info_via_post(self, client):
        response = client.post("/api/default/info?tgdf=false")
        assert response.json()["input"]["type"] == "object"

    def test_default_info_for_bare_script(self, client, custom_dir):
        write_script(custom_dir, "bare", "def run(input, options):\n    return input\n")
        response = client.get("/api/bare/info", headers={"x-use-tgdf": "false"})
        assert response.json()["description"] == "Default info for bare script"

    def test_info_not_found(self, client):
        response = client.get("/api/ghost/info")
        assert response.status_code == 404
