from __future__ import annotations

import json

from shipctl.cli.output import render_error
from shipctl.errors import ScriptError
from shipctl.exit_codes import ERR_CONFIG


def test_render_error_json_carries_kind() -> None:
    err = ScriptError("GIT_HASH is required", ERR_CONFIG, kind="build_config")
    payload = json.loads(render_error(as_json=True, error=err))
    assert payload["schema_name"] == "shipctl.error.v1"
    assert payload["errors"] == [{"code": ERR_CONFIG, "kind": "build_config", "message": "GIT_HASH is required"}]


def test_render_error_text_is_the_message() -> None:
    assert render_error(as_json=False, error=ScriptError("boom", 1)) == "boom"
